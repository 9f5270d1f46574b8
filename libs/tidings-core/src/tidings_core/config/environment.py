"""Deployment environment selector."""

from __future__ import annotations

import os
from enum import StrEnum
from typing import TYPE_CHECKING

from tidings_core.config.exceptions import UnparseableEnvironmentError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENVIRONMENT_VARIABLE = "APP_ENVIRONMENT"


class Environment(StrEnum):
    """Environments with a dedicated configuration file."""

    LOCAL = "local"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: str) -> Environment:
        """Parse a selector case-insensitively. Unknown values are an error, not a default."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnparseableEnvironmentError(value) from None


def environment_from_env(environ: Mapping[str, str] | None = None) -> Environment:
    """Read the selector from APP_ENVIRONMENT, defaulting to LOCAL when unset."""
    env = os.environ if environ is None else environ
    return Environment.parse(env.get(ENVIRONMENT_VARIABLE, Environment.LOCAL.value))
