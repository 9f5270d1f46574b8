"""Configuration error hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from pydantic import ValidationError


class ConfigError(Exception):
    """Base exception for configuration resolution failures."""


class MissingSourceError(ConfigError):
    """A required configuration source is missing or unreadable."""

    def __init__(self, source: Path, reason: str = "not found") -> None:
        super().__init__(f"Configuration source {str(source)!r} {reason}")
        self.source = source


class MalformedSourceError(ConfigError):
    """A configuration source is not a valid TOML document."""

    def __init__(self, source: Path, reason: str) -> None:
        super().__init__(f"Configuration source {str(source)!r} is not valid TOML: {reason}")
        self.source = source


class UnparseableEnvironmentError(ConfigError, ValueError):
    """The environment selector holds an unsupported value."""

    def __init__(self, value: str) -> None:
        super().__init__(
            f"{value!r} is not a supported environment. Use either `local` or `production`."
        )
        self.value = value


class DeserializationError(ConfigError):
    """The merged configuration tree does not fit the Settings model."""

    def __init__(self, errors: list[tuple[str, str]]) -> None:
        details = "; ".join(f"{field}: {message}" for field, message in errors)
        super().__init__(f"Invalid configuration: {details}")
        self.errors = errors

    @property
    def fields(self) -> list[str]:
        return [field for field, _ in self.errors]

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> DeserializationError:
        """Flatten pydantic errors into (dotted field path, message) pairs.

        Input values are never included in the message.
        """
        errors = [
            (".".join(str(part) for part in error["loc"]) or "<root>", error["msg"])
            for error in exc.errors(include_url=False, include_input=False)
        ]
        return cls(errors)
