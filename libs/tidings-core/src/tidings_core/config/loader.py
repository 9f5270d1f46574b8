"""Layered configuration loading: base file, environment file, environment variables."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic_settings import SettingsError

from tidings_core.config.environment import Environment, environment_from_env
from tidings_core.config.exceptions import (
    DeserializationError,
    MalformedSourceError,
    MissingSourceError,
)
from tidings_core.config.settings import Settings
from tidings_core.logging import get_logger

logger = get_logger(__name__)

CONFIG_DIR_VARIABLE = "APP_CONFIG_DIR"
BASE_SOURCE = "base"


def get_config_dir() -> Path:
    """Locate the configuration directory.

    APP_CONFIG_DIR wins when set. Otherwise ``configuration/`` is looked up in
    the working directory and up to five of its parents.
    """
    override = os.environ.get(CONFIG_DIR_VARIABLE)
    if override:
        path = Path(override)
        if not path.is_dir():
            raise MissingSourceError(path, "is not a directory")
        return path

    current = Path.cwd()
    for _ in range(6):
        candidate = current / "configuration"
        if candidate.is_dir():
            return candidate
        current = current.parent

    return Path("configuration")


def load_toml(path: Path) -> dict[str, Any]:
    """Load one TOML document.

    Raises:
        MissingSourceError: The file does not exist or cannot be read.
        MalformedSourceError: The file is not valid TOML.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        raise MissingSourceError(path) from None
    except OSError as exc:
        raise MissingSourceError(path, f"is unreadable: {exc.strerror}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise MalformedSourceError(path, str(exc)) from exc


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two trees, ``override`` winning. Neither input is mutated."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(environment: Environment, config_dir: Path) -> dict[str, Any]:
    """Load ``base.toml`` then ``<environment>.toml``. Both files are required."""
    base = load_toml(config_dir / f"{BASE_SOURCE}.toml")
    overrides = load_toml(config_dir / f"{environment.value}.toml")
    return deep_merge(base, overrides)


def resolve(
    environment: Environment | str | None = None,
    config_dir: Path | None = None,
) -> Settings:
    """Resolve the settings for one process or test invocation.

    Args:
        environment: Selector to use. When None, APP_ENVIRONMENT is read
            (unset means ``local``).
        config_dir: Directory holding the TOML files. When None,
            ``get_config_dir()`` decides.

    Raises:
        UnparseableEnvironmentError: The selector is neither local nor production.
        MissingSourceError: A required file is missing or unreadable.
        MalformedSourceError: A file is not valid TOML.
        DeserializationError: The merged tree does not fit ``Settings``.
    """
    if environment is None:
        env = environment_from_env()
    elif isinstance(environment, Environment):
        env = environment
    else:
        env = Environment.parse(environment)

    directory = config_dir if config_dir is not None else get_config_dir()
    tree = load_config(env, directory)

    try:
        settings = Settings(**tree)
    except ValidationError as exc:
        raise DeserializationError.from_validation_error(exc) from None
    except SettingsError as exc:
        # An APP_* variable for a whole section that is not valid JSON.
        raise DeserializationError([("<environment>", str(exc))]) from None

    logger.info("configuration_resolved", environment=env.value, config_dir=str(directory))
    return settings
