"""Layered configuration for Tidings.

Usage:
    from tidings_core.config import resolve

    settings = resolve()
    settings.application.address
    settings.database.connection_string()
"""

from tidings_core.config.environment import (
    ENVIRONMENT_VARIABLE,
    Environment,
    environment_from_env,
)
from tidings_core.config.exceptions import (
    ConfigError,
    DeserializationError,
    MalformedSourceError,
    MissingSourceError,
    UnparseableEnvironmentError,
)
from tidings_core.config.loader import deep_merge, get_config_dir, load_config, load_toml, resolve
from tidings_core.config.settings import ApplicationSettings, DatabaseSettings, Password, Settings

__all__ = [
    "ENVIRONMENT_VARIABLE",
    "ApplicationSettings",
    "ConfigError",
    "DatabaseSettings",
    "DeserializationError",
    "Environment",
    "MalformedSourceError",
    "MissingSourceError",
    "Password",
    "Settings",
    "UnparseableEnvironmentError",
    "deep_merge",
    "environment_from_env",
    "get_config_dir",
    "load_config",
    "load_toml",
    "resolve",
]
