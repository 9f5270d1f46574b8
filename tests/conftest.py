"""Shared fixtures for the Tidings test suite."""

import os
from collections.abc import Callable
from pathlib import Path

import pytest

BASE_TOML = """\
[application]
port = 8000

[database]
username = "postgres"
password = "pw"
host = "localhost"
port = 5432
database_name = "app"
"""


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep APP_* variables from the host shell out of every test."""
    for name in list(os.environ):
        if name.upper().startswith("APP_"):
            monkeypatch.delenv(name)


@pytest.fixture
def base_toml() -> str:
    """A complete base file except for ``application.host``."""
    return BASE_TOML


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """An empty configuration directory."""
    directory = tmp_path / "configuration"
    directory.mkdir()
    return directory


@pytest.fixture
def write_sources(config_dir: Path) -> Callable[[dict[str, str]], Path]:
    """Factory fixture writing TOML files into ``config_dir``.

    Usage:
        write_sources({"base.toml": BASE_TOML, "local.toml": ""})
    """

    def _write(files: dict[str, str]) -> Path:
        for filename, content in files.items():
            (config_dir / filename).write_text(content)
        return config_dir

    return _write
