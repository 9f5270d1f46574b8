"""Schema migrations, applied with Alembic."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import psycopg
from alembic import command
from alembic.config import Config
from alembic.util import CommandError
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from tidings_core.logging import get_logger
from tidings_storage.exceptions import MigrationError

if TYPE_CHECKING:
    from tidings_core.config.settings import DatabaseSettings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

# alembic.context is process-global, so upgrades must not overlap.
_upgrade_lock = threading.Lock()


class Migrator(Protocol):
    """Applies every pending migration, in order, to the database named in ``settings``."""

    async def upgrade(self, settings: DatabaseSettings) -> None: ...


def sqlalchemy_url(settings: DatabaseSettings) -> URL:
    """SQLAlchemy URL for the psycopg 3 dialect, addressed at ``settings.database_name``."""
    return URL.create(
        "postgresql+psycopg",
        username=settings.username,
        password=settings.password.get_secret_value(),
        host=settings.host,
        port=settings.port,
        database=settings.database_name,
    )


def _locked_upgrade(config: Config, revision: str) -> None:
    with _upgrade_lock:
        command.upgrade(config, revision)


class AlembicMigrator:
    """Runs ``alembic upgrade head`` in a worker thread."""

    def __init__(self, script_location: Path = MIGRATIONS_DIR, revision: str = "head") -> None:
        self._script_location = script_location
        self._revision = revision

    def _config(self, settings: DatabaseSettings) -> Config:
        config = Config()
        config.set_main_option("script_location", str(self._script_location))
        # Passed as an attribute, not a main option: ini interpolation would mangle '%'.
        config.attributes["url"] = sqlalchemy_url(settings)
        return config

    async def upgrade(self, settings: DatabaseSettings) -> None:
        """Raises MigrationError carrying ``settings.database_name`` on any failure."""
        config = self._config(settings)
        try:
            await asyncio.to_thread(_locked_upgrade, config, self._revision)
        except (CommandError, SQLAlchemyError, psycopg.Error) as exc:
            raise MigrationError(settings.database_name, exc) from exc
        logger.info(
            "migrations_applied",
            database_name=settings.database_name,
            revision=self._revision,
        )
