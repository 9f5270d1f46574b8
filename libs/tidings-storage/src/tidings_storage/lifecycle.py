"""Ephemeral databases: one uniquely named, fully migrated database per test run.

A database moves through ``CREATED -> MIGRATED -> IN_USE -> CLOSED -> DESTROYED``.
Creation and destruction always go through a server-scoped connection that is
distinct from the database's own pool.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import psycopg
from psycopg import AsyncConnection
from psycopg import errors as pg_errors
from psycopg.sql import SQL, Identifier

from tidings_core.logging import get_logger
from tidings_storage.exceptions import (
    DatabaseAlreadyExistsError,
    DatabaseCreationError,
    DatabaseDropError,
    MigrationError,
    PoolCloseError,
    ProvisionError,
    TeardownError,
)
from tidings_storage.migrator import AlembicMigrator
from tidings_storage.pool import ConnectionPool

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from tidings_core.config.settings import DatabaseSettings
    from tidings_storage.migrator import Migrator

    Connect = Callable[..., Awaitable[AsyncConnection[tuple[object, ...]]]]

logger = get_logger(__name__)


def generate_database_name() -> str:
    """A fresh 128-bit random name, rendered as a UUID string."""
    return str(uuid.uuid4())


class LifecycleState(StrEnum):
    """Where an ephemeral database is in its life."""

    CREATED = "CREATED"
    MIGRATED = "MIGRATED"
    IN_USE = "IN_USE"
    CLOSED = "CLOSED"
    DESTROYED = "DESTROYED"


@dataclass
class EphemeralDatabase:
    """A live pool paired with the generated database it is bound to.

    The handle owns ``pool`` until teardown. ``settings`` is the database-scoped
    copy of the base settings and is kept only to address the drop.
    """

    pool: ConnectionPool
    settings: DatabaseSettings
    state: LifecycleState = LifecycleState.CREATED

    @property
    def database_name(self) -> str:
        return self.settings.database_name


class DatabaseLifecycleManager:
    """Creates, migrates and drops ephemeral databases."""

    def __init__(
        self,
        migrator: Migrator | None = None,
        *,
        name_factory: Callable[[], str] = generate_database_name,
        pool_factory: Callable[[DatabaseSettings], ConnectionPool] = ConnectionPool,
        connect: Connect = AsyncConnection.connect,
    ) -> None:
        self._migrator = migrator if migrator is not None else AlembicMigrator()
        self._name_factory = name_factory
        self._pool_factory = pool_factory
        self._connect = connect

    async def provision(self, base: DatabaseSettings) -> EphemeralDatabase:
        """Create a uniquely named database, migrate it and return its handle.

        Raises:
            DatabaseAlreadyExistsError: The generated name is taken; it is never reused.
            DatabaseCreationError: The server could not be reached or refused the create.
            MigrationError: Anything failed after the create, whether opening the
                pool or migrating. The database exists and the caller must drop
                it using ``exc.database_name``.
        """
        settings = base.with_database_name(self._name_factory())
        await self._create(settings)

        try:
            handle = await self._open_and_migrate(settings)
        except MigrationError as exc:
            self._log_migration_failure(exc)
            raise
        except Exception as exc:
            error = MigrationError(settings.database_name, exc)
            self._log_migration_failure(error)
            raise error from exc

        handle.state = LifecycleState.IN_USE
        logger.info("database_provisioned", database_name=settings.database_name)
        return handle

    async def teardown(self, handle: EphemeralDatabase) -> None:
        """Close the handle's pool, then drop its database.

        An already closed pool is not closed again; the drop is still issued.
        Drop failures are not retried.

        Raises:
            PoolCloseError: The pool could not be closed; nothing was dropped.
            DatabaseDropError: The server refused or failed the drop.
        """
        if handle.state is LifecycleState.DESTROYED:
            logger.debug("teardown_skipped", database_name=handle.database_name)
            return

        if not handle.pool.closed:
            try:
                await handle.pool.close()
            except psycopg.Error as exc:
                raise PoolCloseError(handle.database_name, exc) from exc
        handle.state = LifecycleState.CLOSED

        await self.drop(handle.settings, handle.database_name)
        handle.state = LifecycleState.DESTROYED

    async def drop(self, base: DatabaseSettings, database_name: str) -> None:
        """Drop ``database_name`` through a fresh server-scoped connection."""
        try:
            async with await self._connect_server(base) as conn:
                await conn.execute(SQL("DROP DATABASE {}").format(Identifier(database_name)))
        except psycopg.Error as exc:
            raise DatabaseDropError(database_name, exc) from exc
        logger.info("database_dropped", database_name=database_name)

    @asynccontextmanager
    async def ephemeral(self, base: DatabaseSettings) -> AsyncIterator[EphemeralDatabase]:
        """Provision a database for the duration of the block, tearing it down afterwards.

        When provisioning fails after the database was created, a best-effort
        drop is attempted before the original error propagates. Likewise a
        teardown failure after the block raised is attached to the block's
        exception as a note instead of replacing it.
        """
        try:
            handle = await self.provision(base)
        except ProvisionError as exc:
            if exc.requires_cleanup:
                await self._drop_after_failure(base, exc)
            raise

        try:
            yield handle
        except BaseException as exc:
            try:
                await self.teardown(handle)
            except TeardownError as teardown_exc:
                # The block's own failure stays the one that propagates.
                exc.add_note(f"Teardown of {handle.database_name!r} also failed: {teardown_exc}")
                logger.warning(
                    "database_leaked",
                    database_name=handle.database_name,
                    error=str(teardown_exc),
                )
            raise
        else:
            await self.teardown(handle)

    async def _open_and_migrate(self, settings: DatabaseSettings) -> EphemeralDatabase:
        pool = self._pool_factory(settings)
        try:
            await pool.open()
            await self._migrator.upgrade(settings)
        except Exception:
            await pool.close()
            raise
        return EphemeralDatabase(pool=pool, settings=settings, state=LifecycleState.MIGRATED)

    @staticmethod
    def _log_migration_failure(exc: MigrationError) -> None:
        logger.warning(
            "database_migration_failed",
            database_name=exc.database_name,
            error=str(exc.cause),
        )

    async def _create(self, settings: DatabaseSettings) -> None:
        name = settings.database_name
        try:
            async with await self._connect_server(settings) as conn:
                await conn.execute(SQL("CREATE DATABASE {}").format(Identifier(name)))
        except pg_errors.DuplicateDatabase:
            raise DatabaseAlreadyExistsError(name) from None
        except psycopg.Error as exc:
            raise DatabaseCreationError(name, exc) from exc
        logger.info("database_created", database_name=name)

    async def _drop_after_failure(self, base: DatabaseSettings, exc: ProvisionError) -> None:
        try:
            await self.drop(base, exc.database_name)
        except DatabaseDropError as drop_exc:
            exc.add_note(f"Cleanup of {exc.database_name!r} also failed: {drop_exc.cause}")
            logger.warning(
                "database_leaked",
                database_name=exc.database_name,
                error=str(drop_exc.cause),
            )

    async def _connect_server(
        self, settings: DatabaseSettings
    ) -> AsyncConnection[tuple[object, ...]]:
        # CREATE/DROP DATABASE cannot run inside a transaction block.
        return await self._connect(
            settings.connection_string_without_db().get_secret_value(), autocommit=True
        )
