"""Fakes for exercising the lifecycle manager without a database server."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from tidings_core.config.settings import DatabaseSettings
from tidings_storage.exceptions import MigrationError
from tidings_storage.lifecycle import DatabaseLifecycleManager


class EventLog(list[str]):
    """Ordered record of everything the fakes were asked to do."""


class FakeConnection:
    def __init__(self, log: EventLog, server: FakeServer) -> None:
        self._log = log
        self._server = server

    async def __aenter__(self) -> FakeConnection:
        return self

    async def __aexit__(self, *_: object) -> None:
        self._log.append("server_connection_closed")

    async def execute(self, query: Any) -> None:
        statement = repr(query)
        self._log.append(statement)
        error = self._server.errors.pop(0) if self._server.errors else None
        if error is not None:
            raise error


class FakeServer:
    """Replaces ``AsyncConnection.connect``; records conninfo and statements."""

    def __init__(self, log: EventLog) -> None:
        self.log = log
        self.conninfos: list[str] = []
        self.connect_error: Exception | None = None
        self.errors: list[Exception | None] = []

    async def connect(self, conninfo: str, **kwargs: Any) -> FakeConnection:
        self.conninfos.append(conninfo)
        self.log.append(f"connect autocommit={kwargs.get('autocommit')}")
        if self.connect_error is not None:
            raise self.connect_error
        return FakeConnection(self.log, self)


class FakePool:
    def __init__(self, settings: DatabaseSettings, log: EventLog) -> None:
        self.settings = settings
        self.log = log
        self.open_calls = 0
        self.close_calls = 0
        self._open = False
        self.open_error: Exception | None = None
        self.close_error: Exception | None = None

    @property
    def database_name(self) -> str:
        return self.settings.database_name

    @property
    def closed(self) -> bool:
        return not self._open

    async def open(self, *, wait: bool = False) -> None:  # noqa: ARG002
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self._open = True
        self.log.append("pool_open")

    async def close(self) -> None:
        if self.close_error is not None:
            raise self.close_error
        if self._open:
            self.close_calls += 1
            self._open = False
            self.log.append("pool_close")


class FakePools(list[FakePool]):
    """Every pool the manager created; ``open_error`` is handed to new pools."""

    open_error: Exception | None = None


class FakeMigrator:
    def __init__(self, log: EventLog) -> None:
        self.log = log
        self.migrated: list[str] = []
        self.fail = False
        self.error: Exception | None = None

    async def upgrade(self, settings: DatabaseSettings) -> None:
        self.log.append("migrate")
        self.migrated.append(settings.database_name)
        if self.fail:
            raise MigrationError(settings.database_name, RuntimeError("syntax error"))
        if self.error is not None:
            raise self.error


@pytest.fixture
def log() -> EventLog:
    return EventLog()


@pytest.fixture
def server(log: EventLog) -> FakeServer:
    return FakeServer(log)


@pytest.fixture
def migrator(log: EventLog) -> FakeMigrator:
    return FakeMigrator(log)


@pytest.fixture
def pools() -> FakePools:
    return FakePools()


@pytest.fixture
def make_manager(
    log: EventLog, server: FakeServer, migrator: FakeMigrator, pools: FakePools
) -> Callable[..., DatabaseLifecycleManager]:
    def pool_factory(settings: DatabaseSettings) -> FakePool:
        pool = FakePool(settings, log)
        pool.open_error = pools.open_error
        pools.append(pool)
        return pool

    def factory(**kwargs: Any) -> DatabaseLifecycleManager:
        return DatabaseLifecycleManager(
            migrator,
            pool_factory=pool_factory,  # type: ignore[arg-type]
            connect=server.connect,
            **kwargs,
        )

    return factory


@pytest.fixture
def manager(make_manager: Callable[..., DatabaseLifecycleManager]) -> DatabaseLifecycleManager:
    return make_manager()


@pytest.fixture
def base() -> DatabaseSettings:
    return DatabaseSettings(
        username="postgres",
        password="pw",  # type: ignore[arg-type]
        host="localhost",
        port=5432,
        database_name="app",
    )
