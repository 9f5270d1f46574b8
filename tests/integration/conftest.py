"""Integration test fixtures: a disposable Postgres server via testcontainers."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
from psycopg import AsyncConnection
from testcontainers.postgres import PostgresContainer  # type: ignore[import-untyped]

from tidings_core.config.settings import DatabaseSettings
from tidings_storage.lifecycle import DatabaseLifecycleManager, EphemeralDatabase

POSTGRES_IMAGE = "postgres:16"


@pytest.fixture(scope="session")
def postgres_container() -> Any:
    """Start a Postgres container for the test session."""
    with PostgresContainer(
        image=POSTGRES_IMAGE,
        username="postgres",
        password="password",
        dbname="tidings",
    ) as container:
        yield container


@pytest.fixture(scope="session")
def base_settings(postgres_container: Any) -> DatabaseSettings:
    """Database settings pointing at the container's configured database."""
    return DatabaseSettings.model_validate({
        "username": "postgres",
        "password": "password",
        "host": postgres_container.get_container_host_ip(),
        "port": int(postgres_container.get_exposed_port(5432)),
        "database_name": "tidings",
    })


@pytest.fixture
def manager() -> DatabaseLifecycleManager:
    return DatabaseLifecycleManager()


@pytest.fixture
async def database(
    manager: DatabaseLifecycleManager, base_settings: DatabaseSettings
) -> AsyncIterator[EphemeralDatabase]:
    """A migrated ephemeral database, dropped after the test."""
    async with manager.ephemeral(base_settings) as handle:
        yield handle


@pytest.fixture
async def server_conn(
    base_settings: DatabaseSettings,
) -> AsyncIterator[AsyncConnection[tuple[Any, ...]]]:
    """A server-scoped connection for catalog checks."""
    conn = await AsyncConnection.connect(
        base_settings.connection_string_without_db().get_secret_value(), autocommit=True
    )
    try:
        yield conn
    finally:
        await conn.close()
