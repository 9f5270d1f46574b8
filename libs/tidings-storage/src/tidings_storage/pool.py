"""Async connection pool wrapper for psycopg3."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Self

from psycopg import AsyncConnection
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tidings_core.config.settings import DatabaseSettings


class ConnectionPool:
    """Manages an async psycopg connection pool bound to one database."""

    def __init__(self, settings: DatabaseSettings) -> None:
        self._settings = settings
        self._pool: AsyncConnectionPool[AsyncConnection[dict[str, object]]] | None = None

    @property
    def database_name(self) -> str:
        return self._settings.database_name

    @property
    def closed(self) -> bool:
        """True until ``open()`` and again once ``close()`` has started."""
        return self._pool is None

    async def open(self, *, wait: bool = False) -> None:
        """Create and open the pool.

        With ``wait=False`` connections are established in the background, so
        an unreachable server surfaces on first use rather than here.
        """
        self._pool = AsyncConnectionPool[AsyncConnection[dict[str, object]]](
            conninfo=self._settings.connection_string().get_secret_value(),
            min_size=self._settings.min_pool_size,
            max_size=self._settings.max_pool_size,
            timeout=self._settings.pool_timeout,
            open=False,
            kwargs={"row_factory": dict_row},
        )
        await self._pool.open(wait=wait)

    async def close(self) -> None:
        """Close the pool. Closing a closed pool does nothing."""
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection[dict[str, object]]]:
        """Yield an async connection from the pool."""
        if self._pool is None:
            msg = "Connection pool is not open. Call open() first."
            raise RuntimeError(msg)
        async with self._pool.connection() as conn:
            yield conn

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()
