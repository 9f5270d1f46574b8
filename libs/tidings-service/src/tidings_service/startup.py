"""Process boot: configuration, listener and database pool, then the HTTP server.

The HTTP layer plugs in as a ``ServerFactory``. Every boot failure is raised
as a ``StartupError`` naming the stage that failed; ``main`` turns it into a
logged diagnostic and a non-zero exit code.
"""

from __future__ import annotations

import asyncio
import socket
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from tidings_core.config import ConfigError, environment_from_env, resolve
from tidings_core.logging import format_for, get_logger, setup_logging
from tidings_storage.pool import ConnectionPool

if TYPE_CHECKING:
    from collections.abc import Awaitable
    from pathlib import Path

    from tidings_core.config import ApplicationSettings, Environment

logger = get_logger(__name__)


class ServerFactory(Protocol):
    """Builds the HTTP server around a bound listener and a database pool."""

    def __call__(self, listener: socket.socket, pool: ConnectionPool) -> Awaitable[None]: ...


class StartupStage(StrEnum):
    """Boot stages, in order."""

    CONFIGURATION = "CONFIGURATION"
    LISTENER = "LISTENER"
    DATABASE = "DATABASE"
    SERVER = "SERVER"


class StartupError(Exception):
    """The process could not start serving."""

    def __init__(self, stage: StartupStage, cause: BaseException) -> None:
        super().__init__(f"Startup failed at stage {stage.value}: {cause}")
        self.stage = stage
        self.cause = cause


def bind_listener(settings: ApplicationSettings) -> socket.socket:
    """Bind a listening TCP socket on ``settings.address``."""
    return socket.create_server((settings.host, settings.port))


async def serve(
    server_factory: ServerFactory,
    environment: Environment | str | None = None,
    config_dir: Path | None = None,
) -> None:
    """Resolve configuration, bind, open the pool and run the server until it returns."""
    try:
        settings = resolve(environment, config_dir)
    except ConfigError as exc:
        raise StartupError(StartupStage.CONFIGURATION, exc) from exc

    try:
        listener = bind_listener(settings.application)
    except OSError as exc:
        raise StartupError(StartupStage.LISTENER, exc) from exc

    pool = ConnectionPool(settings.database)
    try:
        try:
            await pool.open()
        except Exception as exc:
            raise StartupError(StartupStage.DATABASE, exc) from exc

        logger.info(
            "server_starting",
            address=settings.application.address,
            database_name=settings.database.database_name,
        )
        try:
            await server_factory(listener, pool)
        except Exception as exc:
            raise StartupError(StartupStage.SERVER, exc) from exc
    finally:
        await pool.close()
        listener.close()


def main(server_factory: ServerFactory) -> int:
    """Process entry point. Returns the exit code."""
    try:
        environment = environment_from_env()
    except ConfigError as exc:
        setup_logging()
        logger.error("startup_failed", stage=StartupStage.CONFIGURATION.value, error=str(exc))
        return 1

    setup_logging(format=format_for(environment))
    try:
        asyncio.run(serve(server_factory, environment))
    except StartupError as exc:
        logger.error("startup_failed", stage=exc.stage.value, error=str(exc.cause))
        return 1
    except KeyboardInterrupt:
        logger.info("server_stopped", reason="interrupted")
    return 0
