"""Tidings Service — process boot for the HTTP service."""

__version__ = "0.1.0"

from tidings_service.startup import (
    ServerFactory,
    StartupError,
    StartupStage,
    bind_listener,
    main,
    serve,
)

__all__ = [
    "ServerFactory",
    "StartupError",
    "StartupStage",
    "bind_listener",
    "main",
    "serve",
]
