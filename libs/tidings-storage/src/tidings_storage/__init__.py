"""Tidings Storage — PostgreSQL pool, migrations and ephemeral databases."""

__version__ = "0.1.0"

from tidings_storage.exceptions import (
    DatabaseAlreadyExistsError,
    DatabaseCreationError,
    DatabaseDropError,
    MigrationError,
    PoolCloseError,
    ProvisionError,
    StorageError,
    TeardownError,
)
from tidings_storage.lifecycle import (
    DatabaseLifecycleManager,
    EphemeralDatabase,
    LifecycleState,
    generate_database_name,
)
from tidings_storage.migrator import AlembicMigrator, Migrator
from tidings_storage.pool import ConnectionPool

__all__ = [
    "AlembicMigrator",
    "ConnectionPool",
    "DatabaseAlreadyExistsError",
    "DatabaseCreationError",
    "DatabaseDropError",
    "DatabaseLifecycleManager",
    "EphemeralDatabase",
    "LifecycleState",
    "MigrationError",
    "Migrator",
    "PoolCloseError",
    "ProvisionError",
    "StorageError",
    "TeardownError",
    "generate_database_name",
]
