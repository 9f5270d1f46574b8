"""Storage error hierarchy for tidings-storage."""


class StorageError(Exception):
    """Base exception for all storage-related errors."""


class ProvisionError(StorageError):
    """Provisioning an ephemeral database failed.

    ``requires_cleanup`` is True when the database was created before the
    failure; the caller still owns it and must drop it by ``database_name``.
    """

    requires_cleanup = False

    def __init__(self, database_name: str, reason: str) -> None:
        super().__init__(reason)
        self.database_name = database_name


class DatabaseAlreadyExistsError(ProvisionError):
    """The generated database name is already taken on the server."""

    def __init__(self, database_name: str) -> None:
        super().__init__(database_name, f"Database {database_name!r} already exists")


class DatabaseCreationError(ProvisionError):
    """CREATE DATABASE could not be issued or failed."""

    def __init__(self, database_name: str, cause: BaseException) -> None:
        super().__init__(database_name, f"Failed to create database {database_name!r}: {cause}")
        self.cause = cause


class MigrationError(ProvisionError):
    """Migrations failed against a freshly created database."""

    requires_cleanup = True

    def __init__(self, database_name: str, cause: BaseException) -> None:
        super().__init__(
            database_name,
            f"Failed to migrate database {database_name!r}: {cause}. "
            f"The database was left in place and must be dropped by the caller.",
        )
        self.cause = cause


class TeardownError(StorageError):
    """Tearing down an ephemeral database failed."""

    def __init__(self, database_name: str, reason: str) -> None:
        super().__init__(reason)
        self.database_name = database_name


class PoolCloseError(TeardownError):
    """The pool bound to the database could not be closed."""

    def __init__(self, database_name: str, cause: BaseException) -> None:
        super().__init__(
            database_name, f"Failed to close the pool for database {database_name!r}: {cause}"
        )
        self.cause = cause


class DatabaseDropError(TeardownError):
    """DROP DATABASE could not be issued or failed."""

    def __init__(self, database_name: str, cause: BaseException) -> None:
        super().__init__(database_name, f"Failed to drop database {database_name!r}: {cause}")
        self.cause = cause
