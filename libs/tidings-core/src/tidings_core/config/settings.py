"""Typed settings tree produced by the configuration resolver."""

from typing import Self
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from tidings_core.logging import MASK

SCHEME = "postgres"


class Password(SecretStr):
    """A SecretStr that renders masked even when empty, so emptiness is not revealed."""

    def _display(self) -> str:
        return MASK


class DatabaseSettings(BaseModel):
    """PostgreSQL connection settings.

    Only ``database_name`` may be reassigned after construction; the lifecycle
    manager points copies of these settings at freshly generated databases.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    username: str = Field(frozen=True)
    password: Password = Field(frozen=True)
    host: str = Field(frozen=True)
    port: int = Field(ge=0, le=65535, frozen=True)
    database_name: str

    min_pool_size: int = Field(default=1, ge=0, frozen=True)
    max_pool_size: int = Field(default=10, gt=0, frozen=True)
    pool_timeout: float = Field(default=30.0, gt=0, frozen=True)

    @model_validator(mode="after")
    def check_pool_bounds(self) -> Self:
        if self.min_pool_size > self.max_pool_size:
            msg = (
                f"min_pool_size ({self.min_pool_size}) must not exceed "
                f"max_pool_size ({self.max_pool_size})"
            )
            raise ValueError(msg)
        return self

    def with_database_name(self, database_name: str) -> "DatabaseSettings":
        """Return a copy addressed at another database."""
        return self.model_copy(update={"database_name": database_name})

    def connection_string(self) -> SecretStr:
        """Connection string scoped to ``database_name``."""
        return SecretStr(f"{self._server_url()}/{quote(self.database_name, safe='')}")

    def connection_string_without_db(self) -> SecretStr:
        """Connection string for the server itself, used to create and drop databases."""
        return SecretStr(self._server_url())

    def _server_url(self) -> str:
        user = quote(self.username, safe="")
        password = quote(self.password.get_secret_value(), safe="")
        return f"{SCHEME}://{user}:{password}@{self.host}:{self.port}"


class ApplicationSettings(BaseModel):
    """Where the HTTP layer binds. ``port`` accepts ``8000`` and ``"8000"`` alike."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str
    port: int = Field(ge=0, le=65535)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


class Settings(BaseSettings):
    """Root settings object.

    Sources, lowest to highest precedence:
    1. merged TOML files, passed as constructor arguments by the resolver
    2. APP_* environment variables, ``__`` separating nested keys
       (``APP_DATABASE__PORT=5433``)
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    database: DatabaseSettings
    application: ApplicationSettings

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],  # noqa: ARG003
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (env_settings, init_settings)
