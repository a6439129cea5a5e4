"""Pydantic settings for the shared Postgres substrate."""

from __future__ import annotations

from typing import Literal
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field, model_validator

from packages.bookkeeper_shared.config import (
    BookkeeperSettings,
    resolve_component_settings,
)
from resources.substrates.postgres.component import RESOURCE_COMPONENT_ID

SslMode = Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]


class PostgresSettings(BaseModel):
    """Connection, pool, and probe settings for ``components.substrate.postgres``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = None
    host: str = "postgres"
    port: int = Field(default=5432, gt=0)
    database: str = "bookkeeper"
    user: str = "bookkeeper"
    password: str = "bookkeeper"
    pool_size: int = Field(default=5, gt=0)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout_seconds: float = Field(default=30.0, gt=0)
    pool_pre_ping: bool = True
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    health_timeout_seconds: float = Field(default=1.0, gt=0)
    sslmode: SslMode = "prefer"

    @model_validator(mode="after")
    def _resolve_url(self) -> "PostgresSettings":
        """Build a psycopg URL from split fields when ``url`` is unset."""
        if self.url is not None and self.url.strip() != "":
            object.__setattr__(self, "url", self.url.strip())
            return self
        object.__setattr__(self, "url", _build_url_from_parts(self))
        return self

    @property
    def is_postgres(self) -> bool:
        """Return ``True`` when the URL targets a PostgreSQL dialect."""
        return (self.url or "").startswith("postgresql")


def _build_url_from_parts(postgres: PostgresSettings) -> str:
    host = postgres.host.strip()
    database = postgres.database.strip()
    user = postgres.user.strip()
    if host == "":
        raise ValueError("substrate.postgres.host is required when url is unset")
    if database == "":
        raise ValueError("substrate.postgres.database is required when url is unset")
    if user == "":
        raise ValueError("substrate.postgres.user is required when url is unset")
    return (
        "postgresql+psycopg://"
        f"{quote_plus(user)}:{quote_plus(postgres.password)}"
        f"@{host}:{postgres.port}/{quote_plus(database)}"
    )


def resolve_postgres_settings(settings: BookkeeperSettings) -> PostgresSettings:
    """Resolve Postgres substrate settings from ``components.substrate.postgres``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(RESOURCE_COMPONENT_ID),
        model=PostgresSettings,
    )
