"""Shared Postgres substrate contract and implementation."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict
from sqlalchemy import Engine

from resources.substrates.postgres.config import PostgresSettings
from resources.substrates.postgres.engine import create_postgres_engine
from resources.substrates.postgres.health import ping


class PostgresHealthStatus(BaseModel):
    """Postgres substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class PostgresSubstrate(Protocol):
    """Shared engine handle plus readiness probe."""

    @property
    def engine(self) -> Engine:
        """Return the underlying SQLAlchemy engine."""

    def health(self) -> PostgresHealthStatus:
        """Probe readiness."""


class SharedPostgresSubstrate(PostgresSubstrate):
    """Engine owner shared by every service that persists to Postgres."""

    def __init__(self, *, settings: PostgresSettings) -> None:
        self._settings = settings
        self._engine = create_postgres_engine(settings)

    @property
    def engine(self) -> Engine:
        return self._engine

    def health(self) -> PostgresHealthStatus:
        ready = ping(self._engine, timeout_seconds=self._settings.health_timeout_seconds)
        return PostgresHealthStatus(
            ready=ready,
            detail="ok" if ready else "postgres ping failed",
        )

    def dispose(self) -> None:
        """Close pooled connections."""
        self._engine.dispose()
