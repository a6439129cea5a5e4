"""Catalog-owned Postgres runtime wiring."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.manifest import component_id_to_schema_name
from resources.substrates.postgres import (
    ServiceSchemaSessionProvider,
    create_postgres_engine,
    create_session_factory,
    ping,
)
from resources.substrates.postgres.config import resolve_postgres_settings
from services.state.catalog_authority.component import SERVICE_COMPONENT_ID


@dataclass(frozen=True)
class CatalogPostgresRuntime:
    """Concrete catalog-owned handle for schema-scoped Postgres access."""

    engine: Engine
    session_factory: sessionmaker[Session]
    schema_sessions: ServiceSchemaSessionProvider

    @classmethod
    def from_engine(
        cls, engine: Engine, *, schema: str | None = None
    ) -> "CatalogPostgresRuntime":
        """Wrap an existing engine; ``schema=None`` leaves ``search_path`` alone."""
        session_factory = create_session_factory(engine)
        return cls(
            engine=engine,
            session_factory=session_factory,
            schema_sessions=ServiceSchemaSessionProvider(
                session_factory=session_factory,
                schema=schema,
            ),
        )

    @classmethod
    def from_settings(cls, settings: BookkeeperSettings) -> "CatalogPostgresRuntime":
        """Build catalog DB runtime from typed application settings."""
        engine = create_postgres_engine(resolve_postgres_settings(settings))
        return cls.from_engine(engine, schema=catalog_postgres_schema())

    def is_healthy(self) -> bool:
        """Return ``True`` when backing Postgres connection is reachable."""
        return ping(self.engine)


def catalog_postgres_schema() -> str:
    """Resolve canonical catalog schema name from component identity."""
    return component_id_to_schema_name(SERVICE_COMPONENT_ID)
