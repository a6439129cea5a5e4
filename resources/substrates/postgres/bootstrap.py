"""Pre-migration provisioning of per-service Postgres schemas."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Connection, text

from packages.bookkeeper_shared.component_loader import (
    import_registered_component_modules,
)
from packages.bookkeeper_shared.config import BookkeeperSettings, load_settings
from packages.bookkeeper_shared.manifest import ServiceManifest, get_registry
from packages.bookkeeper_shared.logging import get_logger
from resources.substrates.postgres.config import resolve_postgres_settings
from resources.substrates.postgres.engine import create_postgres_engine

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class BootstrapResult:
    """Summary of one schema provisioning pass."""

    imported_components: tuple[str, ...]
    provisioned_schemas: tuple[str, ...]


def bootstrap_service_schemas(
    settings: BookkeeperSettings | None = None,
) -> BootstrapResult:
    """Create the schema owned by each registered service if it is missing."""
    resolved_settings = load_settings() if settings is None else settings
    postgres_settings = resolve_postgres_settings(resolved_settings)

    imported = import_registered_component_modules()
    registry = get_registry()
    registry.assert_valid()
    services = registry.list_services()
    if not services:
        raise RuntimeError("no registered services discovered; refusing schema bootstrap")

    engine = create_postgres_engine(postgres_settings)
    try:
        with engine.begin() as connection:
            provisioned = tuple(
                _provision_service_schema(connection=connection, service=service)
                for service in services
            )
    finally:
        engine.dispose()

    _LOGGER.info(
        "service schemas provisioned",
        extra={"schemas": list(provisioned)},
    )
    return BootstrapResult(
        imported_components=imported,
        provisioned_schemas=provisioned,
    )


def _provision_service_schema(*, connection: Connection, service: ServiceManifest) -> str:
    schema = service.schema_name
    connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema}"))
    return schema
