"""Component declaration for the shared Postgres substrate."""

from __future__ import annotations

from collections.abc import Mapping

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ResourceManifest,
    register_component,
)

RESOURCE_COMPONENT_ID = ComponentId("substrate_postgres")

MANIFEST = register_component(
    ResourceManifest(
        id=RESOURCE_COMPONENT_ID,
        layer=0,
        kind="substrate",
        module_roots=frozenset({ModuleRoot("resources.substrates.postgres")}),
    )
)


def build_component(
    *, settings: BookkeeperSettings, components: Mapping[str, object]
) -> object:
    """Build the shared engine owner."""
    del components
    from resources.substrates.postgres.config import resolve_postgres_settings
    from resources.substrates.postgres.substrate import SharedPostgresSubstrate

    return SharedPostgresSubstrate(settings=resolve_postgres_settings(settings))
