"""Component declaration for Catalog Authority Service."""

from __future__ import annotations

from collections.abc import Mapping

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ServiceManifest,
    register_component,
)

SERVICE_COMPONENT_ID = ComponentId("service_catalog_authority")

MANIFEST = register_component(
    ServiceManifest(
        id=SERVICE_COMPONENT_ID,
        layer=1,
        module_roots=frozenset({ModuleRoot("services.state.catalog_authority")}),
        public_api_roots=frozenset(
            {ModuleRoot("services.state.catalog_authority.service")}
        ),
        depends_on=frozenset(
            {
                ComponentId("substrate_postgres"),
                ComponentId("adapter_event_channel"),
            }
        ),
    )
)


def build_component(
    *, settings: BookkeeperSettings, components: Mapping[str, object]
) -> object:
    """Build concrete runtime instance for this registered service component."""
    from services.state.catalog_authority.service import (
        build_catalog_authority_service,
    )

    return build_catalog_authority_service(
        settings=settings,
        postgres=components["substrate_postgres"],
        channel=components["adapter_event_channel"],
    )
