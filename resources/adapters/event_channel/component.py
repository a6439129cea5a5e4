"""Component declaration for the event channel adapter."""

from __future__ import annotations

from collections.abc import Mapping

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ResourceManifest,
    register_component,
)

RESOURCE_COMPONENT_ID = ComponentId("adapter_event_channel")

MANIFEST = register_component(
    ResourceManifest(
        id=RESOURCE_COMPONENT_ID,
        layer=0,
        kind="adapter",
        module_roots=frozenset({ModuleRoot("resources.adapters.event_channel")}),
    )
)


def build_component(
    *, settings: BookkeeperSettings, components: Mapping[str, object]
) -> object:
    """Build the Redis Streams channel on top of ``substrate_redis``."""
    from resources.adapters.event_channel.config import (
        resolve_event_channel_settings,
    )
    from resources.adapters.event_channel.redis_event_channel import (
        RedisStreamEventChannel,
    )

    return RedisStreamEventChannel(
        settings=resolve_event_channel_settings(settings),
        substrate=components["substrate_redis"],
    )
