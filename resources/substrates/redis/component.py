"""Component declaration for the Redis substrate."""

from __future__ import annotations

from collections.abc import Mapping

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.manifest import (
    ComponentId,
    ModuleRoot,
    ResourceManifest,
    register_component,
)

RESOURCE_COMPONENT_ID = ComponentId("substrate_redis")

MANIFEST = register_component(
    ResourceManifest(
        id=RESOURCE_COMPONENT_ID,
        layer=0,
        kind="substrate",
        module_roots=frozenset({ModuleRoot("resources.substrates.redis")}),
    )
)


def build_component(
    *, settings: BookkeeperSettings, components: Mapping[str, object]
) -> object:
    """Build the redis-py backed stream substrate."""
    del components
    from resources.substrates.redis.config import resolve_redis_settings
    from resources.substrates.redis.redis_substrate import RedisClientSubstrate

    return RedisClientSubstrate(settings=resolve_redis_settings(settings))
