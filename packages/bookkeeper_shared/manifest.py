"""Component manifests and the process-local registry.

Every substrate, adapter, and service declares one manifest in its
``component.py``. Core boot walks the registry to provision per-service
schemas, run migrations, and instantiate components in dependency order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from threading import RLock
from typing import Final, FrozenSet, Literal, NewType, Optional

ComponentId = NewType("ComponentId", str)
ModuleRoot = NewType("ModuleRoot", str)

Layer = Literal[0, 1]
ResourceKind = Literal["substrate", "adapter"]

_COMPONENT_ID_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9_]{1,62}$")
_MODULE_ROOT_RE: Final[re.Pattern[str]] = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)*$"
)


class ManifestError(ValueError):
    """Raised when a manifest or its registration is invalid."""


@dataclass(frozen=True, slots=True)
class ComponentManifest:
    """Fields shared by every component manifest."""

    id: ComponentId
    layer: Layer
    module_roots: FrozenSet[ModuleRoot]

    def __post_init__(self) -> None:
        validate_component_id(self.id)
        if not self.module_roots:
            raise ManifestError("module_roots must not be empty")
        for root in self.module_roots:
            validate_module_root(root)


@dataclass(frozen=True, slots=True)
class ResourceManifest(ComponentManifest):
    """Layer-0 substrate or adapter."""

    layer: Literal[0]
    kind: ResourceKind
    owner_service_id: Optional[ComponentId] = None

    def __post_init__(self) -> None:
        super(ResourceManifest, self).__post_init__()
        if self.owner_service_id is not None:
            validate_component_id(self.owner_service_id)


@dataclass(frozen=True, slots=True)
class ServiceManifest(ComponentManifest):
    """Layer-1 service owning one Postgres schema."""

    layer: Literal[1]
    public_api_roots: FrozenSet[ModuleRoot]
    depends_on: FrozenSet[ComponentId] = frozenset()

    def __post_init__(self) -> None:
        super(ServiceManifest, self).__post_init__()
        if not self.public_api_roots:
            raise ManifestError("public_api_roots must not be empty")
        for root in self.public_api_roots:
            validate_module_root(root)
        for dependency in self.depends_on:
            validate_component_id(dependency)

    @property
    def schema_name(self) -> str:
        """Postgres schema owned by this service."""
        return component_id_to_schema_name(self.id)


@dataclass(slots=True)
class ManifestRegistry:
    """Thread-safe in-memory registry of component manifests."""

    _components: dict[ComponentId, ComponentManifest] = field(default_factory=dict)
    _lock: RLock = field(default_factory=RLock)

    def register_component(self, manifest: ComponentManifest) -> None:
        """Register one manifest; re-registering an identical one is a no-op."""
        with self._lock:
            existing = self._components.get(manifest.id)
            if existing is not None and existing != manifest:
                raise ManifestError(
                    f"duplicate component id with mismatched definition: {manifest.id}"
                )
            self._components[manifest.id] = manifest

    def get_component(self, component_id: ComponentId) -> ComponentManifest:
        try:
            return self._components[component_id]
        except KeyError as exc:
            raise ManifestError(f"component not registered: {component_id}") from exc

    def list_resources(self) -> tuple[ResourceManifest, ...]:
        """Return resources sorted by id."""
        return tuple(
            sorted(
                (c for c in self._components.values() if isinstance(c, ResourceManifest)),
                key=lambda item: str(item.id),
            )
        )

    def list_services(self) -> tuple[ServiceManifest, ...]:
        """Return services sorted by id."""
        return tuple(
            sorted(
                (c for c in self._components.values() if isinstance(c, ServiceManifest)),
                key=lambda item: str(item.id),
            )
        )

    def assert_valid(self) -> None:
        """Check that every resource owner and service dependency is registered."""
        with self._lock:
            known = set(self._components)
            for resource in self.list_resources():
                owner = resource.owner_service_id
                if owner is not None and owner not in known:
                    raise ManifestError(
                        f"resource '{resource.id}' references unknown owner service '{owner}'"
                    )
            for service in self.list_services():
                missing = sorted(str(dep) for dep in service.depends_on - known)
                if missing:
                    raise ManifestError(
                        f"service '{service.id}' depends on unregistered components: "
                        f"{', '.join(missing)}"
                    )


def validate_component_id(value: ComponentId) -> None:
    """Validate the id format, which doubles as a Postgres schema name."""
    raw = str(value)
    if not _COMPONENT_ID_RE.fullmatch(raw):
        raise ManifestError(
            f"invalid component id '{raw}'; expected ^[a-z][a-z0-9_]{{1,62}}$"
        )


def validate_module_root(value: ModuleRoot) -> None:
    raw = str(value)
    if not _MODULE_ROOT_RE.fullmatch(raw):
        raise ManifestError(f"invalid module root '{raw}'")


def component_id_to_schema_name(component_id: ComponentId) -> str:
    """Return the Postgres schema name for one service id."""
    validate_component_id(component_id)
    return str(component_id)


_DEFAULT_REGISTRY = ManifestRegistry()


def register_component(manifest: ComponentManifest) -> ComponentManifest:
    """Register in the default registry and return the manifest."""
    _DEFAULT_REGISTRY.register_component(manifest)
    return manifest


def get_registry() -> ManifestRegistry:
    return _DEFAULT_REGISTRY
