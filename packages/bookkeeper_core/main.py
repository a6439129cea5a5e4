"""Process entrypoint for Bookkeeper startup orchestration."""

from __future__ import annotations

import signal
import sys
import threading
from collections.abc import Callable, Mapping
from typing import Any

from packages.bookkeeper_core.migrations import run_startup_migrations
from packages.bookkeeper_shared.component_loader import (
    import_component_modules,
    import_registered_component_modules,
)
from packages.bookkeeper_shared.config import BookkeeperSettings, load_settings
from packages.bookkeeper_shared.logging import configure_logging, get_logger
from packages.bookkeeper_shared.manifest import ComponentManifest, get_registry

_LOGGER = get_logger(__name__)

ComponentBuilder = Callable[..., object]

# Lifecycle methods tried, in order, on each component during shutdown.
_SHUTDOWN_METHODS = ("shutdown", "dispose", "close")


def _component_module(module_root: str) -> Any:
    module_name = f"{module_root}.component"
    import_component_modules((module_name,))
    return sys.modules[module_name]


def _resolve_component_builder(manifest: ComponentManifest) -> ComponentBuilder:
    """Load one component module and return its build callable."""
    for module_root in sorted(manifest.module_roots):
        builder = getattr(_component_module(module_root), "build_component", None)
        if callable(builder):
            return builder
    raise RuntimeError(
        f"component '{manifest.id}' does not expose build_component(...) in its component module"
    )


def _resolve_component_after_boot(
    manifest: ComponentManifest,
) -> Callable[..., None] | None:
    """Load one optional component-level ``after_boot`` lifecycle callable."""
    for module_root in sorted(manifest.module_roots):
        lifecycle = getattr(_component_module(module_root), "after_boot", None)
        if callable(lifecycle):
            return lifecycle
    return None


def instantiate_registered_components(
    settings: BookkeeperSettings,
    *,
    resolve_builder: Callable[[ComponentManifest], ComponentBuilder] = (
        _resolve_component_builder
    ),
) -> dict[str, object]:
    """Instantiate all registered L0 resources and L1 services by registry walk.

    A builder that raises ``KeyError`` is asking for a component not built yet;
    it is retried in the next round.
    """
    registry = get_registry()
    pending = [*registry.list_resources(), *registry.list_services()]
    built: dict[str, object] = {}

    while pending:
        progressed = False
        next_round: list[ComponentManifest] = []
        for manifest in pending:
            builder = resolve_builder(manifest)
            try:
                built[str(manifest.id)] = builder(settings=settings, components=built)
            except KeyError:
                next_round.append(manifest)
                continue
            progressed = True
            _LOGGER.info(
                "component instantiated",
                extra={"component_id": str(manifest.id), "layer": manifest.layer},
            )

        if not progressed:
            unresolved = ", ".join(str(item.id) for item in next_round)
            raise RuntimeError(
                "unable to resolve component dependency graph; unresolved components: "
                f"{unresolved}"
            )
        pending = next_round
    return built


def run_after_boot_lifecycle(
    *,
    settings: BookkeeperSettings,
    components: Mapping[str, object],
    resolve_after_boot: Callable[
        [ComponentManifest], Callable[..., None] | None
    ] = _resolve_component_after_boot,
) -> None:
    """Run optional per-component ``after_boot`` lifecycle hooks."""
    registry = get_registry()
    manifests_by_id = {
        str(manifest.id): manifest
        for manifest in [*registry.list_resources(), *registry.list_services()]
    }
    for component_id in components:
        manifest = manifests_by_id.get(component_id)
        if manifest is None:
            raise RuntimeError(
                f"component '{component_id}' is instantiated but missing from registry"
            )
        after_boot = resolve_after_boot(manifest)
        if after_boot is None:
            continue
        after_boot(settings=settings, components=components)
        _LOGGER.info(
            "component after_boot completed", extra={"component_id": component_id}
        )


def shutdown_components(components: Mapping[str, object]) -> None:
    """Stop components in reverse build order; one failure does not stop the rest."""
    for component_id in reversed(list(components)):
        component = components[component_id]
        for method_name in _SHUTDOWN_METHODS:
            method = getattr(component, method_name, None)
            if not callable(method):
                continue
            try:
                method()
            except Exception:
                _LOGGER.exception(
                    "component shutdown failed",
                    extra={"component_id": component_id, "method": method_name},
                )
            break


def main() -> None:
    """Discover components, instantiate them, run startup, and hold process."""
    settings = load_settings()
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
    )

    imported = import_registered_component_modules()
    registry = get_registry()
    registry.assert_valid()
    _LOGGER.info(
        "component registration completed",
        extra={
            "imported_count": len(imported),
            "service_count": len(registry.list_services()),
            "resource_count": len(registry.list_resources()),
        },
    )

    boot_settings = settings.components.core_boot
    if boot_settings.run_migrations_on_startup:
        run_startup_migrations(settings=settings)

    components = instantiate_registered_components(settings)
    stop_requested = threading.Event()

    def _handle_shutdown(_signum: int, _frame: object) -> None:
        stop_requested.set()

    signal.signal(signal.SIGINT, _handle_shutdown)
    signal.signal(signal.SIGTERM, _handle_shutdown)
    try:
        run_after_boot_lifecycle(settings=settings, components=components)
        _LOGGER.info(
            "bookkeeper startup completed",
            extra={
                "components": list(components),
                "migrations_executed": boot_settings.run_migrations_on_startup,
            },
        )
        while not stop_requested.wait(1.0):
            pass
    finally:
        shutdown_components(components)
        _LOGGER.info("bookkeeper runtime stopped")


if __name__ == "__main__":
    main()
