"""Discovery and import of ``component.py`` declaration modules."""

from __future__ import annotations

import importlib
from pathlib import Path

_DISCOVERY_ROOTS = ("resources", "services")


def discover_component_modules(repo_root: Path | None = None) -> tuple[str, ...]:
    """Return dotted import paths of every manifest-declaring component module."""
    root = (repo_root or Path.cwd()).resolve()
    modules: list[str] = []
    for discovery_root in _DISCOVERY_ROOTS:
        package_root = root / discovery_root
        if not package_root.is_dir():
            continue
        for component_file in sorted(package_root.rglob("component.py")):
            relative = component_file.relative_to(root)
            if "tests" in relative.parts:
                continue
            if not _declares_manifest(component_file):
                continue
            modules.append(".".join(relative.with_suffix("").parts))
    return tuple(modules)


def import_component_modules(modules: tuple[str, ...]) -> tuple[str, ...]:
    """Import modules so their ``register_component`` calls run."""
    for module in modules:
        importlib.import_module(module)
    return modules


def import_registered_component_modules(
    repo_root: Path | None = None,
) -> tuple[str, ...]:
    """Discover then import every component declaration module."""
    return import_component_modules(discover_component_modules(repo_root=repo_root))


def _declares_manifest(component_file: Path) -> bool:
    source = component_file.read_text(encoding="utf-8")
    return "MANIFEST" in source and "register_component(" in source
