"""Tests for core startup migration discovery and execution behavior."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace

import pytest
from alembic.config import Config

from packages.bookkeeper_core.migrations import (
    MigrationExecutionError,
    discover_service_migration_configs,
    run_startup_migrations,
)
from packages.bookkeeper_shared.config import BookkeeperSettings

_REPO_ROOT = Path(__file__).resolve().parents[2]


@dataclass(frozen=True, slots=True)
class _FakeService:
    """Minimal service manifest shape for migration discovery tests."""

    id: str
    module_roots: frozenset[str]


@dataclass(frozen=True, slots=True)
class _FakeRegistry:
    """Minimal registry shape for migration discovery tests."""

    services: tuple[_FakeService, ...]

    def assert_valid(self) -> None:
        """Satisfy registry contract used by migration discovery."""

    def list_services(self) -> tuple[_FakeService, ...]:
        return self.services


def _write_ini(root: Path, *parts: str) -> Path:
    ini = root.joinpath(*parts, "migrations", "alembic.ini")
    ini.parent.mkdir(parents=True)
    ini.write_text("[alembic]\n", encoding="utf-8")
    return ini


def _bootstrap(**_kwargs: object) -> SimpleNamespace:
    return SimpleNamespace(
        imported_components=("services.state.a.component",),
        provisioned_schemas=("service_a",),
    )


def test_discover_service_migration_configs_follows_registry_order(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """Discovery should emit one config per service and skip services without one."""
    first = _write_ini(tmp_path, "services", "state", "a")
    second = _write_ini(tmp_path, "services", "state", "b")

    registry = _FakeRegistry(
        services=(
            _FakeService(id="service_a", module_roots=frozenset({"services.state.a"})),
            _FakeService(id="service_b", module_roots=frozenset({"services.state.b"})),
            _FakeService(id="service_c", module_roots=frozenset({"services.state.c"})),
        )
    )
    monkeypatch.setattr(
        "packages.bookkeeper_core.migrations.import_registered_component_modules",
        lambda repo_root=None: tuple(),
    )
    monkeypatch.setattr(
        "packages.bookkeeper_core.migrations.get_registry", lambda: registry
    )

    configs = discover_service_migration_configs(repo_root=tmp_path)

    assert configs == (first, second)


def test_discover_service_migration_configs_finds_both_state_services() -> None:
    """The real repo should ship migrations for the catalog and event log."""
    configs = discover_service_migration_configs(repo_root=_REPO_ROOT)

    relative = {path.relative_to(_REPO_ROOT).as_posix() for path in configs}
    assert "services/state/catalog_authority/migrations/alembic.ini" in relative
    assert "services/state/event_log_authority/migrations/alembic.ini" in relative


def test_run_startup_migrations_executes_bootstrap_then_alembic_upgrades(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """Migration runner should include bootstrap result and execute each config."""
    ini_a = _write_ini(tmp_path, "services", "state", "a")
    ini_b = _write_ini(tmp_path, "services", "state", "b")
    monkeypatch.setattr(
        "packages.bookkeeper_core.migrations.discover_service_migration_configs",
        lambda repo_root=None: (ini_a, ini_b),
    )

    calls: list[tuple[str, str]] = []

    def _upgrade(config: Config, revision: str) -> None:
        calls.append((str(config.config_file_name), revision))

    result = run_startup_migrations(
        settings=BookkeeperSettings(),
        repo_root=tmp_path,
        upgrade_fn=_upgrade,
        bootstrap_fn=_bootstrap,
    )

    assert result.imported_components == ("services.state.a.component",)
    assert result.provisioned_schemas == ("service_a",)
    assert result.executed_alembic_configs == (str(ini_a), str(ini_b))
    assert calls == [(str(ini_a), "head"), (str(ini_b), "head")]


def test_run_startup_migrations_raises_on_upgrade_failure(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """Migration runner should fail hard when one alembic upgrade errors."""
    ini = _write_ini(tmp_path, "services", "state", "a")
    monkeypatch.setattr(
        "packages.bookkeeper_core.migrations.discover_service_migration_configs",
        lambda repo_root=None: (ini,),
    )

    def _upgrade(config: Config, revision: str) -> None:
        raise RuntimeError("boom")

    with pytest.raises(MigrationExecutionError) as exc_info:
        run_startup_migrations(
            settings=BookkeeperSettings(),
            repo_root=tmp_path,
            upgrade_fn=_upgrade,
            bootstrap_fn=_bootstrap,
        )

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert str(ini) in str(exc_info.value)
