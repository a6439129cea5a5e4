"""Behavior tests for the Event Log Authority read API."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from packages.bookkeeper_shared.envelope import EnvelopeKind, new_meta
from packages.bookkeeper_shared.errors import codes
from packages.bookkeeper_shared.events import EventType
from resources.adapters.event_channel.config import EventChannelSettings
from resources.adapters.event_channel.redis_event_channel import (
    RedisStreamEventChannel,
)
from services.state.event_log_authority.config import EventLogAuthoritySettings
from services.state.event_log_authority.data import EventLogPostgresRuntime, metadata
from services.state.event_log_authority.implementation import (
    DefaultEventLogAuthorityService,
)
from tests.support.fake_redis import FakeStreamRedis
from tests.support.redis_stack import fake_redis_substrate
from tests.support.sqlite import sqlite_engine

_BASE = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


def _meta() -> object:
    """Return valid envelope metadata for event log queries."""
    return new_meta(kind=EnvelopeKind.QUERY, source="test", principal="operator")


def _service(
    monkeypatch: pytest.MonkeyPatch,
) -> tuple[DefaultEventLogAuthorityService, FakeStreamRedis]:
    substrate, fake = fake_redis_substrate(monkeypatch)
    channel = RedisStreamEventChannel(settings=EventChannelSettings(), substrate=substrate)
    service = DefaultEventLogAuthorityService.from_runtime(
        settings=EventLogAuthoritySettings(),
        runtime=EventLogPostgresRuntime.from_engine(sqlite_engine(metadata)),
        channel=channel,
    )
    return service, fake


def _seed(service: DefaultEventLogAuthorityService, *offsets: int) -> None:
    for minutes in offsets:
        service._repository.append(
            timestamp=_BASE + timedelta(minutes=minutes),
            subject_type="Book",
            event_type=EventType.CREATE,
            description=f"m{minutes}",
        )


def test_list_events_returns_entries_in_time_order(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    service, _ = _service(monkeypatch)
    _seed(service, 20, 0, 10)

    result = service.list_events(meta=_meta())

    assert result.ok is True
    assert [entry.description for entry in result.value or []] == ["m0", "m10", "m20"]


def test_list_events_in_range_is_inclusive(monkeypatch: pytest.MonkeyPatch) -> None:
    service, _ = _service(monkeypatch)
    _seed(service, 0, 10, 20, 30)

    result = service.list_events_in_range(
        meta=_meta(),
        start=_BASE + timedelta(minutes=10),
        end=_BASE + timedelta(minutes=20),
    )

    assert [entry.description for entry in result.value or []] == ["m10", "m20"]


def test_inverted_range_succeeds_with_no_entries(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    service, _ = _service(monkeypatch)
    _seed(service, 0)

    result = service.list_events_in_range(
        meta=_meta(), start=_BASE + timedelta(minutes=1), end=_BASE
    )

    assert result.ok is True
    assert result.value == []


def test_naive_range_bounds_are_read_as_utc(monkeypatch: pytest.MonkeyPatch) -> None:
    service, _ = _service(monkeypatch)
    _seed(service, 0)

    result = service.list_events_in_range(
        meta=_meta(),
        start=_BASE.replace(tzinfo=None),
        end=_BASE.replace(tzinfo=None),
    )

    assert [entry.description for entry in result.value or []] == ["m0"]


def test_range_requires_datetimes(monkeypatch: pytest.MonkeyPatch) -> None:
    service, _ = _service(monkeypatch)

    result = service.list_events_in_range(meta=_meta(), start="yesterday", end=_BASE)

    assert result.ok is False
    assert result.errors[0].code == codes.INVALID_ARGUMENT
    assert result.errors[0].metadata["field"] == "start"


def test_log_entry_response_shape(monkeypatch: pytest.MonkeyPatch) -> None:
    service, _ = _service(monkeypatch)
    _seed(service, 0)

    [entry] = service.list_events(meta=_meta()).value or []

    assert entry.to_response() == {
        "id": entry.id,
        "timestamp": "2026-03-01T08:00:00+00:00",
        "subjectType": "Book",
        "eventType": "CREATE",
        "description": "m0",
    }


def test_health_reports_worker_and_channel_state(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    service, fake = _service(monkeypatch)

    idle = service.health(meta=_meta())
    fake.healthy = False
    degraded = service.health(meta=_meta())

    assert idle.value is not None
    assert idle.value.detail == "ok"
    assert idle.value.worker_running is False
    assert degraded.value is not None
    assert degraded.value.channel_ready is False
    assert degraded.value.detail == "event channel unavailable"
