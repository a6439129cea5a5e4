"""Append-only SQL repository for the event log."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import insert, select

from packages.bookkeeper_shared.events import EventType
from packages.bookkeeper_shared.ids import generate_ulid_bytes, ulid_bytes_to_str
from resources.substrates.postgres.schema_session import ServiceSchemaSessionProvider
from services.state.event_log_authority.domain import LogEntry
from services.state.event_log_authority.interfaces import EventLogRepository

from .schema import event_logs

_ORDERING = (event_logs.c.timestamp.asc(), event_logs.c.id.asc())


class SqlEventLogRepository(EventLogRepository):
    """SQL repository over event-log-owned schema tables."""

    def __init__(self, sessions: ServiceSchemaSessionProvider) -> None:
        self._sessions = sessions

    def append(
        self,
        *,
        timestamp: datetime,
        subject_type: str,
        event_type: EventType,
        description: str | None,
    ) -> LogEntry:
        """Insert one entry; duplicates of an earlier record get their own id."""
        row = {
            "id": generate_ulid_bytes(),
            "timestamp": _utc(timestamp),
            "subject_type": subject_type,
            "event_type": event_type.value,
            "description": description,
        }
        with self._sessions.session() as session:
            session.execute(insert(event_logs).values(**row))
        return _to_entry(row)

    def list_all(self) -> list[LogEntry]:
        """Read every entry in ``(timestamp, id)`` order."""
        with self._sessions.session() as session:
            rows = session.execute(select(event_logs).order_by(*_ORDERING)).mappings()
            return [_to_entry(row) for row in rows]

    def list_by_range(self, *, start: datetime, end: datetime) -> list[LogEntry]:
        """Read entries inside the inclusive ``[start, end]`` window."""
        lower, upper = _utc(start), _utc(end)
        if lower > upper:
            return []
        with self._sessions.session() as session:
            rows = session.execute(
                select(event_logs)
                .where(event_logs.c.timestamp >= lower, event_logs.c.timestamp <= upper)
                .order_by(*_ORDERING)
            ).mappings()
            return [_to_entry(row) for row in rows]


def _utc(value: datetime) -> datetime:
    """Pin naive values to UTC and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_entry(row: Mapping[str, Any]) -> LogEntry:
    """Map one SQL row to strict domain log entry."""
    value = row["timestamp"]
    if not isinstance(value, datetime):
        raise ValueError("expected datetime column for timestamp")
    return LogEntry(
        id=ulid_bytes_to_str(bytes(row["id"])),
        timestamp=_utc(value),
        subject_type=str(row["subject_type"]),
        event_type=EventType.parse(row["event_type"]),
        description=row["description"],
    )
