"""Transport-neutral protocol interfaces used by Event Log Authority Service."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from packages.bookkeeper_shared.events import EventType
from services.state.event_log_authority.domain import LogEntry


class EventLogRepository(Protocol):
    """Append-only log persistence; entries are never updated or deleted."""

    def append(
        self,
        *,
        timestamp: datetime,
        subject_type: str,
        event_type: EventType,
        description: str | None,
    ) -> LogEntry:
        """Insert one entry under a fresh id and return it."""

    def list_all(self) -> list[LogEntry]:
        """Return every entry ordered by ``(timestamp, id)``."""

    def list_by_range(self, *, start: datetime, end: datetime) -> list[LogEntry]:
        """Return entries with ``start <= timestamp <= end``."""
