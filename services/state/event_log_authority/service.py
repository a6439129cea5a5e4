"""Authoritative in-process Python API for Event Log Authority Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.envelope import Envelope, EnvelopeMeta
from resources.adapters.event_channel.adapter import EventChannel
from resources.substrates.postgres.substrate import PostgresSubstrate
from services.state.event_log_authority.domain import HealthStatus, LogEntry


class EventLogAuthorityService(ABC):
    """Public read API over the append-only event log."""

    @abstractmethod
    def list_events(self, *, meta: EnvelopeMeta) -> Envelope[list[LogEntry]]:
        """Return every log entry in ``(timestamp, id)`` order."""

    @abstractmethod
    def list_events_in_range(
        self, *, meta: EnvelopeMeta, start: datetime, end: datetime
    ) -> Envelope[list[LogEntry]]:
        """Return entries with timestamps inside the inclusive window."""

    @abstractmethod
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return event log and owned dependency readiness status."""


def build_event_log_authority_service(
    *,
    settings: BookkeeperSettings,
    channel: EventChannel,
    postgres: PostgresSubstrate | None = None,
) -> EventLogAuthorityService:
    """Build default Event Log Authority implementation from typed settings."""
    from services.state.event_log_authority.implementation import (
        DefaultEventLogAuthorityService,
    )

    return DefaultEventLogAuthorityService.from_settings(
        settings, channel=channel, postgres=postgres
    )
