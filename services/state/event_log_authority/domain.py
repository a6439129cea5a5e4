"""Domain contracts for Event Log Authority Service payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from packages.bookkeeper_shared.events import EventType


class LogEntry(BaseModel):
    """One durable, immutable entry derived from an ingested Event Record."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    timestamp: datetime
    subject_type: str
    event_type: EventType
    description: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Return the camelCase read shape exposed to log consumers."""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "subjectType": self.subject_type,
            "eventType": self.event_type.value,
            "description": self.description,
        }


class HealthStatus(BaseModel):
    """Event log service and owned dependency readiness status payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_ready: bool
    substrate_ready: bool
    channel_ready: bool
    worker_running: bool
    detail: str
