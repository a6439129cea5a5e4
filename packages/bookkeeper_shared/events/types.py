"""Event Record model exchanged between the catalog and the event log."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventType(str, Enum):
    """Closed set of catalog mutation kinds, serialized by symbolic name."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: object) -> EventType:
        """Return the member named by ``value``; reject missing or unknown names."""
        if isinstance(value, cls):
            return value
        if value is None:
            raise ValueError("eventType is required")
        if not isinstance(value, str):
            raise ValueError(f"eventType must be a string, got {type(value).__name__}")
        try:
            return cls[value]
        except KeyError:
            raise ValueError(f"unknown eventType: {value!r}") from None


class EventRecord(BaseModel):
    """Immutable notification describing one committed mutation batch.

    Field names on the wire are camelCase (``occurredAt``, ``subjectType``,
    ``eventType``); Python callers may use either form.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    occurred_at: datetime = Field(alias="occurredAt")
    subject_type: str = Field(alias="subjectType", min_length=1)
    event_type: EventType = Field(alias="eventType")
    description: str | None = None

    @field_validator("event_type", mode="before")
    @classmethod
    def _parse_event_type(cls, value: object) -> EventType:
        return EventType.parse(value)

    @field_validator("occurred_at")
    @classmethod
    def _normalize_occurred_at(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


def new_event_record(
    *,
    subject_type: str,
    event_type: EventType,
    description: str | None,
    occurred_at: datetime | None = None,
) -> EventRecord:
    """Build one record stamped with the current UTC time unless given."""
    return EventRecord(
        occurred_at=datetime.now(UTC) if occurred_at is None else occurred_at,
        subject_type=subject_type,
        event_type=event_type,
        description=description,
    )
