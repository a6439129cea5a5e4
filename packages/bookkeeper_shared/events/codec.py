"""JSON wire codec for Event Records."""

from __future__ import annotations

from pydantic import ValidationError

from .types import EventRecord

CONTENT_TYPE = "application/json"


class EventDecodeError(ValueError):
    """Raised when a channel body cannot be decoded into an Event Record."""


def encode_event(record: EventRecord) -> str:
    """Serialize one record as a camelCase JSON document."""
    return record.model_dump_json(by_alias=True)


def decode_event(body: str | bytes, *, content_type: str = CONTENT_TYPE) -> EventRecord:
    """Parse one channel body, rejecting foreign content types and bad payloads."""
    if content_type.split(";", 1)[0].strip().lower() != CONTENT_TYPE:
        raise EventDecodeError(f"unsupported content type: {content_type!r}")
    try:
        return EventRecord.model_validate_json(body)
    except ValidationError as exc:
        raise EventDecodeError(_summarize(exc)) from exc


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "body"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "invalid event record"
