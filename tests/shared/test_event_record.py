"""Tests for the Event Record model and its JSON wire codec."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest

from packages.bookkeeper_shared.events import (
    EventDecodeError,
    EventRecord,
    EventType,
    decode_event,
    encode_event,
    new_event_record,
)


def test_encode_event_uses_camel_case_wire_names() -> None:
    record = new_event_record(
        subject_type="Book",
        event_type=EventType.CREATE,
        description="New books were created with IDs: A",
        occurred_at=datetime(2026, 10, 19, 8, 30, tzinfo=UTC),
    )

    document = json.loads(encode_event(record))

    assert document == {
        "occurredAt": "2026-10-19T08:30:00Z",
        "subjectType": "Book",
        "eventType": "CREATE",
        "description": "New books were created with IDs: A",
    }


def test_decode_event_reads_symbolic_event_type_and_normalizes_offset() -> None:
    body = json.dumps(
        {
            "occurredAt": "2026-10-19T10:30:00+02:00",
            "subjectType": "Book",
            "eventType": "DELETE",
            "description": None,
        }
    )

    record = decode_event(body)

    assert record.event_type is EventType.DELETE
    assert record.occurred_at == datetime(2026, 10, 19, 8, 30, tzinfo=UTC)
    assert record.description is None


def test_decode_event_ignores_unknown_fields() -> None:
    body = json.dumps(
        {
            "occurredAt": "2026-10-19T08:30:00Z",
            "subjectType": "Book",
            "eventType": "UPDATE",
            "producer": "catalog",
        }
    )

    assert decode_event(body).event_type is EventType.UPDATE


def test_new_event_record_stamps_current_utc_time() -> None:
    before = datetime.now(UTC)
    record = new_event_record(
        subject_type="Book", event_type=EventType.UPDATE, description=None
    )

    assert record.occurred_at >= before
    assert record.occurred_at.tzinfo == UTC


def test_naive_occurred_at_is_read_as_utc() -> None:
    record = EventRecord(
        occurred_at=datetime(2026, 10, 19, 8, 30),
        subject_type="Book",
        event_type=EventType.CREATE,
    )

    assert record.occurred_at == datetime(2026, 10, 19, 8, 30, tzinfo=UTC)
    assert record.occurred_at.utcoffset() == timedelta(0)


@pytest.mark.parametrize(
    "value",
    [None, "create", "ARCHIVE", 1],
)
def test_event_type_parse_rejects_unknown_values(value: object) -> None:
    with pytest.raises(ValueError):
        EventType.parse(value)


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        json.dumps({"subjectType": "Book", "eventType": "CREATE"}),
        json.dumps(
            {"occurredAt": "2026-10-19T08:30:00Z", "subjectType": "", "eventType": "CREATE"}
        ),
        json.dumps(
            {"occurredAt": "2026-10-19T08:30:00Z", "subjectType": "Book", "eventType": "NOPE"}
        ),
    ],
)
def test_decode_event_rejects_malformed_bodies(body: str) -> None:
    with pytest.raises(EventDecodeError):
        decode_event(body)


def test_decode_event_rejects_foreign_content_type() -> None:
    with pytest.raises(EventDecodeError, match="unsupported content type"):
        decode_event("{}", content_type="text/plain")


def test_decode_event_accepts_charset_parameter() -> None:
    body = json.dumps(
        {"occurredAt": "2026-10-19T08:30:00Z", "subjectType": "Book", "eventType": "CREATE"}
    )

    record = decode_event(body, content_type="application/json; charset=utf-8")

    assert record.subject_type == "Book"
