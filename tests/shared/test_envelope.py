"""Tests for envelope builders and metadata validation."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta, timezone

import pytest

from packages.bookkeeper_shared.envelope import (
    EnvelopeKind,
    EnvelopeMeta,
    failure,
    new_meta,
    success,
    validate_meta,
)
from packages.bookkeeper_shared.errors import ErrorCategory, codes, validation_error


def _meta() -> EnvelopeMeta:
    """Return deterministic metadata for envelope tests."""
    return new_meta(
        kind=EnvelopeKind.RESULT,
        source="service_catalog_authority",
        principal="operator",
        timestamp=datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC),
        trace_id="trace-1",
    )


def test_success_builder_returns_ok_envelope_with_payload() -> None:
    envelope = success(meta=_meta(), payload={"title": "Dune"})

    assert envelope.ok is True
    assert envelope.value == {"title": "Dune"}
    assert envelope.errors == []


def test_failure_builder_returns_non_ok_envelope_with_errors() -> None:
    error = validation_error("title must not be blank", code=codes.INVALID_ARGUMENT)

    envelope = failure(meta=_meta(), errors=[error])

    assert envelope.ok is False
    assert envelope.value is None
    assert envelope.errors[0].category == ErrorCategory.VALIDATION
    assert envelope.errors[0].code == codes.INVALID_ARGUMENT


def test_new_meta_generates_ids_and_normalizes_naive_timestamp() -> None:
    """new_meta should create ids and attach UTC to naive timestamps."""
    timestamp = datetime(2026, 1, 1, 12, 0, 0)

    meta = new_meta(
        kind=EnvelopeKind.COMMAND,
        source="test",
        principal="operator",
        timestamp=timestamp,
    )

    assert meta.envelope_id
    assert meta.trace_id
    assert meta.parent_id == ""
    assert meta.timestamp == timestamp.replace(tzinfo=UTC)


def test_new_meta_normalizes_aware_timestamp_to_utc() -> None:
    timestamp = datetime(2026, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

    meta = new_meta(
        kind=EnvelopeKind.QUERY, source="test", principal="operator", timestamp=timestamp
    )

    assert meta.timestamp == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)
    assert meta.timestamp.tzinfo == UTC


def test_validate_meta_accepts_complete_metadata() -> None:
    assert validate_meta(_meta()) == []


def test_validate_meta_rejects_unspecified_kind() -> None:
    errors = validate_meta(replace(_meta(), kind=EnvelopeKind.UNSPECIFIED))

    assert len(errors) == 1
    assert errors[0].code == codes.INVALID_ARGUMENT
    assert errors[0].message == "metadata.kind must be specified"


@pytest.mark.parametrize("field_name", ["envelope_id", "trace_id", "source", "principal"])
def test_validate_meta_requires_identity_fields(field_name: str) -> None:
    errors = validate_meta(replace(_meta(), **{field_name: ""}))

    assert [error.message for error in errors] == [f"metadata.{field_name} is required"]
