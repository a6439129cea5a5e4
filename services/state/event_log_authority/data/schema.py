"""SQLAlchemy table definitions owned by Event Log Authority Service."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
)

from packages.bookkeeper_shared.ids import ulid_primary_key_column

metadata = MetaData()

event_logs = Table(
    "event_logs",
    metadata,
    ulid_primary_key_column("id", table_name="event_logs"),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("subject_type", String(255), nullable=False),
    Column("event_type", String(16), nullable=False),
    Column("description", String(1000), nullable=True),
    CheckConstraint(
        "event_type IN ('CREATE', 'UPDATE', 'DELETE')",
        name="ck_event_logs_event_type",
    ),
    Index("ix_event_logs_timestamp", "timestamp", "id"),
)
