"""SQLAlchemy helpers for ULID-backed primary keys."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, LargeBinary

ULID_BYTES_LENGTH = 16


def ulid_primary_key_column(name: str = "id", *, table_name: str) -> Column[bytes]:
    """Return a standard ULID primary-key column definition.

    Binary storage maps to ``BYTEA`` on Postgres and ``BLOB`` on SQLite; the
    check constraint pins it to the 16-byte canonical width.
    """
    constraint = CheckConstraint(
        f"length({name}) = {ULID_BYTES_LENGTH}",
        name=f"ck_{table_name}_{name}_ulid_16",
    )
    return Column(
        name,
        LargeBinary(ULID_BYTES_LENGTH),
        constraint,
        primary_key=True,
        nullable=False,
    )
