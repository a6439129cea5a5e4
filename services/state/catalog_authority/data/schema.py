"""SQLAlchemy table definitions owned by Catalog Authority Service."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)

from packages.bookkeeper_shared.ids import ulid_primary_key_column

metadata = MetaData()

books = Table(
    "books",
    metadata,
    ulid_primary_key_column("id", table_name="books"),
    Column("title", String(255), nullable=False),
    Column("author", String(255), nullable=True),
    Column("publication_year", Integer, nullable=True),
    Column("description", String(2000), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    CheckConstraint(
        "publication_year IS NULL OR publication_year BETWEEN 1000 AND 9999",
        name="ck_books_publication_year_range",
    ),
    Index("ix_books_title", "title"),
)
