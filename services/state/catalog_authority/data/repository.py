"""Authoritative SQL repository for catalog book state."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import String, delete, func, insert, select, update
from sqlalchemy.sql.elements import ColumnElement

from packages.bookkeeper_shared.ids import (
    generate_ulid_bytes,
    ulid_bytes_to_str,
    ulid_str_to_bytes,
)
from resources.substrates.postgres.schema_session import ServiceSchemaSessionProvider
from resources.substrates.postgres.unit_of_work import UnitOfWork
from services.state.catalog_authority.domain import BookFilter, BookRecord, BookSort
from services.state.catalog_authority.interfaces import BookRepository

from .schema import books as books_table


class SqlBookRepository(BookRepository):
    """SQL repository over catalog-owned schema tables."""

    def __init__(self, sessions: ServiceSchemaSessionProvider) -> None:
        self._sessions = sessions

    def insert_books(
        self, uow: UnitOfWork, *, books: Sequence[Mapping[str, Any]]
    ) -> list[BookRecord]:
        """Insert every candidate with one shared timestamp and fresh ULIDs."""
        now = datetime.now(UTC)
        rows = [
            {
                "id": generate_ulid_bytes(),
                "title": book["title"],
                "author": book.get("author"),
                "publication_year": book.get("publication_year"),
                "description": book.get("description"),
                "created_at": now,
                "updated_at": now,
            }
            for book in books
        ]
        if rows:
            uow.session.execute(insert(books_table), rows)
        return [_to_book(row) for row in rows]

    def update_book(
        self, uow: UnitOfWork, *, book_id: str, changes: Mapping[str, Any]
    ) -> BookRecord | None:
        """Apply supplied columns and refresh ``updated_at``."""
        key = ulid_str_to_bytes(book_id)
        result = uow.session.execute(
            update(books_table)
            .where(books_table.c.id == key)
            .values(**dict(changes), updated_at=datetime.now(UTC))
        )
        if int(result.rowcount or 0) == 0:
            return None
        row = (
            uow.session.execute(select(books_table).where(books_table.c.id == key))
            .mappings()
            .one()
        )
        return _to_book(row)

    def delete_book(self, uow: UnitOfWork, *, book_id: str) -> bool:
        """Delete one row by id and return whether it existed."""
        result = uow.session.execute(
            delete(books_table).where(books_table.c.id == ulid_str_to_bytes(book_id))
        )
        return int(result.rowcount or 0) > 0

    def get_book(self, *, book_id: str) -> BookRecord | None:
        """Read one book row by id."""
        with self._sessions.session() as session:
            row = (
                session.execute(
                    select(books_table).where(
                        books_table.c.id == ulid_str_to_bytes(book_id)
                    )
                )
                .mappings()
                .one_or_none()
            )
            return None if row is None else _to_book(row)

    def find_books(
        self,
        *,
        filters: BookFilter,
        sort: Sequence[BookSort],
        offset: int,
        limit: int,
    ) -> tuple[list[BookRecord], int]:
        """Read one ordered slice of filtered books plus the unpaged count."""
        conditions = _filter_conditions(filters)
        ordering = [
            books_table.c[term.field].desc()
            if term.direction == "desc"
            else books_table.c[term.field].asc()
            for term in sort
        ]
        # ULIDs break ties so pages never overlap.
        ordering.append(books_table.c.id.asc())
        with self._sessions.session() as session:
            total = session.execute(
                select(func.count()).select_from(books_table).where(*conditions)
            ).scalar_one()
            rows = (
                session.execute(
                    select(books_table)
                    .where(*conditions)
                    .order_by(*ordering)
                    .offset(offset)
                    .limit(limit)
                )
                .mappings()
                .all()
            )
            return [_to_book(row) for row in rows], int(total)


def _filter_conditions(filters: BookFilter) -> list[ColumnElement[bool]]:
    """Translate listing filters into SQL predicates."""
    conditions: list[ColumnElement[bool]] = []
    for column_name in ("title", "author"):
        needle = getattr(filters, column_name)
        if needle is not None:
            column = func.lower(books_table.c[column_name], type_=String)
            conditions.append(column.contains(needle.lower(), autoescape=True))
    if filters.publication_year is not None:
        conditions.append(books_table.c.publication_year == filters.publication_year)
    return conditions


def _to_book(row: Mapping[str, Any]) -> BookRecord:
    """Map one SQL row to strict domain book record."""
    return BookRecord(
        id=ulid_bytes_to_str(bytes(row["id"])),
        title=str(row["title"]),
        author=row["author"],
        publication_year=row["publication_year"],
        description=row["description"],
        created_at=_row_dt(row, "created_at"),
        updated_at=_row_dt(row, "updated_at"),
    )


def _row_dt(row: Mapping[str, Any], column: str) -> datetime:
    """Read and normalize one timezone-aware datetime field from SQL row."""
    value = row.get(column)
    if not isinstance(value, datetime):
        raise ValueError(f"expected datetime column for {column}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
