"""Transport-neutral protocol interfaces used by Catalog Authority Service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from packages.bookkeeper_shared.events import EventType
from resources.substrates.postgres.unit_of_work import UnitOfWork
from services.state.catalog_authority.domain import BookFilter, BookRecord, BookSort


class BookRepository(Protocol):
    """Protocol for authoritative book persistence operations.

    Mutations run inside the caller's unit of work; reads open their own
    session.
    """

    def insert_books(
        self, uow: UnitOfWork, *, books: Sequence[Mapping[str, Any]]
    ) -> list[BookRecord]:
        """Insert new rows with server-generated ids and return them in order."""

    def update_book(
        self, uow: UnitOfWork, *, book_id: str, changes: Mapping[str, Any]
    ) -> BookRecord | None:
        """Apply ``changes`` to one row; ``None`` when the id does not exist."""

    def delete_book(self, uow: UnitOfWork, *, book_id: str) -> bool:
        """Delete one row and return whether it existed."""

    def get_book(self, *, book_id: str) -> BookRecord | None:
        """Read one book by id."""

    def find_books(
        self,
        *,
        filters: BookFilter,
        sort: Sequence[BookSort],
        offset: int,
        limit: int,
    ) -> tuple[list[BookRecord], int]:
        """Return one slice of matching books plus the total match count."""


class EventPublisher(Protocol):
    """Protocol for scheduling one change event when a unit of work commits."""

    def publish_after_commit(
        self,
        *,
        uow: UnitOfWork,
        event_type: EventType,
        subject_ids: Sequence[str],
    ) -> None:
        """Register a deferred publish on ``uow``; never sends immediately."""
