"""Authoritative in-process Python API for Catalog Authority Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.envelope import Envelope, EnvelopeMeta
from resources.adapters.event_channel.adapter import EventChannel
from resources.substrates.postgres.substrate import PostgresSubstrate
from services.state.catalog_authority.domain import (
    BookPage,
    BookRecord,
    HealthStatus,
    UpdateBooksResult,
)


class CatalogAuthorityService(ABC):
    """Public API for book catalog commands and queries."""

    @abstractmethod
    def create_books(
        self, *, meta: EnvelopeMeta, books: Sequence[Mapping[str, Any]]
    ) -> Envelope[list[BookRecord]]:
        """Create every candidate in one transaction and announce one CREATE."""

    @abstractmethod
    def list_books(
        self,
        *,
        meta: EnvelopeMeta,
        page: int = 0,
        size: int | None = None,
        sort: Sequence[str] | str | None = None,
        title: str | None = None,
        author: str | None = None,
        publication_year: int | None = None,
    ) -> Envelope[BookPage]:
        """Return one filtered, sorted page of books."""

    @abstractmethod
    def get_book(self, *, meta: EnvelopeMeta, book_id: str) -> Envelope[BookRecord]:
        """Read one book by id."""

    @abstractmethod
    def update_books(
        self, *, meta: EnvelopeMeta, updates: Sequence[Mapping[str, Any]]
    ) -> Envelope[UpdateBooksResult]:
        """Apply partial updates in one transaction and announce one UPDATE."""

    @abstractmethod
    def delete_book(self, *, meta: EnvelopeMeta, book_id: str) -> Envelope[bool]:
        """Delete one book and announce one DELETE."""

    @abstractmethod
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return catalog and owned dependency readiness status."""


def build_catalog_authority_service(
    *,
    settings: BookkeeperSettings,
    channel: EventChannel,
    postgres: PostgresSubstrate | None = None,
) -> CatalogAuthorityService:
    """Build default Catalog Authority implementation from typed settings."""
    from services.state.catalog_authority.implementation import (
        DefaultCatalogAuthorityService,
    )

    return DefaultCatalogAuthorityService.from_settings(
        settings, channel=channel, postgres=postgres
    )
