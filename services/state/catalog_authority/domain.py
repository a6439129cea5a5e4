"""Domain contracts for Catalog Authority Service payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

SortDirection = Literal["asc", "desc"]


class BookRecord(BaseModel):
    """Authoritative state of one catalog book."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    title: str
    author: str | None = None
    publication_year: int | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class BookSort(BaseModel):
    """One resolved ordering term for book listings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: Literal["title", "author", "publication_year"]
    direction: SortDirection = "asc"


class BookFilter(BaseModel):
    """Listing filters; ``None`` fields do not constrain results."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = None
    author: str | None = None
    publication_year: int | None = None


class BookPage(BaseModel):
    """One page of books plus the counters callers paginate with."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    books: list[BookRecord]
    total_elements: int
    total_pages: int
    current_page: int
    page_size: int
    has_next: bool
    has_previous: bool


class UpdateBooksResult(BaseModel):
    """Outcome of one batch partial update."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    updated_books: list[BookRecord]
    message: str
    not_updated_ids: list[str]


class HealthStatus(BaseModel):
    """Catalog service and owned dependency readiness status payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    service_ready: bool
    substrate_ready: bool
    channel_ready: bool
    detail: str
