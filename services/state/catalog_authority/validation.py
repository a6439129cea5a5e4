"""Pydantic request-validation models for Catalog Authority Service API."""

from __future__ import annotations

from collections import Counter
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from packages.bookkeeper_shared.ids import normalize_ulid_str

MUTABLE_FIELDS = ("title", "author", "publication_year", "description")


class _ValidationModel(BaseModel):
    """Base request model with strict shape semantics."""

    model_config = ConfigDict(frozen=True, extra="forbid")


def _normalize_book_id(value: str, info: ValidationInfo) -> str:
    normalized = value.strip()
    if normalized == "":
        raise ValueError(f"{info.field_name} is required")
    return normalize_ulid_str(normalized)


def _require_title(value: str | None) -> str:
    if value is None:
        raise ValueError("title must not be null")
    normalized = value.strip()
    if normalized == "":
        raise ValueError("title must not be blank")
    return normalized


class CreateBookRequest(_ValidationModel):
    """Validated shape for one book in a create batch."""

    title: str = Field(max_length=255)
    author: str | None = Field(default=None, max_length=255)
    publication_year: int | None = Field(default=None, ge=1000, le=9999)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        return _require_title(value)


class CreateBooksRequest(_ValidationModel):
    """Validated create batch; at least one candidate is required."""

    books: list[CreateBookRequest] = Field(min_length=1)


class UpdateBookRequest(_ValidationModel):
    """Validated partial update for one book.

    Keys absent from the input stay untouched; an explicit ``None`` clears a
    nullable column. Title is required on the row, so it may be omitted but
    never set to ``None``.
    """

    id: str
    title: str | None = Field(default=None, max_length=255)
    author: str | None = Field(default=None, max_length=255)
    publication_year: int | None = Field(default=None, ge=1000, le=9999)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("id")
    @classmethod
    def _validate_id(cls, value: str, info: ValidationInfo) -> str:
        return _normalize_book_id(value, info)

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str | None) -> str:
        return _require_title(value)

    def changes(self) -> dict[str, Any]:
        """Return only the columns the caller supplied."""
        return {
            name: getattr(self, name)
            for name in MUTABLE_FIELDS
            if name in self.model_fields_set
        }


class UpdateBooksRequest(_ValidationModel):
    """Validated update batch with unique ids."""

    updates: list[UpdateBookRequest] = Field(min_length=1)

    @model_validator(mode="after")
    def _reject_duplicate_ids(self) -> "UpdateBooksRequest":
        counts = Counter(update.id for update in self.updates)
        duplicates = sorted(book_id for book_id, count in counts.items() if count > 1)
        if duplicates:
            raise ValueError(
                f"duplicate book ids in update request: {', '.join(duplicates)}"
            )
        return self


class BookIdRequest(_ValidationModel):
    """Validated request shape for operations keyed by book id."""

    book_id: str

    @field_validator("book_id")
    @classmethod
    def _validate_book_id(cls, value: str, info: ValidationInfo) -> str:
        return _normalize_book_id(value, info)


class ListBooksRequest(_ValidationModel):
    """Validated listing request; paging bounds are clamped later, not rejected."""

    page: int = 0
    size: int | None = None
    sort: list[str] = Field(default_factory=list)
    title: str | None = None
    author: str | None = None
    publication_year: int | None = None

    @field_validator("sort", mode="before")
    @classmethod
    def _coerce_sort(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("title", "author")
    @classmethod
    def _blank_filter_is_absent(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None
