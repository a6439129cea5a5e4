"""Request-shape and paging rules for Catalog Authority Service."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from packages.bookkeeper_shared.ids import generate_ulid_str
from services.state.catalog_authority.domain import BookSort
from services.state.catalog_authority.pagination import (
    parse_sort,
    resolve_page,
    total_pages,
)
from services.state.catalog_authority.validation import (
    BookIdRequest,
    CreateBookRequest,
    CreateBooksRequest,
    UpdateBookRequest,
    UpdateBooksRequest,
)


def test_create_request_trims_title_and_keeps_optional_fields() -> None:
    request = CreateBookRequest.model_validate(
        {"title": "  Dune ", "author": "Frank Herbert", "publication_year": 1965}
    )

    assert request.title == "Dune"
    assert request.author == "Frank Herbert"
    assert request.description is None


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "   "},
        {"title": "x" * 256},
        {"title": "Dune", "author": "a" * 256},
        {"title": "Dune", "publication_year": 999},
        {"title": "Dune", "publication_year": 10000},
        {"title": "Dune", "description": "d" * 2001},
        {"author": "No Title"},
        {"title": "Dune", "isbn": "unknown-field"},
    ],
)
def test_create_request_rejects_invalid_candidates(payload: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        CreateBookRequest.model_validate(payload)


def test_create_batch_requires_at_least_one_book() -> None:
    with pytest.raises(ValidationError):
        CreateBooksRequest.model_validate({"books": []})


def test_update_changes_only_include_supplied_keys() -> None:
    book_id = generate_ulid_str()

    request = UpdateBookRequest.model_validate(
        {"id": book_id.lower(), "author": None, "publication_year": 2001}
    )

    assert request.id == book_id
    assert request.changes() == {"author": None, "publication_year": 2001}


def test_update_rejects_explicit_null_title() -> None:
    with pytest.raises(ValidationError, match="title must not be null"):
        UpdateBookRequest.model_validate({"id": generate_ulid_str(), "title": None})


def test_update_batch_rejects_duplicate_ids() -> None:
    book_id = generate_ulid_str()

    with pytest.raises(ValidationError, match="duplicate book ids"):
        UpdateBooksRequest.model_validate(
            {"updates": [{"id": book_id, "title": "A"}, {"id": book_id, "title": "B"}]}
        )


@pytest.mark.parametrize("book_id", ["", "not-a-ulid", "Z" * 26])
def test_book_id_request_rejects_malformed_ids(book_id: str) -> None:
    with pytest.raises(ValidationError):
        BookIdRequest.model_validate({"book_id": book_id})


@pytest.mark.parametrize(
    ("page", "size", "expected"),
    [
        (-3, 5, (0, 5)),
        (2, 0, (2, 10)),
        (0, -1, (0, 10)),
        (0, None, (0, 10)),
        (1, 500, (1, 100)),
    ],
)
def test_resolve_page_clamps_bounds(
    page: int, size: int | None, expected: tuple[int, int]
) -> None:
    assert resolve_page(page=page, size=size, default_size=10, max_size=100) == expected


def test_parse_sort_accepts_fields_and_directions() -> None:
    assert parse_sort(["author,desc", "publication_year"]) == (
        BookSort(field="author", direction="desc"),
        BookSort(field="publication_year", direction="asc"),
    )


def test_parse_sort_drops_unknown_fields_and_directions() -> None:
    assert parse_sort(["isbn,asc", "title,sideways", "author, DESC"]) == (
        BookSort(field="author", direction="desc"),
    )


def test_parse_sort_defaults_to_title_ascending() -> None:
    assert parse_sort([]) == (BookSort(field="title", direction="asc"),)
    assert parse_sort(["bogus"]) == (BookSort(field="title", direction="asc"),)


def test_total_pages_rounds_up() -> None:
    assert total_pages(0, 10) == 0
    assert total_pages(10, 10) == 1
    assert total_pages(11, 10) == 2
