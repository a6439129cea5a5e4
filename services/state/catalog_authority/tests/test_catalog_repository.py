"""SQL behavior of the catalog book repository over SQLite."""

from __future__ import annotations

import pytest

from packages.bookkeeper_shared.ids import generate_ulid_str
from resources.substrates.postgres.schema_session import ServiceSchemaSessionProvider
from services.state.catalog_authority.data import SqlBookRepository, metadata
from services.state.catalog_authority.domain import BookFilter, BookSort
from tests.support.sqlite import sqlite_engine, sqlite_sessions

_TITLE_ASC = (BookSort(field="title"),)


@pytest.fixture()
def sessions() -> ServiceSchemaSessionProvider:
    return sqlite_sessions(sqlite_engine(metadata))


@pytest.fixture()
def repository(sessions: ServiceSchemaSessionProvider) -> SqlBookRepository:
    repo = SqlBookRepository(sessions)
    with sessions.unit_of_work() as uow:
        repo.insert_books(
            uow,
            books=[
                {"title": "Dune", "author": "Frank Herbert", "publication_year": 1965},
                {"title": "Emma", "author": "Jane Austen", "publication_year": 1815},
                {"title": "Persuasion", "author": "Jane Austen", "publication_year": 1817},
                {"title": "100% Coverage", "author": None, "publication_year": None},
            ],
        )
    return repo


def _titles(repository: SqlBookRepository, **kwargs: object) -> list[str]:
    params: dict[str, object] = {
        "filters": BookFilter(),
        "sort": _TITLE_ASC,
        "offset": 0,
        "limit": 50,
    }
    params.update(kwargs)
    books, _total = repository.find_books(**params)
    return [book.title for book in books]


def test_insert_assigns_ulids_and_timestamps(
    sessions: ServiceSchemaSessionProvider,
) -> None:
    repo = SqlBookRepository(sessions)
    with sessions.unit_of_work() as uow:
        created = repo.insert_books(uow, books=[{"title": "Solo"}])

    assert len(created[0].id) == 26
    assert created[0].created_at == created[0].updated_at
    assert created[0].created_at.tzinfo is not None
    assert repo.get_book(book_id=created[0].id) == created[0]


def test_filters_are_case_insensitive_substrings(
    repository: SqlBookRepository,
) -> None:
    assert _titles(repository, filters=BookFilter(author="austen")) == [
        "Emma",
        "Persuasion",
    ]
    assert _titles(repository, filters=BookFilter(title="UN")) == ["Dune"]


def test_filter_wildcards_are_escaped(repository: SqlBookRepository) -> None:
    assert _titles(repository, filters=BookFilter(title="%")) == ["100% Coverage"]


def test_publication_year_filter_is_exact(repository: SqlBookRepository) -> None:
    assert _titles(repository, filters=BookFilter(publication_year=1815)) == ["Emma"]


def test_sort_descending_by_year(repository: SqlBookRepository) -> None:
    titles = _titles(
        repository,
        filters=BookFilter(author="a"),
        sort=(BookSort(field="publication_year", direction="desc"),),
    )

    assert titles == ["Dune", "Persuasion", "Emma"]


def test_paging_returns_slice_and_total(repository: SqlBookRepository) -> None:
    books, total = repository.find_books(
        filters=BookFilter(), sort=_TITLE_ASC, offset=2, limit=2
    )

    assert total == 4
    assert [book.title for book in books] == ["Emma", "Persuasion"]


def test_update_applies_only_supplied_columns(
    sessions: ServiceSchemaSessionProvider, repository: SqlBookRepository
) -> None:
    books, _ = repository.find_books(
        filters=BookFilter(title="Dune"), sort=_TITLE_ASC, offset=0, limit=1
    )
    original = books[0]

    with sessions.unit_of_work() as uow:
        updated = repository.update_book(
            uow, book_id=original.id, changes={"author": None}
        )

    assert updated is not None
    assert updated.title == "Dune"
    assert updated.author is None
    assert updated.publication_year == 1965
    assert updated.updated_at >= original.updated_at


def test_update_and_delete_report_missing_ids(
    sessions: ServiceSchemaSessionProvider, repository: SqlBookRepository
) -> None:
    missing = generate_ulid_str()

    with sessions.unit_of_work() as uow:
        assert repository.update_book(uow, book_id=missing, changes={"title": "X"}) is None
        assert repository.delete_book(uow, book_id=missing) is False
    assert repository.get_book(book_id=missing) is None


def test_delete_removes_row(
    sessions: ServiceSchemaSessionProvider, repository: SqlBookRepository
) -> None:
    books, _ = repository.find_books(
        filters=BookFilter(title="Emma"), sort=_TITLE_ASC, offset=0, limit=1
    )

    with sessions.unit_of_work() as uow:
        assert repository.delete_book(uow, book_id=books[0].id) is True

    assert repository.get_book(book_id=books[0].id) is None
