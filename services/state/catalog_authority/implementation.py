"""Concrete Catalog Authority Service implementation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any

from pydantic import BaseModel, ValidationError

from packages.bookkeeper_shared.config import BookkeeperSettings
from packages.bookkeeper_shared.envelope import (
    Envelope,
    EnvelopeMeta,
    failure,
    success,
    validate_meta,
)
from packages.bookkeeper_shared.errors import (
    ErrorDetail,
    codes,
    dependency_error,
    not_found_error,
    validation_error,
)
from packages.bookkeeper_shared.events import EventType
from packages.bookkeeper_shared.logging import get_logger, public_api_instrumented
from resources.adapters.event_channel.adapter import EventChannel
from resources.substrates.postgres.errors import (
    is_postgres_error,
    normalize_postgres_error,
)
from resources.substrates.postgres.substrate import PostgresSubstrate
from services.state.catalog_authority.component import SERVICE_COMPONENT_ID
from services.state.catalog_authority.config import (
    CatalogAuthoritySettings,
    resolve_catalog_authority_settings,
)
from services.state.catalog_authority.data import (
    CatalogPostgresRuntime,
    SqlBookRepository,
)
from services.state.catalog_authority.data.runtime import catalog_postgres_schema
from services.state.catalog_authority.domain import (
    BookFilter,
    BookPage,
    BookRecord,
    HealthStatus,
    UpdateBooksResult,
)
from services.state.catalog_authority.interfaces import (
    BookRepository,
    EventPublisher,
)
from services.state.catalog_authority.pagination import (
    parse_sort,
    resolve_page,
    total_pages,
)
from services.state.catalog_authority.publisher import CommitGatedEventPublisher
from services.state.catalog_authority.service import CatalogAuthorityService
from services.state.catalog_authority.validation import (
    BookIdRequest,
    CreateBooksRequest,
    ListBooksRequest,
    UpdateBooksRequest,
)

_LOGGER = get_logger(__name__)

UPDATED_MESSAGE = "Books are successfully updated"


class _BookNotFound(LookupError):
    """Raised inside a unit of work to roll back a mutation on a missing id."""

    def __init__(self, book_id: str) -> None:
        super().__init__(book_id)
        self.book_id = book_id


class DefaultCatalogAuthorityService(CatalogAuthorityService):
    """Default catalog implementation with Postgres authority and channel events."""

    def __init__(
        self,
        *,
        settings: CatalogAuthoritySettings,
        runtime: CatalogPostgresRuntime,
        repository: BookRepository,
        publisher: EventPublisher,
        channel: EventChannel | None = None,
        executor: Executor | None = None,
    ) -> None:
        self._settings = settings
        self._runtime = runtime
        self._repository = repository
        self._publisher = publisher
        self._channel = channel
        self._executor = executor

    @classmethod
    def from_settings(
        cls,
        settings: BookkeeperSettings,
        *,
        channel: EventChannel,
        postgres: PostgresSubstrate | None = None,
    ) -> "DefaultCatalogAuthorityService":
        """Build the catalog from typed settings, reusing a shared engine if given."""
        service_settings = resolve_catalog_authority_settings(settings)
        if postgres is None:
            runtime = CatalogPostgresRuntime.from_settings(settings)
        else:
            runtime = CatalogPostgresRuntime.from_engine(
                postgres.engine, schema=catalog_postgres_schema()
            )
        return cls.from_runtime(
            settings=service_settings,
            runtime=runtime,
            channel=channel,
            executor=_publish_executor(service_settings),
        )

    @classmethod
    def from_runtime(
        cls,
        *,
        settings: CatalogAuthoritySettings,
        runtime: CatalogPostgresRuntime,
        channel: EventChannel,
        executor: Executor | None = None,
    ) -> "DefaultCatalogAuthorityService":
        """Wire the default repository and commit-gated publisher over ``runtime``."""
        return cls(
            settings=settings,
            runtime=runtime,
            repository=SqlBookRepository(runtime.schema_sessions),
            publisher=CommitGatedEventPublisher(
                channel=channel,
                routing_key=settings.routing_key,
                subject_type=settings.subject_type,
                executor=executor,
            ),
            channel=channel,
            executor=executor,
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def create_books(
        self, *, meta: EnvelopeMeta, books: Sequence[Mapping[str, Any]]
    ) -> Envelope[list[BookRecord]]:
        """Insert every candidate and schedule one CREATE naming all new ids."""
        request, errors = self._validate_request(
            meta=meta,
            model=CreateBooksRequest,
            payload={"books": list(books)},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, CreateBooksRequest)

        try:
            with self._runtime.schema_sessions.unit_of_work() as uow:
                created = self._repository.insert_books(
                    uow, books=[book.model_dump() for book in request.books]
                )
                self._publisher.publish_after_commit(
                    uow=uow,
                    event_type=EventType.CREATE,
                    subject_ids=[book.id for book in created],
                )
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(meta=meta, operation="create_books", exc=exc)
        return success(meta=meta, payload=created)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
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
        """Return one filtered page; out-of-range paging is clamped."""
        request, errors = self._validate_request(
            meta=meta,
            model=ListBooksRequest,
            payload={
                "page": page,
                "size": size,
                "sort": sort if isinstance(sort, str) or sort is None else list(sort),
                "title": title,
                "author": author,
                "publication_year": publication_year,
            },
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, ListBooksRequest)

        current_page, page_size = resolve_page(
            page=request.page,
            size=request.size,
            default_size=self._settings.default_page_size,
            max_size=self._settings.max_page_size,
        )
        try:
            books, total = self._repository.find_books(
                filters=BookFilter(
                    title=request.title,
                    author=request.author,
                    publication_year=request.publication_year,
                ),
                sort=parse_sort(request.sort),
                offset=current_page * page_size,
                limit=page_size,
            )
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(meta=meta, operation="list_books", exc=exc)

        pages = total_pages(total, page_size)
        return success(
            meta=meta,
            payload=BookPage(
                books=books,
                total_elements=total,
                total_pages=pages,
                current_page=current_page,
                page_size=page_size,
                has_next=current_page + 1 < pages,
                has_previous=current_page > 0,
            ),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
        id_fields=("book_id",),
    )
    def get_book(self, *, meta: EnvelopeMeta, book_id: str) -> Envelope[BookRecord]:
        """Read one book by id."""
        request, errors = self._validate_request(
            meta=meta,
            model=BookIdRequest,
            payload={"book_id": book_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, BookIdRequest)

        try:
            record = self._repository.get_book(book_id=request.book_id)
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(meta=meta, operation="get_book", exc=exc)
        if record is None:
            return self._not_found(meta=meta, book_id=request.book_id)
        return success(meta=meta, payload=record)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def update_books(
        self, *, meta: EnvelopeMeta, updates: Sequence[Mapping[str, Any]]
    ) -> Envelope[UpdateBooksResult]:
        """Apply partial updates; missing ids are reported, not failed."""
        request, errors = self._validate_request(
            meta=meta,
            model=UpdateBooksRequest,
            payload={"updates": list(updates)},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, UpdateBooksRequest)

        updated: list[BookRecord] = []
        missing: list[str] = []
        try:
            with self._runtime.schema_sessions.unit_of_work() as uow:
                for item in request.updates:
                    record = self._repository.update_book(
                        uow, book_id=item.id, changes=item.changes()
                    )
                    if record is None:
                        missing.append(item.id)
                    else:
                        updated.append(record)
                self._publisher.publish_after_commit(
                    uow=uow,
                    event_type=EventType.UPDATE,
                    subject_ids=[book.id for book in updated],
                )
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(meta=meta, operation="update_books", exc=exc)

        return success(
            meta=meta,
            payload=UpdateBooksResult(
                updated_books=updated,
                message=_update_message(missing),
                not_updated_ids=missing,
            ),
        )

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
        id_fields=("book_id",),
    )
    def delete_book(self, *, meta: EnvelopeMeta, book_id: str) -> Envelope[bool]:
        """Delete one book; a missing id fails without scheduling an event."""
        request, errors = self._validate_request(
            meta=meta,
            model=BookIdRequest,
            payload={"book_id": book_id},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, BookIdRequest)

        try:
            with self._runtime.schema_sessions.unit_of_work() as uow:
                if not self._repository.delete_book(uow, book_id=request.book_id):
                    raise _BookNotFound(request.book_id)
                self._publisher.publish_after_commit(
                    uow=uow,
                    event_type=EventType.DELETE,
                    subject_ids=[request.book_id],
                )
        except _BookNotFound as exc:
            return self._not_found(meta=meta, book_id=exc.book_id)
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(meta=meta, operation="delete_book", exc=exc)
        return success(meta=meta, payload=True)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return catalog readiness from the owned Postgres runtime."""
        errors = validate_meta(meta)
        if errors:
            return failure(meta=meta, errors=errors)
        substrate_ready = self._runtime.is_healthy()
        channel_ready = self._channel_ready()
        return success(
            meta=meta,
            payload=HealthStatus(
                service_ready=substrate_ready,
                substrate_ready=substrate_ready,
                channel_ready=channel_ready,
                detail=_health_detail(substrate_ready, channel_ready),
            ),
        )

    def shutdown(self) -> None:
        """Drain background sends scheduled by committed transactions."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def _channel_ready(self) -> bool:
        if self._channel is None:
            return True
        try:
            return self._channel.health().ready
        except Exception:  # noqa: BLE001
            _LOGGER.warning("event channel health probe failed", exc_info=True)
            return False

    def _validate_request(
        self,
        *,
        meta: EnvelopeMeta,
        model: type[BaseModel],
        payload: dict[str, Any] | None,
    ) -> tuple[BaseModel | None, list[ErrorDetail]]:
        """Validate envelope metadata and request payload model."""
        errors = validate_meta(meta)
        if errors:
            return None, errors

        data = payload or {}
        try:
            request = model.model_validate(data)
        except ValidationError as exc:
            return None, [
                validation_error(
                    f"request validation failed: {err['msg']}",
                    code=codes.INVALID_ARGUMENT,
                    metadata={"field": ".".join(str(p) for p in err["loc"])},
                )
                for err in exc.errors()
            ]

        return request, []

    def _not_found(self, *, meta: EnvelopeMeta, book_id: str) -> Envelope[Any]:
        """Return canonical not-found envelope for book-id lookups."""
        return failure(
            meta=meta,
            errors=[
                not_found_error(
                    f"Book with ID {book_id} not found",
                    code=codes.RESOURCE_NOT_FOUND,
                    metadata={"book_id": book_id},
                )
            ],
        )

    def _storage_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
    ) -> Envelope[Any]:
        """Normalize database errors, falling back to a dependency failure."""
        if is_postgres_error(exc):
            _LOGGER.warning(
                "%s failed due to storage error: exception_type=%s",
                operation,
                type(exc).__name__,
                exc_info=exc,
            )
            return failure(meta=meta, errors=[normalize_postgres_error(exc)])
        return self._dependency_failure(meta=meta, operation=operation, exc=exc)

    def _dependency_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
    ) -> Envelope[Any]:
        """Map one dependency/runtime exception into structured envelope errors."""
        _LOGGER.warning(
            "%s failed due to dependency error: exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        return failure(
            meta=meta,
            errors=[
                dependency_error(
                    f"{operation} failed",
                    code=codes.DEPENDENCY_FAILURE,
                    metadata={"exception_type": type(exc).__name__},
                )
            ],
        )


def _update_message(missing: Sequence[str]) -> str:
    if not missing:
        return UPDATED_MESSAGE
    return f"Books with IDs [{', '.join(missing)}] are not updated"


def _health_detail(substrate_ready: bool, channel_ready: bool) -> str:
    if substrate_ready and channel_ready:
        return "ok"
    if not substrate_ready:
        return "postgres unavailable"
    return "event channel unavailable"


def _publish_executor(settings: CatalogAuthoritySettings) -> Executor | None:
    """Return a single-thread FIFO send pool when background publishing is on."""
    if settings.publish_workers == 0:
        return None
    return ThreadPoolExecutor(
        max_workers=1,
        thread_name_prefix="catalog-publish",
    )
