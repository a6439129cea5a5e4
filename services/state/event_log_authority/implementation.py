"""Concrete Event Log Authority Service implementation."""

from __future__ import annotations

from datetime import datetime
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
    validation_error,
)
from packages.bookkeeper_shared.logging import get_logger, public_api_instrumented
from resources.adapters.event_channel.adapter import EventChannel
from resources.substrates.postgres.errors import (
    is_postgres_error,
    normalize_postgres_error,
)
from resources.substrates.postgres.substrate import PostgresSubstrate
from services.state.event_log_authority.component import SERVICE_COMPONENT_ID
from services.state.event_log_authority.config import (
    EventLogAuthoritySettings,
    resolve_event_log_authority_settings,
)
from services.state.event_log_authority.data import (
    EventLogPostgresRuntime,
    SqlEventLogRepository,
)
from services.state.event_log_authority.data.runtime import (
    event_log_postgres_schema,
)
from services.state.event_log_authority.domain import HealthStatus, LogEntry
from services.state.event_log_authority.ingestion import EventIngestionHandler
from services.state.event_log_authority.interfaces import EventLogRepository
from services.state.event_log_authority.service import EventLogAuthorityService
from services.state.event_log_authority.validation import TimeRangeRequest
from services.state.event_log_authority.worker import IngestionWorker

_LOGGER = get_logger(__name__)


class DefaultEventLogAuthorityService(EventLogAuthorityService):
    """Default event log implementation fed by a channel ingestion worker."""

    def __init__(
        self,
        *,
        settings: EventLogAuthoritySettings,
        runtime: EventLogPostgresRuntime,
        repository: EventLogRepository,
        channel: EventChannel | None = None,
        worker: IngestionWorker | None = None,
    ) -> None:
        self._settings = settings
        self._runtime = runtime
        self._repository = repository
        self._channel = channel
        self._worker = worker

    @classmethod
    def from_settings(
        cls,
        settings: BookkeeperSettings,
        *,
        channel: EventChannel,
        postgres: PostgresSubstrate | None = None,
    ) -> "DefaultEventLogAuthorityService":
        """Build the event log from typed settings, reusing a shared engine if given."""
        service_settings = resolve_event_log_authority_settings(settings)
        if postgres is None:
            runtime = EventLogPostgresRuntime.from_settings(settings)
        else:
            runtime = EventLogPostgresRuntime.from_engine(
                postgres.engine, schema=event_log_postgres_schema()
            )
        return cls.from_runtime(
            settings=service_settings, runtime=runtime, channel=channel
        )

    @classmethod
    def from_runtime(
        cls,
        *,
        settings: EventLogAuthoritySettings,
        runtime: EventLogPostgresRuntime,
        channel: EventChannel,
    ) -> "DefaultEventLogAuthorityService":
        """Wire repository, ingestion handler, and worker over ``runtime``."""
        repository = SqlEventLogRepository(runtime.schema_sessions)
        handler = EventIngestionHandler(
            repository=repository,
            max_description_length=settings.max_description_length,
        )
        return cls(
            settings=settings,
            runtime=runtime,
            repository=repository,
            channel=channel,
            worker=IngestionWorker(channel=channel, handler=handler, settings=settings),
        )

    @property
    def worker(self) -> IngestionWorker | None:
        return self._worker

    def start_ingestion(self) -> None:
        """Start the background ingestion worker if one is wired."""
        if self._worker is not None:
            self._worker.start()

    def shutdown(self) -> None:
        """Stop the ingestion worker and wait for in-flight passes."""
        if self._worker is not None:
            self._worker.stop()

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def list_events(self, *, meta: EnvelopeMeta) -> Envelope[list[LogEntry]]:
        """Return every entry in stable order."""
        errors = validate_meta(meta)
        if errors:
            return failure(meta=meta, errors=errors)
        try:
            entries = self._repository.list_all()
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(meta=meta, operation="list_events", exc=exc)
        return success(meta=meta, payload=entries)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def list_events_in_range(
        self, *, meta: EnvelopeMeta, start: datetime, end: datetime
    ) -> Envelope[list[LogEntry]]:
        """Return entries in ``[start, end]``; an inverted window is empty."""
        request, errors = self._validate_request(
            meta=meta,
            model=TimeRangeRequest,
            payload={"start": start, "end": end},
        )
        if errors:
            return failure(meta=meta, errors=errors)
        assert isinstance(request, TimeRangeRequest)

        try:
            entries = self._repository.list_by_range(
                start=request.start, end=request.end
            )
        except Exception as exc:  # noqa: BLE001
            return self._storage_failure(
                meta=meta, operation="list_events_in_range", exc=exc
            )
        return success(meta=meta, payload=entries)

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(SERVICE_COMPONENT_ID),
    )
    def health(self, *, meta: EnvelopeMeta) -> Envelope[HealthStatus]:
        """Return readiness of storage, channel, and the ingestion worker."""
        errors = validate_meta(meta)
        if errors:
            return failure(meta=meta, errors=errors)
        substrate_ready = self._runtime.is_healthy()
        channel_ready = self._channel_ready()
        worker_running = self._worker is not None and self._worker.is_running
        if not substrate_ready:
            detail = "postgres unavailable"
        elif not channel_ready:
            detail = "event channel unavailable"
        else:
            detail = "ok"
        return success(
            meta=meta,
            payload=HealthStatus(
                service_ready=substrate_ready,
                substrate_ready=substrate_ready,
                channel_ready=channel_ready,
                worker_running=worker_running,
                detail=detail,
            ),
        )

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

        try:
            request = model.model_validate(payload or {})
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

    def _storage_failure(
        self,
        *,
        meta: EnvelopeMeta,
        operation: str,
        exc: Exception,
    ) -> Envelope[Any]:
        """Normalize database errors, falling back to a dependency failure."""
        _LOGGER.warning(
            "%s failed: exception_type=%s",
            operation,
            type(exc).__name__,
            exc_info=exc,
        )
        if is_postgres_error(exc):
            return failure(meta=meta, errors=[normalize_postgres_error(exc)])
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
