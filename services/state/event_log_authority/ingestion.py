"""Turn channel deliveries into log entries.

Ingestion is deliberately non-idempotent: a redelivered record is appended
again under a new id. Rejected messages never touch the store; the raised
``EventRejectedError`` hands them back to the channel's redelivery policy.
"""

from __future__ import annotations

from packages.bookkeeper_shared.events import (
    EventDecodeError,
    EventRecord,
    decode_event,
)
from packages.bookkeeper_shared.logging import fields as log_fields
from packages.bookkeeper_shared.logging import get_logger
from resources.adapters.event_channel.adapter import ChannelMessage
from services.state.event_log_authority.domain import LogEntry
from services.state.event_log_authority.interfaces import EventLogRepository

_LOGGER = get_logger(__name__)

DESCRIPTION_MAX_LENGTH = 1000


class EventRejectedError(ValueError):
    """Raised when a delivery cannot be decoded into a valid Event Record."""


class EventIngestionHandler:
    """Decode deliveries and append exactly one entry per accepted record."""

    def __init__(
        self,
        *,
        repository: EventLogRepository,
        max_description_length: int = DESCRIPTION_MAX_LENGTH,
    ) -> None:
        self._repository = repository
        self._max_description_length = max_description_length

    def __call__(self, message: ChannelMessage) -> None:
        self.handle_message(message)

    def handle_message(self, message: ChannelMessage) -> LogEntry:
        """Decode one delivery and append it; raise ``EventRejectedError`` on bad input."""
        extra = {
            log_fields.ENTRY_ID: message.message_id,
            log_fields.ROUTING_KEY: message.routing_key,
            log_fields.DELIVERY_COUNT: message.delivery_count,
        }
        try:
            record = decode_event(message.body, content_type=message.content_type)
        except EventDecodeError as exc:
            _LOGGER.warning(
                "Rejected event: %s", exc, extra={**extra, "reason": str(exc)}
            )
            raise EventRejectedError(str(exc)) from exc

        _LOGGER.info(
            "Received event",
            extra={
                **extra,
                log_fields.EVENT_TYPE: record.event_type.value,
                log_fields.SUBJECT_TYPE: record.subject_type,
            },
        )
        return self.ingest(record)

    def ingest(self, record: EventRecord) -> LogEntry:
        """Append one entry copied field-for-field from ``record``."""
        return self._repository.append(
            timestamp=record.occurred_at,
            subject_type=record.subject_type,
            event_type=record.event_type,
            description=self._fit_description(record.description),
        )

    def _fit_description(self, description: str | None) -> str | None:
        if description is None or len(description) <= self._max_description_length:
            return description
        _LOGGER.warning(
            "event description truncated",
            extra={"original_length": len(description)},
        )
        return description[: self._max_description_length]
