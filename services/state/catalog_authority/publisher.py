"""Commit-gated publication of catalog change events.

Nothing here talks to the channel while a transaction is open: the publisher
only registers a callback on the unit of work, and the record is built and
sent when that callback fires after a successful commit.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import Executor

from packages.bookkeeper_shared.events import (
    CONTENT_TYPE,
    EventType,
    encode_event,
    new_event_record,
)
from packages.bookkeeper_shared.logging import fields as log_fields
from packages.bookkeeper_shared.logging import get_logger
from resources.adapters.event_channel.adapter import EventChannel
from resources.substrates.postgres.unit_of_work import UnitOfWork
from services.state.catalog_authority.interfaces import EventPublisher

_LOGGER = get_logger(__name__)

_DESCRIPTION_PREFIXES = {
    EventType.CREATE: "New books were created with IDs: ",
    EventType.UPDATE: "Books were updated with IDs: ",
    EventType.DELETE: "Books were deleted with IDs: ",
}


def describe_event(event_type: EventType, subject_ids: Sequence[str]) -> str:
    """Render the human-readable description naming every affected id."""
    return _DESCRIPTION_PREFIXES[event_type] + ", ".join(subject_ids)


class CommitGatedEventPublisher(EventPublisher):
    """Send one Event Record per committed mutation batch."""

    def __init__(
        self,
        *,
        channel: EventChannel,
        routing_key: str,
        subject_type: str,
        executor: Executor | None = None,
    ) -> None:
        self._channel = channel
        self._routing_key = routing_key
        self._subject_type = subject_type
        self._executor = executor

    def publish_after_commit(
        self,
        *,
        uow: UnitOfWork,
        event_type: EventType,
        subject_ids: Sequence[str],
    ) -> None:
        """Register the send on ``uow``; an empty id list schedules nothing."""
        ids = list(subject_ids)
        if not ids:
            return
        uow.after_commit(lambda: self._dispatch(event_type, ids))

    def _dispatch(self, event_type: EventType, subject_ids: list[str]) -> None:
        if self._executor is None:
            self._send(event_type, subject_ids)
            return
        try:
            self._executor.submit(self._send, event_type, subject_ids)
        except RuntimeError:
            # Executor already shut down.
            _LOGGER.error(
                "Failed to schedule event send",
                exc_info=True,
                extra={log_fields.EVENT_TYPE: event_type.value},
            )

    def _send(self, event_type: EventType, subject_ids: list[str]) -> None:
        record = new_event_record(
            subject_type=self._subject_type,
            event_type=event_type,
            description=describe_event(event_type, subject_ids),
        )
        extra = {
            log_fields.ROUTING_KEY: self._routing_key,
            log_fields.EVENT_TYPE: event_type.value,
            log_fields.SUBJECT_TYPE: self._subject_type,
            log_fields.SUBJECT_IDS: subject_ids,
        }
        try:
            message_id = self._channel.publish(
                routing_key=self._routing_key,
                body=encode_event(record),
                content_type=CONTENT_TYPE,
            )
        except Exception:
            _LOGGER.error("Failed to send event", exc_info=True, extra=extra)
            return
        _LOGGER.info(
            "Sent event", extra={**extra, log_fields.ENTRY_ID: message_id}
        )
