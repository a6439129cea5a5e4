"""Event channel over Redis Streams.

One stream per topic holds every published message. Each durable queue is a
consumer group on that stream, so every queue sees every message once and
filters by its binding pattern. Unacknowledged entries stay in the group's
pending list; ``consume`` reclaims the ones left idle by a failed handler or
a crashed consumer before reading new entries, and moves an entry to the
dead-letter stream once it has been delivered ``max_deliveries`` times.
"""

from __future__ import annotations

from datetime import UTC, datetime

from redis.exceptions import RedisError

from packages.bookkeeper_shared.logging import (
    get_logger,
    log_context,
    public_api_instrumented,
)
from packages.bookkeeper_shared.logging import fields as log_fields
from resources.adapters.event_channel.adapter import (
    ChannelMessage,
    ConsumeResult,
    EventChannel,
    EventChannelDependencyError,
    EventChannelHealth,
    MessageHandler,
    Subscription,
)
from resources.adapters.event_channel.component import RESOURCE_COMPONENT_ID
from resources.adapters.event_channel.config import EventChannelSettings
from resources.adapters.event_channel.routing import (
    routing_key_matches,
    validate_binding_pattern,
    validate_routing_key,
)
from resources.substrates.redis.substrate import RedisSubstrate, StreamEntry

_LOGGER = get_logger(__name__)

FIELD_ROUTING_KEY = "routing_key"
FIELD_CONTENT_TYPE = "content_type"
FIELD_BODY = "body"
FIELD_PUBLISHED_AT = "published_at"


class RedisStreamEventChannel(EventChannel):
    """Topic channel backed by one Redis stream and per-queue consumer groups."""

    def __init__(
        self, *, settings: EventChannelSettings, substrate: RedisSubstrate
    ) -> None:
        self._settings = settings
        self._substrate = substrate

    @property
    def settings(self) -> EventChannelSettings:
        return self._settings

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(RESOURCE_COMPONENT_ID),
        id_fields=("routing_key",),
    )
    def publish(self, *, routing_key: str, body: str, content_type: str) -> str:
        """Append one message to the topic stream."""
        validate_routing_key(routing_key)
        fields = {
            FIELD_ROUTING_KEY: routing_key,
            FIELD_CONTENT_TYPE: content_type,
            FIELD_BODY: body,
            FIELD_PUBLISHED_AT: datetime.now(UTC).isoformat(),
        }
        try:
            return self._substrate.append_stream(
                stream=self._settings.topic,
                fields=fields,
                max_length=self._settings.max_stream_length,
            )
        except RedisError as exc:
            raise EventChannelDependencyError(
                f"publish to '{self._settings.topic}' failed: {type(exc).__name__}"
            ) from exc

    @public_api_instrumented(
        logger=_LOGGER,
        component_id=str(RESOURCE_COMPONENT_ID),
        id_fields=("queue",),
    )
    def declare_subscription(self, *, queue: str, binding_pattern: str) -> Subscription:
        """Create the queue's consumer group unless it already exists.

        A new group starts at the end of the stream; messages published before
        the first declaration are not delivered to it.
        """
        if not queue.strip():
            raise ValueError("queue must not be empty")
        validate_binding_pattern(binding_pattern)
        try:
            created = self._substrate.ensure_consumer_group(
                stream=self._settings.topic, group=queue
            )
        except RedisError as exc:
            raise EventChannelDependencyError(
                f"declare of queue '{queue}' failed: {type(exc).__name__}"
            ) from exc
        _LOGGER.info(
            "subscription declared",
            extra={log_fields.QUEUE: queue, "group_created": created},
        )
        return Subscription(
            topic=self._settings.topic,
            queue=queue,
            binding_pattern=binding_pattern,
        )

    def consume(
        self,
        *,
        subscription: Subscription,
        handler: MessageHandler,
        consumer: str,
        max_messages: int | None = None,
    ) -> ConsumeResult:
        """Run one reclaim-then-read pass and dispatch entries to ``handler``."""
        budget = max_messages or self._settings.read_batch_size
        try:
            entries = self._substrate.claim_stale(
                stream=subscription.topic,
                group=subscription.queue,
                consumer=consumer,
                min_idle_ms=self._settings.claim_idle_ms,
                count=budget,
            )
            if len(entries) < budget:
                entries += self._substrate.read_group(
                    stream=subscription.topic,
                    group=subscription.queue,
                    consumer=consumer,
                    count=budget - len(entries),
                    # Do not block when reclaimed work is already waiting.
                    block_ms=None if entries else self._settings.block_ms,
                )
        except RedisError as exc:
            raise EventChannelDependencyError(
                f"read from queue '{subscription.queue}' failed: {type(exc).__name__}"
            ) from exc

        tally = _Tally()
        with log_context(
            {log_fields.QUEUE: subscription.queue, log_fields.CONSUMER: consumer}
        ):
            try:
                for entry in entries:
                    self._dispatch(
                        subscription=subscription,
                        handler=handler,
                        entry=entry,
                        tally=tally,
                    )
            except RedisError as exc:
                # Unacked entries stay pending and are reclaimed on a later pass.
                raise EventChannelDependencyError(
                    f"delivery on queue '{subscription.queue}' failed: "
                    f"{type(exc).__name__}"
                ) from exc
        return tally.result()

    def health(self) -> EventChannelHealth:
        status = self._substrate.health()
        return EventChannelHealth(ready=status.ready, detail=status.detail)

    def _dispatch(
        self,
        *,
        subscription: Subscription,
        handler: MessageHandler,
        entry: StreamEntry,
        tally: "_Tally",
    ) -> None:
        routing_key = entry.fields.get(FIELD_ROUTING_KEY, "")
        if not routing_key_matches(subscription.binding_pattern, routing_key):
            self._ack(subscription, entry.entry_id)
            tally.skipped += 1
            return

        delivery_count = max(
            1,
            self._substrate.delivery_count(
                stream=subscription.topic,
                group=subscription.queue,
                entry_id=entry.entry_id,
            ),
        )
        message = ChannelMessage(
            message_id=entry.entry_id,
            routing_key=routing_key,
            content_type=entry.fields.get(FIELD_CONTENT_TYPE, ""),
            body=entry.fields.get(FIELD_BODY, ""),
            delivery_count=delivery_count,
            published_at=_parse_timestamp(entry.fields.get(FIELD_PUBLISHED_AT)),
        )

        tally.delivered += 1
        try:
            handler(message)
        except Exception as exc:  # noqa: BLE001
            tally.failed += 1
            self._handle_failure(
                subscription=subscription, entry=entry, message=message, exc=exc
            )
            if delivery_count >= self._settings.max_deliveries:
                tally.dead_lettered += 1
            return

        self._ack(subscription, entry.entry_id)
        tally.acked += 1

    def _handle_failure(
        self,
        *,
        subscription: Subscription,
        entry: StreamEntry,
        message: ChannelMessage,
        exc: Exception,
    ) -> None:
        reason = f"{type(exc).__name__}: {exc}"
        context = {
            log_fields.ENTRY_ID: entry.entry_id,
            log_fields.ROUTING_KEY: message.routing_key,
            log_fields.DELIVERY_COUNT: message.delivery_count,
            log_fields.ERRORS: reason,
        }
        if message.delivery_count < self._settings.max_deliveries:
            with log_context(context):
                _LOGGER.warning("message handler failed; left pending for redelivery")
            return

        self._substrate.append_stream(
            stream=self._settings.dead_letter_stream,
            fields={
                **entry.fields,
                "source_entry_id": entry.entry_id,
                "queue": subscription.queue,
                "delivery_count": str(message.delivery_count),
                "failure_reason": reason,
            },
            max_length=self._settings.max_stream_length,
        )
        self._ack(subscription, entry.entry_id)
        with log_context(context):
            _LOGGER.warning("message dead-lettered after max deliveries")

    def _ack(self, subscription: Subscription, entry_id: str) -> None:
        self._substrate.ack(
            stream=subscription.topic, group=subscription.queue, entry_ids=[entry_id]
        )


class _Tally:
    """Mutable counters accumulated across one consume pass."""

    def __init__(self) -> None:
        self.delivered = 0
        self.acked = 0
        self.failed = 0
        self.dead_lettered = 0
        self.skipped = 0

    def result(self) -> ConsumeResult:
        return ConsumeResult(
            delivered=self.delivered,
            acked=self.acked,
            failed=self.failed,
            dead_lettered=self.dead_lettered,
            skipped=self.skipped,
        )


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None
