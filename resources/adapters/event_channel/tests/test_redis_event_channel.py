"""Tests for the Redis Streams event channel delivery policy."""

from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from resources.adapters.event_channel.adapter import (
    ChannelMessage,
    EventChannel,
    EventChannelDependencyError,
)
from resources.adapters.event_channel.config import EventChannelSettings
from resources.adapters.event_channel.redis_event_channel import (
    RedisStreamEventChannel,
)
from tests.support.fake_redis import FakeStreamRedis
from tests.support.redis_stack import fake_redis_substrate

_TOPIC = "bookkeeper.events"


def _channel(
    monkeypatch: pytest.MonkeyPatch, **overrides: object
) -> tuple[RedisStreamEventChannel, FakeStreamRedis]:
    substrate, fake = fake_redis_substrate(monkeypatch)
    settings = EventChannelSettings(
        **{"claim_idle_ms": 1000, "max_deliveries": 3, **overrides}
    )
    return RedisStreamEventChannel(settings=settings, substrate=substrate), fake


def test_channel_satisfies_protocol(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, _fake = _channel(monkeypatch)
    assert isinstance(channel, EventChannel)


def test_publish_appends_envelope_fields_to_topic_stream(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    channel, fake = _channel(monkeypatch)

    message_id = channel.publish(
        routing_key="catalog.book.event", body='{"a":1}', content_type="application/json"
    )

    [(entry_id, fields)] = fake.entries(_TOPIC)
    assert entry_id == message_id
    assert fields["routing_key"] == "catalog.book.event"
    assert fields["content_type"] == "application/json"
    assert fields["body"] == '{"a":1}'
    assert fields["published_at"]


def test_publish_rejects_wildcard_routing_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, fake = _channel(monkeypatch)

    with pytest.raises(ValueError):
        channel.publish(routing_key="catalog.*", body="{}", content_type="application/json")
    assert fake.entries(_TOPIC) == []


def test_declare_subscription_is_idempotent(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, _fake = _channel(monkeypatch)

    first = channel.declare_subscription(queue="log", binding_pattern="catalog.#")
    second = channel.declare_subscription(queue="log", binding_pattern="catalog.#")

    assert first == second
    assert first.topic == _TOPIC


def test_successful_handler_acknowledges_message(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, fake = _channel(monkeypatch)
    subscription = channel.declare_subscription(queue="log", binding_pattern="catalog.#")
    channel.publish(routing_key="catalog.book.event", body="x", content_type="text/plain")
    received: list[ChannelMessage] = []

    result = channel.consume(
        subscription=subscription, handler=received.append, consumer="c1"
    )

    assert result.delivered == 1
    assert result.acked == 1
    assert [message.body for message in received] == ["x"]
    assert received[0].delivery_count == 1
    assert received[0].published_at is not None
    assert fake.pending_ids(_TOPIC, "log") == []


def test_non_matching_routing_keys_are_acked_and_skipped(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    channel, fake = _channel(monkeypatch)
    subscription = channel.declare_subscription(queue="log", binding_pattern="catalog.book.#")
    channel.publish(routing_key="billing.invoice", body="x", content_type="text/plain")
    received: list[ChannelMessage] = []

    result = channel.consume(
        subscription=subscription, handler=received.append, consumer="c1"
    )

    assert received == []
    assert result.skipped == 1
    assert result.received == 1
    assert fake.pending_ids(_TOPIC, "log") == []


def test_every_queue_receives_its_own_copy(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, _fake = _channel(monkeypatch)
    log_queue = channel.declare_subscription(queue="log", binding_pattern="catalog.#")
    audit_queue = channel.declare_subscription(queue="audit", binding_pattern="#")
    channel.publish(routing_key="catalog.book.event", body="x", content_type="text/plain")
    seen: list[str] = []

    channel.consume(subscription=log_queue, handler=lambda m: seen.append("log"), consumer="c")
    channel.consume(
        subscription=audit_queue, handler=lambda m: seen.append("audit"), consumer="c"
    )

    assert sorted(seen) == ["audit", "log"]


def test_failed_message_is_redelivered_after_claim_idle(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    channel, fake = _channel(monkeypatch)
    subscription = channel.declare_subscription(queue="log", binding_pattern="#")
    channel.publish(routing_key="catalog.book.event", body="x", content_type="text/plain")
    attempts: list[int] = []

    def flaky(message: ChannelMessage) -> None:
        attempts.append(message.delivery_count)
        if len(attempts) == 1:
            raise RuntimeError("store unavailable")

    first = channel.consume(subscription=subscription, handler=flaky, consumer="c1")
    assert first.failed == 1
    assert len(fake.pending_ids(_TOPIC, "log")) == 1

    # Not yet idle long enough to be reclaimed.
    idle = channel.consume(subscription=subscription, handler=flaky, consumer="c1")
    assert idle.delivered == 0

    fake.advance(1000)
    second = channel.consume(subscription=subscription, handler=flaky, consumer="c2")

    assert second.acked == 1
    assert attempts == [1, 2]
    assert fake.pending_ids(_TOPIC, "log") == []


def test_message_is_dead_lettered_after_max_deliveries(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    channel, fake = _channel(monkeypatch)
    subscription = channel.declare_subscription(queue="log", binding_pattern="#")
    message_id = channel.publish(
        routing_key="catalog.book.event", body="poison", content_type="text/plain"
    )

    def always_fails(message: ChannelMessage) -> None:
        raise ValueError("cannot decode")

    results = [channel.consume(subscription=subscription, handler=always_fails, consumer="c")]
    for _ in range(2):
        fake.advance(1000)
        results.append(
            channel.consume(subscription=subscription, handler=always_fails, consumer="c")
        )

    assert [result.failed for result in results] == [1, 1, 1]
    assert [result.dead_lettered for result in results] == [0, 0, 1]
    assert fake.pending_ids(_TOPIC, "log") == []
    [(_entry_id, dead)] = fake.entries(f"{_TOPIC}.dead-letter")
    assert dead["body"] == "poison"
    assert dead["source_entry_id"] == message_id
    assert dead["queue"] == "log"
    assert dead["delivery_count"] == "3"
    assert dead["failure_reason"] == "ValueError: cannot decode"


def _raise_connection_error(*_args: object, **_kwargs: object) -> object:
    raise RedisConnectionError("connection reset")


def test_delivery_count_failure_is_wrapped_and_leaves_entry_pending(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    channel, fake = _channel(monkeypatch)
    subscription = channel.declare_subscription(queue="log", binding_pattern="#")
    message_id = channel.publish(
        routing_key="catalog.book.event", body="x", content_type="text/plain"
    )
    received: list[ChannelMessage] = []
    monkeypatch.setattr(fake, "xpending_range", _raise_connection_error)

    with pytest.raises(EventChannelDependencyError, match="delivery on queue 'log'"):
        channel.consume(subscription=subscription, handler=received.append, consumer="c")

    assert received == []
    assert fake.pending_ids(_TOPIC, "log") == [message_id]


def test_dead_letter_append_failure_is_wrapped_and_not_acked(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    channel, fake = _channel(monkeypatch, max_deliveries=1)
    subscription = channel.declare_subscription(queue="log", binding_pattern="#")
    message_id = channel.publish(
        routing_key="catalog.book.event", body="poison", content_type="text/plain"
    )

    def always_fails(message: ChannelMessage) -> None:
        raise ValueError("cannot decode")

    monkeypatch.setattr(fake, "xadd", _raise_connection_error)

    with pytest.raises(EventChannelDependencyError) as excinfo:
        channel.consume(subscription=subscription, handler=always_fails, consumer="c")

    assert isinstance(excinfo.value.__cause__, RedisConnectionError)
    assert fake.pending_ids(_TOPIC, "log") == [message_id]
    assert fake.entries(f"{_TOPIC}.dead-letter") == []


def test_consume_respects_max_messages(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, _fake = _channel(monkeypatch)
    subscription = channel.declare_subscription(queue="log", binding_pattern="#")
    for index in range(5):
        channel.publish(routing_key="catalog.book.event", body=str(index), content_type="t")
    received: list[str] = []

    first = channel.consume(
        subscription=subscription,
        handler=lambda m: received.append(m.body),
        consumer="c",
        max_messages=2,
    )
    rest = channel.consume(
        subscription=subscription, handler=lambda m: received.append(m.body), consumer="c"
    )

    assert first.delivered == 2
    assert rest.delivered == 3
    assert received == ["0", "1", "2", "3", "4"]


def test_health_reflects_substrate_ping(monkeypatch: pytest.MonkeyPatch) -> None:
    channel, fake = _channel(monkeypatch)
    assert channel.health().ready is True

    fake.healthy = False
    assert channel.health().ready is False
