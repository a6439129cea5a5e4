"""Transport-agnostic event channel protocol and DTOs."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class EventChannelError(Exception):
    """Base exception for channel failures."""


class EventChannelDependencyError(EventChannelError):
    """The backing broker is unreachable or rejected a command."""


class Subscription(BaseModel):
    """A durable queue bound to the topic with one routing pattern."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    topic: str
    queue: str
    binding_pattern: str


class ChannelMessage(BaseModel):
    """One delivery handed to a consumer handler."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    message_id: str
    routing_key: str
    content_type: str
    body: str
    delivery_count: int
    published_at: datetime | None = None


class ConsumeResult(BaseModel):
    """Counters describing one ``consume`` pass."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    delivered: int = 0
    acked: int = 0
    failed: int = 0
    dead_lettered: int = 0
    skipped: int = 0

    @property
    def received(self) -> int:
        """Entries pulled from the broker in this pass."""
        return self.delivered + self.skipped


class EventChannelHealth(BaseModel):
    """Readiness payload for the channel's broker."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


MessageHandler = Callable[[ChannelMessage], None]


@runtime_checkable
class EventChannel(Protocol):
    """Durable topic channel with at-least-once delivery."""

    def publish(self, *, routing_key: str, body: str, content_type: str) -> str:
        """Publish one message and return its broker id."""

    def declare_subscription(self, *, queue: str, binding_pattern: str) -> Subscription:
        """Idempotently declare a durable queue bound by ``binding_pattern``."""

    def consume(
        self,
        *,
        subscription: Subscription,
        handler: MessageHandler,
        consumer: str,
        max_messages: int | None = None,
    ) -> ConsumeResult:
        """Deliver up to ``max_messages`` entries to ``handler``.

        A handler that returns acknowledges the message; one that raises
        leaves it for redelivery.
        """

    def health(self) -> EventChannelHealth:
        """Return broker readiness."""
