"""Transport-agnostic contract for the Redis stream primitives."""

from __future__ import annotations

from typing import Mapping, Protocol

from pydantic import BaseModel, ConfigDict


class RedisHealthStatus(BaseModel):
    """Redis substrate readiness payload."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ready: bool
    detail: str


class StreamEntry(BaseModel):
    """One stream entry as returned by a group read or claim."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    entry_id: str
    fields: dict[str, str]


class RedisSubstrate(Protocol):
    """Stream operations backing the event channel."""

    def append_stream(
        self, *, stream: str, fields: Mapping[str, str], max_length: int | None
    ) -> str:
        """Append one entry (``XADD``) and return its id."""

    def ensure_consumer_group(
        self, *, stream: str, group: str, start_id: str = "$"
    ) -> bool:
        """Create a consumer group, creating the stream if needed.

        Returns ``False`` when the group already exists.
        """

    def read_group(
        self,
        *,
        stream: str,
        group: str,
        consumer: str,
        count: int,
        block_ms: int | None,
    ) -> list[StreamEntry]:
        """Read entries never delivered to this group (``XREADGROUP ... >``)."""

    def claim_stale(
        self,
        *,
        stream: str,
        group: str,
        consumer: str,
        min_idle_ms: int,
        count: int,
    ) -> list[StreamEntry]:
        """Take over pending entries idle for at least ``min_idle_ms``."""

    def delivery_count(self, *, stream: str, group: str, entry_id: str) -> int:
        """Return how many times one pending entry was delivered, 0 if not pending."""

    def ack(self, *, stream: str, group: str, entry_ids: list[str]) -> int:
        """Acknowledge entries and return how many were pending."""

    def ping(self) -> bool:
        """Return liveness from Redis ``PING``."""

    def health(self) -> RedisHealthStatus:
        """Probe readiness and detail."""

    def close(self) -> None:
        """Release client connections."""
