"""redis-py backed implementation of the stream substrate."""

from __future__ import annotations

from typing import Any, Mapping

from redis.exceptions import ResponseError

from resources.substrates.redis.client import create_redis_client
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.substrate import (
    RedisHealthStatus,
    RedisSubstrate,
    StreamEntry,
)


class RedisClientSubstrate(RedisSubstrate):
    """Stream substrate over one pooled client plus a short-timeout probe client."""

    def __init__(self, *, settings: RedisSettings) -> None:
        self._client = create_redis_client(settings)
        self._health_client = create_redis_client(
            settings,
            connect_timeout_seconds=settings.health_timeout_seconds,
            socket_timeout_seconds=settings.health_timeout_seconds,
        )

    def append_stream(
        self, *, stream: str, fields: Mapping[str, str], max_length: int | None
    ) -> str:
        entry_id = self._client.xadd(
            stream, dict(fields), maxlen=max_length, approximate=True
        )
        return str(entry_id)

    def ensure_consumer_group(
        self, *, stream: str, group: str, start_id: str = "$"
    ) -> bool:
        try:
            self._client.xgroup_create(stream, group, id=start_id, mkstream=True)
        except ResponseError as exc:
            if "BUSYGROUP" in str(exc):
                return False
            raise
        return True

    def read_group(
        self,
        *,
        stream: str,
        group: str,
        consumer: str,
        count: int,
        block_ms: int | None,
    ) -> list[StreamEntry]:
        # BLOCK 0 waits forever; a non-positive timeout means "do not block".
        block = block_ms if block_ms is not None and block_ms > 0 else None
        response = self._client.xreadgroup(
            group, consumer, {stream: ">"}, count=count, block=block
        )
        return [
            entry
            for _name, entries in _stream_batches(response)
            for entry in _entries(entries)
        ]

    def claim_stale(
        self,
        *,
        stream: str,
        group: str,
        consumer: str,
        min_idle_ms: int,
        count: int,
    ) -> list[StreamEntry]:
        response = self._client.xautoclaim(
            stream, group, consumer, min_idle_ms, start_id="0-0", count=count
        )
        # [next_start_id, claimed_entries, deleted_ids?]
        return _entries(response[1] if len(response) > 1 else [])

    def delivery_count(self, *, stream: str, group: str, entry_id: str) -> int:
        pending = self._client.xpending_range(
            stream, group, min=entry_id, max=entry_id, count=1
        )
        if not pending:
            return 0
        return int(pending[0]["times_delivered"])

    def ack(self, *, stream: str, group: str, entry_ids: list[str]) -> int:
        if not entry_ids:
            return 0
        return int(self._client.xack(stream, group, *entry_ids))

    def ping(self) -> bool:
        return bool(self._health_client.ping())

    def health(self) -> RedisHealthStatus:
        try:
            ready = self.ping()
        except Exception as exc:  # noqa: BLE001
            return RedisHealthStatus(
                ready=False,
                detail=f"redis ping failed: {type(exc).__name__}",
            )
        return RedisHealthStatus(
            ready=ready,
            detail="ok" if ready else "redis ping returned false",
        )

    def close(self) -> None:
        """Release pooled connections held by both clients."""
        self._client.close()
        self._health_client.close()


def _stream_batches(response: Any) -> list[tuple[str, Any]]:
    """Normalize RESP2 list and RESP3 dict ``XREADGROUP`` replies."""
    if not response:
        return []
    if isinstance(response, Mapping):
        return [(str(name), entries) for name, entries in response.items()]
    return [(str(name), entries) for name, entries in response]


def _entries(raw: Any) -> list[StreamEntry]:
    """Convert ``(id, fields)`` pairs, skipping entries deleted from the stream."""
    entries: list[StreamEntry] = []
    for item in raw or []:
        entry_id, fields = item[0], item[1]
        if fields is None:
            continue
        entries.append(
            StreamEntry(
                entry_id=str(entry_id),
                fields={str(key): str(value) for key, value in fields.items()},
            )
        )
    return entries
