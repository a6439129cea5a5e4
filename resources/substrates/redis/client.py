"""Redis client construction."""

from __future__ import annotations

from redis import Redis

from resources.substrates.redis.config import RedisSettings


def create_redis_client(
    settings: RedisSettings,
    *,
    connect_timeout_seconds: float | None = None,
    socket_timeout_seconds: float | None = None,
) -> Redis:
    """Build a string-decoding client; timeouts default to the settings values."""
    return Redis.from_url(
        url=settings.url or "",
        socket_connect_timeout=(
            settings.connect_timeout_seconds
            if connect_timeout_seconds is None
            else connect_timeout_seconds
        ),
        socket_timeout=(
            settings.socket_timeout_seconds
            if socket_timeout_seconds is None
            else socket_timeout_seconds
        ),
        max_connections=settings.max_connections,
        decode_responses=True,
        encoding="utf-8",
    )
