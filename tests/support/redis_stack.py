"""Builders wiring the real substrate classes onto the in-memory stream fake."""

from __future__ import annotations

import pytest

import resources.substrates.redis.redis_substrate as redis_substrate_module
from resources.substrates.redis.config import RedisSettings
from resources.substrates.redis.redis_substrate import RedisClientSubstrate
from tests.support.fake_redis import FakeStreamRedis


def fake_redis_substrate(
    monkeypatch: pytest.MonkeyPatch, fake: FakeStreamRedis | None = None
) -> tuple[RedisClientSubstrate, FakeStreamRedis]:
    """Return a substrate whose clients are both the given in-memory fake."""
    client = fake if fake is not None else FakeStreamRedis()
    monkeypatch.setattr(
        redis_substrate_module,
        "create_redis_client",
        lambda settings, **kwargs: client,
    )
    return RedisClientSubstrate(settings=RedisSettings()), client
