"""Shared fixtures for integration-oriented test modules."""

from __future__ import annotations

import pytest

from packages.bookkeeper_shared.config import BookkeeperSettings, load_settings
from resources.substrates.postgres.config import resolve_postgres_settings
from resources.substrates.redis.config import resolve_redis_settings
from tests.integration.helpers import real_provider_tests_enabled


@pytest.fixture(scope="session")
def env_settings() -> BookkeeperSettings:
    """Return loaded settings snapshot for fixture consumers."""
    return load_settings()


@pytest.fixture(scope="session")
def postgres_dsn(env_settings: BookkeeperSettings) -> str | None:
    """Return Postgres DSN when real-provider integrations are enabled."""
    if not real_provider_tests_enabled():
        return None
    return resolve_postgres_settings(env_settings).url


@pytest.fixture(scope="session")
def redis_url(env_settings: BookkeeperSettings) -> str | None:
    """Return Redis URL when real-provider integrations are enabled."""
    if not real_provider_tests_enabled():
        return None
    return resolve_redis_settings(env_settings).url


@pytest.fixture(scope="session")
def postgres_engine(postgres_dsn: str | None):
    """Return SQLAlchemy engine for real-provider tests or skip if unavailable."""
    if postgres_dsn is None:
        pytest.skip("real-provider integration tests disabled")
    from sqlalchemy import create_engine

    engine = create_engine(postgres_dsn)
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"postgres unavailable for integration tests: {exc}")
    return engine


@pytest.fixture(scope="session")
def redis_client(redis_url: str | None):
    """Return Redis client for real-provider tests or skip if unavailable."""
    if redis_url is None:
        pytest.skip("real-provider integration tests disabled")

    from redis import Redis

    client = Redis.from_url(redis_url)
    try:
        client.ping()
    except Exception as exc:  # noqa: BLE001
        pytest.skip(f"redis unavailable for integration tests: {exc}")
    return client
