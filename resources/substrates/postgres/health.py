"""Readiness probe for the Postgres substrate."""

from __future__ import annotations

from sqlalchemy import Engine, text


def ping(engine: Engine, *, timeout_seconds: float = 1.0) -> bool:
    """Return ``True`` when Postgres answers ``SELECT 1`` within the timeout."""
    timeout_ms = max(1, int(timeout_seconds * 1000))
    dialect = getattr(getattr(engine, "dialect", None), "name", "postgresql")
    try:
        with engine.connect() as conn:
            if dialect == "postgresql":
                conn.execute(
                    text("SELECT set_config('statement_timeout', :timeout_value, false)"),
                    {"timeout_value": f"{timeout_ms}ms"},
                )
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
