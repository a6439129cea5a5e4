"""Contextvar-backed structured logging context.

Values bound here are attached to every record emitted from the same thread
or task, so a worker can tag its lines with the queue and consumer once.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

_LOG_CONTEXT: ContextVar[dict[str, str]] = ContextVar(
    "bookkeeper_log_context", default={}
)


def get_context() -> dict[str, str]:
    """Return a copy of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind_context(**values: object) -> None:
    """Bind stringified values into the active context, skipping ``None``."""
    if not values:
        return
    merged = _LOG_CONTEXT.get().copy()
    merged.update(
        {str(key): str(value) for key, value in values.items() if value is not None}
    )
    _LOG_CONTEXT.set(merged)


def clear_context(*keys: str) -> None:
    """Drop selected keys, or every key when none are given."""
    if not keys:
        _LOG_CONTEXT.set({})
        return
    remaining = {
        key: value for key, value in _LOG_CONTEXT.get().items() if key not in keys
    }
    _LOG_CONTEXT.set(remaining)


@contextmanager
def log_context(values: Mapping[str, object]) -> Iterator[None]:
    """Bind context for one block and restore the previous context after."""
    token = _LOG_CONTEXT.set(_LOG_CONTEXT.get().copy())
    try:
        bind_context(**dict(values))
        yield
    finally:
        _LOG_CONTEXT.reset(token)
