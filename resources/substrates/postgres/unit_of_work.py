"""Explicit transaction object with post-commit callbacks.

A ``UnitOfWork`` wraps one SQLAlchemy session for the lifetime of one
mutation. Work that must only happen once the data is durable (publishing an
event, for instance) registers with ``after_commit``. Registered callbacks
run at most once, after ``Session.commit()`` returns, and are dropped when
the transaction rolls back or the commit itself fails.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from sqlalchemy.orm import Session

from packages.bookkeeper_shared.logging import get_logger

_LOGGER = get_logger(__name__)

AfterCommitCallback = Callable[[], None]


class UnitOfWorkState(str, Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class UnitOfWorkClosedError(RuntimeError):
    """Raised when a finished unit of work is used again."""


class UnitOfWork:
    """One transaction plus the callbacks gated on its commit."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._callbacks: list[AfterCommitCallback] = []
        self._state = UnitOfWorkState.ACTIVE

    @property
    def session(self) -> Session:
        return self._session

    @property
    def state(self) -> UnitOfWorkState:
        return self._state

    @property
    def pending_callbacks(self) -> int:
        """Number of callbacks waiting on commit."""
        return len(self._callbacks)

    def after_commit(self, callback: AfterCommitCallback) -> None:
        """Run ``callback`` once this unit of work commits successfully."""
        self._ensure_active()
        self._callbacks.append(callback)

    def commit(self) -> None:
        """Commit the session, then fire registered callbacks in order.

        A commit failure propagates and leaves the unit of work active so the
        caller can roll it back; no callback runs in that case.
        """
        self._ensure_active()
        self._session.commit()
        self._state = UnitOfWorkState.COMMITTED
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                _LOGGER.exception(
                    "after-commit callback failed",
                    extra={"callback": getattr(callback, "__qualname__", repr(callback))},
                )

    def rollback(self) -> None:
        """Roll back and discard callbacks; no-op once committed or rolled back."""
        if self._state is not UnitOfWorkState.ACTIVE:
            return
        self._callbacks.clear()
        self._state = UnitOfWorkState.ROLLED_BACK
        self._session.rollback()

    def _ensure_active(self) -> None:
        if self._state is not UnitOfWorkState.ACTIVE:
            raise UnitOfWorkClosedError(
                f"unit of work is {self._state.value}; no further work accepted"
            )
