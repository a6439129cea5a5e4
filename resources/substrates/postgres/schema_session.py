"""Service-schema scoped sessions and units of work."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker

from resources.substrates.postgres.session import transactional_session
from resources.substrates.postgres.unit_of_work import UnitOfWork


class ServiceSchemaSessionProvider:
    """Open transactions pinned to one service-owned schema.

    ``schema=None`` skips the ``search_path`` pin, which is how tests run the
    same repositories against SQLite.
    """

    def __init__(
        self, *, session_factory: sessionmaker[Session], schema: str | None
    ) -> None:
        if schema is not None:
            _validate_schema(schema)
        self._session_factory = session_factory
        self._schema = schema

    @property
    def schema(self) -> str | None:
        return self._schema

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a transaction-scoped session for read paths."""
        with transactional_session(self._session_factory) as db:
            self._pin_schema(db)
            yield db

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        """Yield a unit of work that commits on exit and rolls back on error.

        After-commit callbacks fire inside ``UnitOfWork.commit`` once the
        commit has returned; an exception raised in the block, or by the
        commit, rolls back and drops them.
        """
        session = self._session_factory()
        uow = UnitOfWork(session)
        try:
            self._pin_schema(session)
            yield uow
            uow.commit()
        except Exception:
            uow.rollback()
            raise
        finally:
            session.close()

    def _pin_schema(self, session: Session) -> None:
        if self._schema is not None:
            session.execute(text(f"SET LOCAL search_path TO {self._schema}, public"))


def _validate_schema(schema: str) -> None:
    """Reject names that would produce a malformed ``search_path`` statement."""
    if not schema:
        raise ValueError("postgres schema is required")
    if not schema.replace("_", "").isalnum():
        raise ValueError("postgres schema must be alphanumeric/underscore")
