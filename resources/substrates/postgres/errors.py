"""Mapping from database exceptions to shared error details."""

from __future__ import annotations

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
)

from packages.bookkeeper_shared.errors import (
    ErrorDetail,
    codes,
    conflict_error,
    dependency_error,
    internal_error,
)


def is_postgres_error(exc: Exception) -> bool:
    """Return ``True`` for exceptions raised by SQLAlchemy or its DBAPI driver."""
    return isinstance(exc, DBAPIError) or type(exc).__module__.startswith(
        ("psycopg", "sqlalchemy")
    )


def normalize_postgres_error(exc: Exception) -> ErrorDetail:
    """Classify one storage exception as conflict, dependency, or internal."""
    exc_type_name = type(exc).__name__
    message = str(exc)
    metadata = {"exception_type": exc_type_name}

    if isinstance(exc, IntegrityError) or "UniqueViolation" in exc_type_name:
        return conflict_error(
            "resource conflicts with existing state",
            code=codes.ALREADY_EXISTS,
            metadata=metadata,
        )

    if isinstance(exc, OperationalError) or "timeout" in message.lower():
        return dependency_error(
            "postgres unavailable",
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=True,
            metadata=metadata,
        )

    if isinstance(exc, (InterfaceError, ProgrammingError)):
        return dependency_error(
            "postgres request failed",
            code=codes.DEPENDENCY_FAILURE,
            retryable=False,
            metadata=metadata,
        )

    return internal_error(
        "unexpected postgres failure",
        code=codes.UNEXPECTED_EXCEPTION,
        metadata=metadata,
    )
