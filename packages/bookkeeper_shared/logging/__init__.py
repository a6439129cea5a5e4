"""Shared logging API for Bookkeeper components.

Thin layer over the standard ``logging`` module: stdout emission, JSON or
plain formatting, and contextvar-scoped structured fields.
"""

from .config import configure_logging, get_logger
from .context import bind_context, clear_context, get_context, log_context
from .public_api import (
    CompletionContext,
    InvocationContext,
    PublicApiLoggingConcern,
    public_api_instrumented,
)

__all__ = [
    "bind_context",
    "clear_context",
    "CompletionContext",
    "configure_logging",
    "get_context",
    "get_logger",
    "InvocationContext",
    "log_context",
    "PublicApiLoggingConcern",
    "public_api_instrumented",
]
