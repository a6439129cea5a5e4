"""Data-layer exports for Event Log Authority Service."""

from services.state.event_log_authority.data.repository import SqlEventLogRepository
from services.state.event_log_authority.data.runtime import EventLogPostgresRuntime
from services.state.event_log_authority.data.schema import event_logs, metadata

__all__ = [
    "EventLogPostgresRuntime",
    "SqlEventLogRepository",
    "event_logs",
    "metadata",
]
