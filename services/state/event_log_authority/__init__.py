"""Event Log Authority Service: append-only log of ingested catalog events."""

from services.state.event_log_authority.component import (
    MANIFEST,
    SERVICE_COMPONENT_ID,
)
from services.state.event_log_authority.domain import HealthStatus, LogEntry
from services.state.event_log_authority.service import (
    EventLogAuthorityService,
    build_event_log_authority_service,
)

__all__ = [
    "MANIFEST",
    "SERVICE_COMPONENT_ID",
    "EventLogAuthorityService",
    "HealthStatus",
    "LogEntry",
    "build_event_log_authority_service",
]
