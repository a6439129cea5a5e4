"""Pydantic settings for Event Log Authority Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.bookkeeper_shared.config import (
    BookkeeperSettings,
    resolve_component_settings,
)
from resources.adapters.event_channel.routing import validate_binding_pattern
from services.state.event_log_authority.component import SERVICE_COMPONENT_ID


class EventLogAuthoritySettings(BaseModel):
    """Event Log Authority Service ingestion and worker settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    queue_name: str = Field(default="bookkeeper.event-log", min_length=1)
    binding_pattern: str = "catalog.book.#"
    start_worker_on_boot: bool = True
    worker_concurrency: int = Field(default=1, ge=1, le=32)
    messages_per_poll: int = Field(default=10, gt=0)
    consumer_name: str = ""
    shutdown_timeout_seconds: float = Field(default=5.0, gt=0)
    failure_backoff_initial_seconds: float = Field(default=1.0, gt=0)
    failure_backoff_max_seconds: float = Field(default=30.0, gt=0)
    failure_backoff_multiplier: float = Field(default=2.0, gt=1.0)
    failure_backoff_jitter_ratio: float = Field(default=0.2, ge=0, lt=1.0)
    max_description_length: int = Field(default=1000, gt=0, le=1000)

    @field_validator("binding_pattern")
    @classmethod
    def _validate_binding_pattern(cls, value: str) -> str:
        """Require a well-formed topic binding pattern."""
        return validate_binding_pattern(value)


def resolve_event_log_authority_settings(
    settings: BookkeeperSettings,
) -> EventLogAuthoritySettings:
    """Resolve settings from ``components.service.event_log_authority``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(SERVICE_COMPONENT_ID),
        model=EventLogAuthoritySettings,
    )
