"""Pydantic settings for the event channel adapter."""

from __future__ import annotations

import os
import socket

from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.bookkeeper_shared.config import (
    BookkeeperSettings,
    resolve_component_settings,
)
from resources.adapters.event_channel.component import RESOURCE_COMPONENT_ID


class EventChannelSettings(BaseModel):
    """Topic stream, read policy, and redelivery policy for the channel."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    topic: str = "bookkeeper.events"
    max_stream_length: int | None = Field(default=100_000, gt=0)
    read_batch_size: int = Field(default=10, gt=0)
    block_ms: int = Field(default=1000, ge=0)
    claim_idle_ms: int = Field(default=30_000, ge=0)
    max_deliveries: int = Field(default=5, gt=0)
    dead_letter_suffix: str = ".dead-letter"
    consumer_name: str = ""

    @field_validator("topic", "dead_letter_suffix")
    @classmethod
    def _require_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("value must not be empty")
        return normalized

    @property
    def dead_letter_stream(self) -> str:
        """Stream receiving entries that exhausted ``max_deliveries``."""
        return f"{self.topic}{self.dead_letter_suffix}"

    def resolved_consumer_name(self) -> str:
        """Configured consumer name, else ``<hostname>-<pid>``."""
        configured = self.consumer_name.strip()
        if configured:
            return configured
        return f"{socket.gethostname()}-{os.getpid()}"


def resolve_event_channel_settings(settings: BookkeeperSettings) -> EventChannelSettings:
    """Resolve channel settings from ``components.adapter.event_channel``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(RESOURCE_COMPONENT_ID),
        model=EventChannelSettings,
    )
