"""Pydantic settings for Catalog Authority Service behavior."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from packages.bookkeeper_shared.config import (
    BookkeeperSettings,
    resolve_component_settings,
)
from resources.adapters.event_channel.routing import validate_routing_key
from services.state.catalog_authority.component import SERVICE_COMPONENT_ID


class CatalogAuthoritySettings(BaseModel):
    """Catalog Authority Service runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    subject_type: str = Field(default="Book", min_length=1)
    routing_key: str = "catalog.book.event"
    default_page_size: int = Field(default=10, gt=0)
    max_page_size: int = Field(default=100, gt=0)
    # One send thread at most; sends from one publisher keep commit order.
    publish_workers: int = Field(default=0, ge=0, le=1)

    @field_validator("routing_key")
    @classmethod
    def _validate_routing_key(cls, value: str) -> str:
        """Require a concrete dotted routing key without wildcards."""
        return validate_routing_key(value)

    @model_validator(mode="after")
    def _validate_page_sizes(self) -> "CatalogAuthoritySettings":
        """Keep the default page size within the configured cap."""
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must not exceed max_page_size")
        return self


def resolve_catalog_authority_settings(
    settings: BookkeeperSettings,
) -> CatalogAuthoritySettings:
    """Resolve settings from ``components.service.catalog_authority``."""
    return resolve_component_settings(
        settings=settings,
        component_id=str(SERVICE_COMPONENT_ID),
        model=CatalogAuthoritySettings,
    )
