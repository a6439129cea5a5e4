"""Catalog Authority Service: book records with commit-gated change events."""

from services.state.catalog_authority.component import MANIFEST, SERVICE_COMPONENT_ID
from services.state.catalog_authority.domain import (
    BookPage,
    BookRecord,
    HealthStatus,
    UpdateBooksResult,
)
from services.state.catalog_authority.service import (
    CatalogAuthorityService,
    build_catalog_authority_service,
)

__all__ = [
    "MANIFEST",
    "SERVICE_COMPONENT_ID",
    "BookPage",
    "BookRecord",
    "CatalogAuthorityService",
    "HealthStatus",
    "UpdateBooksResult",
    "build_catalog_authority_service",
]
