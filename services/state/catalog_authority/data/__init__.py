"""Data-layer exports for Catalog Authority Service."""

from services.state.catalog_authority.data.repository import SqlBookRepository
from services.state.catalog_authority.data.runtime import CatalogPostgresRuntime
from services.state.catalog_authority.data.schema import books, metadata

__all__ = ["CatalogPostgresRuntime", "SqlBookRepository", "books", "metadata"]
