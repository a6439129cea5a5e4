"""create catalog authority tables"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from services.state.catalog_authority.data.runtime import catalog_postgres_schema

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _schema() -> str:
    """Resolve canonical catalog-owned schema name."""
    return catalog_postgres_schema()


def upgrade() -> None:
    """Create catalog authoritative schema objects."""
    schema = _schema()

    op.create_table(
        "books",
        sa.Column("id", sa.LargeBinary(length=16), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("publication_year", sa.Integer(), nullable=True),
        sa.Column("description", sa.String(length=2000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("length(id) = 16", name="ck_books_id_ulid_16"),
        sa.CheckConstraint(
            "publication_year IS NULL OR publication_year BETWEEN 1000 AND 9999",
            name="ck_books_publication_year_range",
        ),
        schema=schema,
    )
    op.create_index("ix_books_title", "books", ["title"], schema=schema)


def downgrade() -> None:
    """Drop catalog authoritative schema objects."""
    schema = _schema()
    op.drop_index("ix_books_title", table_name="books", schema=schema)
    op.drop_table("books", schema=schema)
