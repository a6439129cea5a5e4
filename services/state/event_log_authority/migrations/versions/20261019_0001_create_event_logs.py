"""create event log authority tables"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

from services.state.event_log_authority.data.runtime import event_log_postgres_schema

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _schema() -> str:
    """Resolve canonical event-log-owned schema name."""
    return event_log_postgres_schema()


def upgrade() -> None:
    """Create the append-only event log table."""
    schema = _schema()

    op.create_table(
        "event_logs",
        sa.Column("id", sa.LargeBinary(length=16), primary_key=True, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("subject_type", sa.String(length=255), nullable=False),
        sa.Column("event_type", sa.String(length=16), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.CheckConstraint("length(id) = 16", name="ck_event_logs_id_ulid_16"),
        sa.CheckConstraint(
            "event_type IN ('CREATE', 'UPDATE', 'DELETE')",
            name="ck_event_logs_event_type",
        ),
        schema=schema,
    )
    op.create_index(
        "ix_event_logs_timestamp",
        "event_logs",
        ["timestamp", "id"],
        schema=schema,
    )


def downgrade() -> None:
    """Drop the event log table."""
    schema = _schema()
    op.drop_index("ix_event_logs_timestamp", table_name="event_logs", schema=schema)
    op.drop_table("event_logs", schema=schema)
