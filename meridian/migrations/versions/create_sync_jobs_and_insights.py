"""Create sync_jobs, insights and metric_snapshots tables

Revision ID: analytics_001
Revises: pull_requests_001
Create Date: 2026-10-07 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

revision = "analytics_001"
down_revision = "pull_requests_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sync_jobs",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "owner_id", sa.Integer, sa.ForeignKey("owners.id"), nullable=False, index=True
        ),
        sa.Column("job_type", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, index=True),
        sa.Column("started_at", sa.DateTime, nullable=False),
        sa.Column("completed_at", sa.DateTime, nullable=True),
        sa.Column("progress", sa.JSON, nullable=True),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
    )

    op.create_table(
        "insights",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "owner_id", sa.Integer, sa.ForeignKey("owners.id"), nullable=False, index=True
        ),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("action", sa.String, nullable=True),
        sa.Column("metric", sa.JSON, nullable=True),
        sa.Column("affected_contributors", sa.JSON, nullable=True),
        sa.Column("priority", sa.Integer, nullable=False, index=True),
        sa.Column("generated_at", sa.DateTime, nullable=False),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_dismissed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
    )

    op.create_table(
        "metric_snapshots",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "repository_id",
            sa.Integer,
            sa.ForeignKey("repositories.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("snapshot_date", sa.Date, nullable=False),
        sa.Column("prs_opened", sa.Integer, nullable=False, server_default="0"),
        sa.Column("prs_merged", sa.Integer, nullable=False, server_default="0"),
        sa.Column("p50_cycle_time", sa.Integer, nullable=True),
        sa.Column("p95_cycle_time", sa.Integer, nullable=True),
        sa.Column("merge_rate", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.UniqueConstraint(
            "repository_id", "snapshot_date", name="uq_repository_snapshot_date"
        ),
    )


def downgrade() -> None:
    op.drop_table("metric_snapshots")
    op.drop_table("insights")
    op.drop_table("sync_jobs")
