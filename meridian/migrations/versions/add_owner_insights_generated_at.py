"""Add owners.insights_generated_at

Revision ID: analytics_002
Revises: analytics_001
Create Date: 2026-10-19 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa

revision = "analytics_002"
down_revision = "analytics_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column(
        "owners", sa.Column("insights_generated_at", sa.DateTime, nullable=True)
    )


def downgrade() -> None:
    op.drop_column("owners", "insights_generated_at")
