"""Create owners table

Revision ID: owners_001
Revises:
Create Date: 2026-10-05 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

revision = "owners_001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "owners",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("github_user_id", sa.BigInteger, nullable=False),
        sa.Column("github_login", sa.String(255), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("encrypted_token", sa.Text, nullable=False),
        sa.Column("token_created_at", sa.DateTime, nullable=True),
        sa.Column("last_synced_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime, server_default=func.now(), nullable=False),
    )
    op.create_index(
        "ix_owners_github_user_id", "owners", ["github_user_id"], unique=True
    )


def downgrade() -> None:
    op.drop_index("ix_owners_github_user_id")
    op.drop_table("owners")
