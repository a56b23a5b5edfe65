"""Create pull_requests, reviews and comments tables

Revision ID: pull_requests_001
Revises: repositories_001
Create Date: 2026-10-06 00:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.sql import func

revision = "pull_requests_001"
down_revision = "repositories_001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "pull_requests",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "repository_id",
            sa.Integer,
            sa.ForeignKey("repositories.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("github_pr_id", sa.BigInteger, nullable=False),
        sa.Column("number", sa.Integer, nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("state", sa.String(16), nullable=False, index=True),
        sa.Column("author_login", sa.String(255), nullable=False, index=True),
        sa.Column("author_avatar_url", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, index=True),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.Column("closed_at", sa.DateTime, nullable=True),
        sa.Column("merged_at", sa.DateTime, nullable=True),
        sa.Column("lines_added", sa.Integer, nullable=False, server_default="0"),
        sa.Column("lines_deleted", sa.Integer, nullable=False, server_default="0"),
        sa.Column("files_changed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("commits_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("time_to_first_review", sa.Integer, nullable=True),
        sa.Column("time_to_merge", sa.Integer, nullable=True),
        sa.Column("review_cycle_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("synced_at", sa.DateTime, server_default=func.now(), nullable=False),
        sa.UniqueConstraint("repository_id", "number", name="uq_repository_pr_number"),
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("github_review_id", sa.BigInteger, nullable=False),
        sa.Column(
            "pull_request_id",
            sa.Integer,
            sa.ForeignKey("pull_requests.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("reviewer_login", sa.String(255), nullable=False, index=True),
        sa.Column("reviewer_avatar_url", sa.String(500), nullable=True),
        sa.Column("state", sa.String(32), nullable=False),
        sa.Column("body", sa.Text, nullable=True),
        sa.Column("submitted_at", sa.DateTime, nullable=False),
        sa.Column("synced_at", sa.DateTime, server_default=func.now(), nullable=False),
    )
    op.create_index(
        "ix_reviews_github_review_id", "reviews", ["github_review_id"], unique=True
    )

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("github_comment_id", sa.BigInteger, nullable=False),
        sa.Column(
            "pull_request_id",
            sa.Integer,
            sa.ForeignKey("pull_requests.id"),
            nullable=False,
            index=True,
        ),
        sa.Column("author_login", sa.String(255), nullable=False),
        sa.Column("author_avatar_url", sa.String(500), nullable=True),
        sa.Column("body", sa.Text, nullable=False),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
        sa.Column("synced_at", sa.DateTime, server_default=func.now(), nullable=False),
    )
    op.create_index(
        "ix_comments_github_comment_id", "comments", ["github_comment_id"], unique=True
    )


def downgrade() -> None:
    op.drop_index("ix_comments_github_comment_id")
    op.drop_table("comments")
    op.drop_index("ix_reviews_github_review_id")
    op.drop_table("reviews")
    op.drop_table("pull_requests")
