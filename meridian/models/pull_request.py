import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, Text
from sqlmodel import Field, UniqueConstraint

from meridian.models.base_model import BaseModel
from meridian.utils.timeutils import utcnow


class PullRequestState(str, enum.Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"
    CLOSED = "CLOSED"


class PullRequest(BaseModel, table=True):
    """
    A pull request as last observed on GitHub.

    ``created_at``/``updated_at`` are GitHub's timestamps; ``synced_at`` is the
    last time this row was written. ``time_to_first_review`` and
    ``time_to_merge`` are derived (whole minutes) and only ever written by
    ``refresh_pull_request_timings``.
    """

    __tablename__ = "pull_requests"
    __table_args__ = (
        UniqueConstraint("repository_id", "number", name="uq_repository_pr_number"),
    )

    repository_id: int = Field(foreign_key="repositories.id", index=True)
    github_pr_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    number: int
    title: str
    body: Optional[str] = Field(default=None, sa_column=Column(Text))
    state: str = Field(index=True, max_length=16)
    author_login: str = Field(index=True)
    author_avatar_url: Optional[str] = None
    created_at: datetime = Field(index=True)
    updated_at: datetime
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    lines_added: int = 0
    lines_deleted: int = 0
    files_changed: int = 0
    commits_count: int = 0
    time_to_first_review: Optional[int] = None
    time_to_merge: Optional[int] = None
    review_cycle_count: int = 0
    synced_at: datetime = Field(default_factory=utcnow)

    def __repr__(self):
        return f"<PullRequest(repository_id={self.repository_id}, number={self.number}, state={self.state})>"
