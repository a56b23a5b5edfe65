import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, Text
from sqlmodel import Field

from meridian.models.base_model import BaseModel
from meridian.utils.timeutils import utcnow


class ReviewState(str, enum.Enum):
    APPROVED = "APPROVED"
    CHANGES_REQUESTED = "CHANGES_REQUESTED"
    COMMENTED = "COMMENTED"
    DISMISSED = "DISMISSED"


class Review(BaseModel, table=True):
    __tablename__ = "reviews"

    github_review_id: int = Field(
        sa_column=Column(BigInteger, unique=True, nullable=False, index=True)
    )
    pull_request_id: int = Field(foreign_key="pull_requests.id", index=True)
    reviewer_login: str = Field(index=True)
    reviewer_avatar_url: Optional[str] = None
    state: str = Field(max_length=32)
    body: Optional[str] = Field(default=None, sa_column=Column(Text))
    submitted_at: datetime
    synced_at: datetime = Field(default_factory=utcnow)

    def __repr__(self):
        return f"<Review(github_review_id={self.github_review_id}, state={self.state})>"
