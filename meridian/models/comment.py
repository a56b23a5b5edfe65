from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, Text
from sqlmodel import Field

from meridian.models.base_model import BaseModel
from meridian.utils.timeutils import utcnow


class Comment(BaseModel, table=True):
    __tablename__ = "comments"

    github_comment_id: int = Field(
        sa_column=Column(BigInteger, unique=True, nullable=False, index=True)
    )
    pull_request_id: int = Field(foreign_key="pull_requests.id", index=True)
    author_login: str
    author_avatar_url: Optional[str] = None
    body: str = Field(default="", sa_column=Column(Text, nullable=False))
    created_at: datetime
    updated_at: datetime
    synced_at: datetime = Field(default_factory=utcnow)
