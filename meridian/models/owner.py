from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column, Text
from sqlmodel import Field

from meridian.models.base_model import TimestampedModel


class Owner(TimestampedModel, table=True):
    """A connected GitHub identity and its encrypted personal access token."""

    __tablename__ = "owners"

    github_user_id: int = Field(
        sa_column=Column(BigInteger, unique=True, nullable=False, index=True)
    )
    github_login: str = Field(index=True)
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    encrypted_token: str = Field(sa_column=Column(Text, nullable=False))
    token_created_at: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None
    # Set on every insight generation, including ones that found nothing.
    insights_generated_at: Optional[datetime] = None

    def __repr__(self):
        return f"<Owner(id={self.id}, github_login={self.github_login})>"
