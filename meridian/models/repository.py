from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Column
from sqlmodel import Field, UniqueConstraint

from meridian.models.base_model import TimestampedModel


class Repository(TimestampedModel, table=True):
    __tablename__ = "repositories"
    __table_args__ = (
        UniqueConstraint("owner_id", "github_repo_id", name="uq_owner_github_repo"),
    )

    owner_id: int = Field(foreign_key="owners.id", index=True)
    github_repo_id: int = Field(sa_column=Column(BigInteger, nullable=False, index=True))
    name: str
    full_name: str = Field(index=True)
    default_branch: str = "main"
    description: Optional[str] = None
    is_private: bool = False
    is_active: bool = True
    last_synced_at: Optional[datetime] = None

    @property
    def owner_and_name(self):
        owner, _, name = self.full_name.partition("/")
        return owner, name

    def __repr__(self):
        return f"<Repository(id={self.id}, full_name={self.full_name})>"
