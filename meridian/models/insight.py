from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, JSON, Text
from sqlmodel import Field

from meridian.models.base_model import TimestampedModel
from meridian.utils.timeutils import utcnow


class Insight(TimestampedModel, table=True):
    """
    A persisted finding. Unread, undismissed rows are a disposable cache of
    the latest analysis; read or dismissed rows are kept as user state.
    """

    __tablename__ = "insights"

    owner_id: int = Field(foreign_key="owners.id", index=True)
    type: str = Field(max_length=16)
    category: str = Field(max_length=32)
    title: str
    description: str = Field(sa_column=Column(Text, nullable=False))
    action: Optional[str] = None
    metric: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    affected_contributors: List[str] = Field(default=[], sa_column=Column(JSON))
    priority: int = Field(index=True)
    generated_at: datetime = Field(default_factory=utcnow)
    is_read: bool = False
    is_dismissed: bool = False
