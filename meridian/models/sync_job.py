import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, JSON, Text
from sqlmodel import Field

from meridian.models.base_model import TimestampedModel


class SyncJobStatus(str, enum.Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class SyncJobType(str, enum.Enum):
    MANUAL = "manual"
    CRON = "cron"
    WEBHOOK = "webhook"


class SyncJob(TimestampedModel, table=True):
    __tablename__ = "sync_jobs"

    owner_id: int = Field(foreign_key="owners.id", index=True)
    job_type: str = Field(max_length=16)
    status: str = Field(index=True, max_length=16)
    started_at: datetime
    completed_at: Optional[datetime] = None
    progress: dict = Field(default={}, sa_column=Column(JSON))
    error: Optional[str] = Field(default=None, sa_column=Column(Text))

    def __repr__(self):
        return f"<SyncJob(id={self.id}, owner_id={self.owner_id}, status={self.status})>"
