from datetime import date
from typing import Optional

from sqlmodel import Field, UniqueConstraint

from meridian.models.base_model import TimestampedModel


class MetricSnapshot(TimestampedModel, table=True):
    __tablename__ = "metric_snapshots"
    __table_args__ = (
        UniqueConstraint(
            "repository_id", "snapshot_date", name="uq_repository_snapshot_date"
        ),
    )

    repository_id: int = Field(foreign_key="repositories.id", index=True)
    snapshot_date: date
    prs_opened: int = 0
    prs_merged: int = 0
    p50_cycle_time: Optional[int] = None
    p95_cycle_time: Optional[int] = None
    merge_rate: Optional[float] = None
