import enum
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from meridian.models.pull_request import PullRequestState


class InsightType(str, enum.Enum):
    WARNING = "WARNING"
    CAUTION = "CAUTION"
    INFO = "INFO"
    SUCCESS = "SUCCESS"


class InsightCategory(str, enum.Enum):
    BOTTLENECK = "BOTTLENECK"
    WORKLOAD = "WORKLOAD"
    VELOCITY = "VELOCITY"
    COLLABORATION = "COLLABORATION"
    QUALITY = "QUALITY"
    STRATEGIC = "STRATEGIC"


class ReviewView(BaseModel):
    reviewer_login: str
    state: str
    submitted_at: datetime


class PullRequestView(BaseModel):
    """A pull request and its reviews, as the detectors see them."""

    id: int
    repository_id: int
    number: int
    title: str = ""
    state: PullRequestState
    author_login: str
    created_at: datetime
    updated_at: datetime
    merged_at: Optional[datetime] = None
    time_to_first_review: Optional[int] = Field(None, ge=0)
    time_to_merge: Optional[int] = Field(None, ge=0)
    reviews: List[ReviewView] = []

    @property
    def is_open(self) -> bool:
        return self.state == PullRequestState.OPEN

    @property
    def is_merged(self) -> bool:
        return self.state == PullRequestState.MERGED


class InsightMetric(BaseModel):
    value: Union[int, float, str]
    label: str


class InsightFinding(BaseModel):
    type: InsightType
    category: InsightCategory
    title: str
    description: str
    action: Optional[str] = None
    metric: Optional[InsightMetric] = None
    affected_contributors: List[str] = []
    priority: int = Field(..., ge=1, le=10)


class StrategicAdvice(BaseModel):
    """Shape expected back from the summarizer."""

    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    action: Optional[str] = None
