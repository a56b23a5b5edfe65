from meridian.models.owner import Owner
from meridian.models.repository import Repository
from meridian.models.pull_request import PullRequest, PullRequestState
from meridian.models.review import Review, ReviewState
from meridian.models.comment import Comment
from meridian.models.sync_job import SyncJob, SyncJobStatus, SyncJobType
from meridian.models.insight import Insight
from meridian.models.metric_snapshot import MetricSnapshot

__all__ = [
    "Owner",
    "Repository",
    "PullRequest",
    "PullRequestState",
    "Review",
    "ReviewState",
    "Comment",
    "SyncJob",
    "SyncJobStatus",
    "SyncJobType",
    "Insight",
    "MetricSnapshot",
]
