from meridian.events.event import Event
from meridian.models.sync_job import SyncJobType


class SyncEvent(Event):
    """Request to run a full sync for one owner, followed by metric and insight refresh."""

    def __init__(self, owner_id: int, job_type: SyncJobType = SyncJobType.CRON):
        super().__init__({"owner_id": owner_id, "job_type": job_type.value})

    @property
    def owner_id(self) -> int:
        return self.data["owner_id"]

    @property
    def job_type(self) -> SyncJobType:
        return SyncJobType(self.data["job_type"])

    def __str__(self):
        return f"SyncEvent: {self.job_type.value} sync for owner {self.owner_id}"
