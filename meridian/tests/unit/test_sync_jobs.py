from datetime import timedelta

from meridian.models.sync_job import SyncJob, SyncJobStatus, SyncJobType
from meridian.services import sync_jobs
from meridian.tests.helpers import make_owner
from meridian.utils.timeutils import utcnow


def test_fail_stale_jobs_only_touches_old_running_jobs(session):
    owner = make_owner(session)
    stale = sync_jobs.create_job(session, owner.id, SyncJobType.CRON)
    stale.started_at = utcnow() - timedelta(hours=2)
    session.add(stale)
    session.commit()
    fresh = sync_jobs.create_job(session, owner.id, SyncJobType.MANUAL)

    count = sync_jobs.fail_stale_jobs(session, max_age_minutes=30)

    assert count == 1
    assert session.get(SyncJob, stale.id).status == SyncJobStatus.FAILED.value
    assert session.get(SyncJob, stale.id).error == "Sync timed out"
    assert session.get(SyncJob, fresh.id).status == SyncJobStatus.RUNNING.value


def test_sync_status_reports_latest_job(session):
    owner = make_owner(session)
    assert sync_jobs.get_sync_status(session, owner) == {
        "last_synced_at": None,
        "latest_job": None,
    }

    job = sync_jobs.create_job(session, owner.id, SyncJobType.MANUAL)
    sync_jobs.complete_job(session, job, {"pull_requests": 3})

    status = sync_jobs.get_sync_status(session, owner)
    assert status["latest_job"]["id"] == job.id
    assert status["latest_job"]["status"] == "COMPLETED"
    assert status["latest_job"]["progress"] == {"pull_requests": 3}
    assert status["latest_job"]["error"] is None
