from datetime import timedelta
from typing import Any, Dict, Optional

from sqlmodel import Session, col, select

from meridian.config import settings
from meridian.models.owner import Owner
from meridian.models.sync_job import SyncJob, SyncJobStatus, SyncJobType
from meridian.utils.logger import logger
from meridian.utils.timeutils import utcnow


def create_job(session: Session, owner_id: int, job_type: SyncJobType) -> SyncJob:
    now = utcnow()
    job = SyncJob(
        owner_id=owner_id,
        job_type=job_type.value,
        status=SyncJobStatus.RUNNING.value,
        started_at=now,
        progress={},
    )
    session.add(job)
    session.commit()
    session.refresh(job)
    logger.info(f"Sync job {job.id} started for owner {owner_id} ({job_type.value})")
    return job


def complete_job(session: Session, job: SyncJob, progress: Dict[str, Any]) -> SyncJob:
    job.status = SyncJobStatus.COMPLETED.value
    job.completed_at = utcnow()
    job.updated_at = job.completed_at
    job.progress = progress
    session.add(job)
    session.commit()
    session.refresh(job)
    logger.info(f"Sync job {job.id} completed: {progress}")
    return job


def fail_job(session: Session, job: SyncJob, error: str) -> SyncJob:
    job.status = SyncJobStatus.FAILED.value
    job.completed_at = utcnow()
    job.updated_at = job.completed_at
    job.error = error
    session.add(job)
    session.commit()
    session.refresh(job)
    logger.error(f"Sync job {job.id} failed: {error}")
    return job


def fail_stale_jobs(session: Session, max_age_minutes: Optional[int] = None) -> int:
    """
    Mark RUNNING jobs older than ``max_age_minutes`` as FAILED.

    A job left RUNNING by a crashed process would otherwise never reach a
    terminal state.
    """
    max_age = settings.STALE_SYNC_JOB_MINUTES if max_age_minutes is None else max_age_minutes
    cutoff = utcnow() - timedelta(minutes=max_age)
    stale = session.exec(
        select(SyncJob).where(
            SyncJob.status == SyncJobStatus.RUNNING.value,
            SyncJob.started_at < cutoff,
        )
    ).all()
    for job in stale:
        job.status = SyncJobStatus.FAILED.value
        job.completed_at = utcnow()
        job.updated_at = job.completed_at
        job.error = "Sync timed out"
        session.add(job)
    session.commit()
    if stale:
        logger.warning(f"Marked {len(stale)} stale sync job(s) as failed")
    return len(stale)


def get_latest_job(session: Session, owner_id: int) -> Optional[SyncJob]:
    return session.exec(
        select(SyncJob)
        .where(SyncJob.owner_id == owner_id)
        .order_by(col(SyncJob.started_at).desc(), col(SyncJob.id).desc())
        .limit(1)
    ).first()


def _job_to_dict(job: SyncJob) -> Dict[str, Any]:
    return {
        "id": job.id,
        "job_type": job.job_type,
        "status": job.status,
        "started_at": job.started_at.isoformat(),
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
        "progress": job.progress or {},
        "error": job.error,
    }


def get_sync_status(session: Session, owner: Owner) -> Dict[str, Any]:
    """Last successful sync time and the most recent job, if any."""
    job = get_latest_job(session, owner.id)
    return {
        "last_synced_at": owner.last_synced_at.isoformat()
        if owner.last_synced_at
        else None,
        "latest_job": _job_to_dict(job) if job else None,
    }
