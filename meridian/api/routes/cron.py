from fastapi import APIRouter, BackgroundTasks, Depends
from sqlmodel import Session

from meridian.api.security import verify_cron_secret
from meridian.config.db import get_session
from meridian.core.responses import success_response
from meridian.events.dispatcher import EventDispatcher, bg_tasks_cv
from meridian.events.sync_event import SyncEvent
from meridian.models.sync_job import SyncJobType
from meridian.services.owner_service import list_owners
from meridian.services.sync_jobs import fail_stale_jobs
from meridian.utils.logger import logger

router = APIRouter()


@router.get("/sync", dependencies=[Depends(verify_cron_secret)])
def cron_sync(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
):
    """Fail abandoned jobs, then queue one sync per connected owner."""
    stale = fail_stale_jobs(session)

    bg_tasks_cv.set(background_tasks)
    dispatcher = EventDispatcher()
    owners = list_owners(session)
    for owner in owners:
        dispatcher.dispatch(SyncEvent(owner.id, SyncJobType.CRON))
    logger.info(f"Cron queued {len(owners)} owner sync(s)")

    return success_response(
        {"owners_queued": len(owners), "stale_jobs_failed": stale},
        message="Sync queued",
        status_code=202,
    )
