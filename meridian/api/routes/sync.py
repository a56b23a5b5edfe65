from fastapi import APIRouter, Depends
from sqlmodel import Session

from meridian.api.dependencies import get_cipher
from meridian.auth import get_current_owner
from meridian.config.db import get_session
from meridian.core.responses import success_response
from meridian.models.owner import Owner
from meridian.models.sync_job import SyncJobType
from meridian.services.owner_service import github_client_for
from meridian.services.sync_jobs import fail_stale_jobs, get_sync_status
from meridian.services.sync_service import SyncOrchestrator
from meridian.utils.encryption import CredentialCipher

router = APIRouter()


@router.post("")
def run_sync(
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
    cipher: CredentialCipher = Depends(get_cipher),
):
    """Run a full sync for the current owner and report what it touched."""
    fail_stale_jobs(session)
    github = github_client_for(owner, cipher)
    try:
        result = SyncOrchestrator(session, github).run(owner, SyncJobType.MANUAL)
    finally:
        github.close()
    return success_response(
        {"job_id": result.job_id, **result.to_progress()},
        message="Sync completed",
    )


@router.get("/status")
def sync_status(
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    return success_response(get_sync_status(session, owner))
