from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from meridian.auth import get_current_owner
from meridian.config.db import get_session
from meridian.core.responses import success_response
from meridian.models.owner import Owner
from meridian.services.metrics_service import (
    get_repository_metrics,
    get_time_series,
    get_top_contributors,
)

router = APIRouter()


@router.get("/contributors")
def top_contributors(
    limit: int = Query(10, ge=1, le=100),
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    return success_response(get_top_contributors(session, owner.id, limit))


@router.get("/timeseries")
def time_series(
    days: int = Query(30, ge=1, le=365),
    contributor: Optional[str] = None,
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    return success_response(get_time_series(session, owner.id, days, contributor))


@router.get("/repositories/{repository_id}")
def repository_metrics(
    repository_id: int,
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    metrics = get_repository_metrics(session, owner.id, repository_id)
    if metrics is None:
        raise HTTPException(status_code=404, detail="Repository not found")
    return success_response(metrics)
