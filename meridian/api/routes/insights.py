from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from meridian.api.dependencies import get_summarizer
from meridian.auth import get_current_owner
from meridian.config.db import get_session
from meridian.core.responses import success_response
from meridian.insights.engine import InsightEngine
from meridian.llms.summarizer import Summarizer
from meridian.models.owner import Owner
from meridian.services import insight_service

router = APIRouter()


@router.get("")
def list_insights(
    contributor: Optional[str] = Query(None, min_length=1),
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
    summarizer: Optional[Summarizer] = Depends(get_summarizer),
):
    """
    The owner's current insights, regenerated when the stored batch is stale.

    With ``contributor`` the list is computed for that author only and not stored.
    """
    if contributor:
        findings = InsightEngine(session, summarizer).generate(owner.id, contributor)
        return success_response([finding.model_dump(mode="json") for finding in findings])

    insights = insight_service.get_or_generate(session, owner.id, summarizer)
    return success_response([insight.dict() for insight in insights])


@router.post("")
def regenerate_insights(
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
    summarizer: Optional[Summarizer] = Depends(get_summarizer),
):
    insights = insight_service.refresh_insights(session, owner.id, summarizer)
    return success_response(
        [insight.dict() for insight in insights], message="Insights regenerated"
    )


@router.post("/{insight_id}/read")
def mark_insight_read(
    insight_id: int,
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    insight = insight_service.mark_read(session, owner.id, insight_id)
    if insight is None:
        raise HTTPException(status_code=404, detail="Insight not found")
    return success_response(insight.dict())


@router.post("/{insight_id}/dismiss")
def dismiss_insight(
    insight_id: int,
    owner: Owner = Depends(get_current_owner),
    session: Session = Depends(get_session),
):
    insight = insight_service.dismiss(session, owner.id, insight_id)
    if insight is None:
        raise HTTPException(status_code=404, detail="Insight not found")
    return success_response(insight.dict())
