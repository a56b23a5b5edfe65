from datetime import datetime, timedelta
from typing import List, Optional

from sqlmodel import Session, col, delete, select

from meridian.config import settings
from meridian.insights.engine import InsightEngine
from meridian.insights.types import InsightFinding
from meridian.llms.summarizer import Summarizer
from meridian.models.insight import Insight
from meridian.models.owner import Owner
from meridian.utils.logger import logger
from meridian.utils.timeutils import utcnow


def replace_insights(
    session: Session,
    owner_id: int,
    findings: List[InsightFinding],
    generated_at: Optional[datetime] = None,
) -> List[Insight]:
    """
    Swap the owner's disposable insight batch for ``findings`` in one transaction.

    Insights the owner has read or dismissed are left untouched.
    """
    generated_at = generated_at or utcnow()
    try:
        session.exec(
            delete(Insight).where(
                Insight.owner_id == owner_id,
                Insight.is_read == False,  # noqa: E712
                Insight.is_dismissed == False,  # noqa: E712
            )
        )
        rows = [
            Insight(
                owner_id=owner_id,
                type=finding.type.value,
                category=finding.category.value,
                title=finding.title,
                description=finding.description,
                action=finding.action,
                metric=finding.metric.model_dump() if finding.metric else None,
                affected_contributors=list(finding.affected_contributors),
                priority=finding.priority,
                generated_at=generated_at,
            )
            for finding in findings
        ]
        session.add_all(rows)
        owner = session.get(Owner, owner_id)
        if owner is not None:
            owner.insights_generated_at = generated_at
            session.add(owner)
        session.commit()
    except Exception:
        session.rollback()
        raise

    for row in rows:
        session.refresh(row)
    logger.info(f"Stored {len(rows)} insights for owner {owner_id}")
    return rows


def list_insights(session: Session, owner_id: int) -> List[Insight]:
    """Undismissed insights, most important first."""
    return list(
        session.exec(
            select(Insight)
            .where(
                Insight.owner_id == owner_id,
                Insight.is_dismissed == False,  # noqa: E712
            )
            .order_by(col(Insight.priority).desc(), col(Insight.generated_at).desc())
        ).all()
    )


def latest_generation(session: Session, owner_id: int) -> Optional[datetime]:
    owner = session.get(Owner, owner_id)
    return owner.insights_generated_at if owner is not None else None


def refresh_insights(
    session: Session,
    owner_id: int,
    summarizer: Optional[Summarizer] = None,
    now: Optional[datetime] = None,
) -> List[Insight]:
    now = now or utcnow()
    findings = InsightEngine(session, summarizer).generate(owner_id, now=now)
    replace_insights(session, owner_id, findings, generated_at=now)
    return list_insights(session, owner_id)


def get_or_generate(
    session: Session,
    owner_id: int,
    summarizer: Optional[Summarizer] = None,
    now: Optional[datetime] = None,
) -> List[Insight]:
    """The stored batch, regenerated first if it is older than INSIGHT_CACHE_MINUTES."""
    now = now or utcnow()
    last = latest_generation(session, owner_id)
    if last is not None and now - last < timedelta(minutes=settings.INSIGHT_CACHE_MINUTES):
        return list_insights(session, owner_id)
    logger.info(f"Insight batch for owner {owner_id} is stale; regenerating")
    return refresh_insights(session, owner_id, summarizer, now)


def _get_owned(session: Session, owner_id: int, insight_id: int) -> Optional[Insight]:
    insight = session.get(Insight, insight_id)
    if insight is None or insight.owner_id != owner_id:
        return None
    return insight


def mark_read(session: Session, owner_id: int, insight_id: int) -> Optional[Insight]:
    insight = _get_owned(session, owner_id, insight_id)
    if insight is None:
        return None
    insight.is_read = True
    insight.updated_at = utcnow()
    session.add(insight)
    session.commit()
    session.refresh(insight)
    return insight


def dismiss(session: Session, owner_id: int, insight_id: int) -> Optional[Insight]:
    insight = _get_owned(session, owner_id, insight_id)
    if insight is None:
        return None
    insight.is_dismissed = True
    insight.updated_at = utcnow()
    session.add(insight)
    session.commit()
    session.refresh(insight)
    return insight
