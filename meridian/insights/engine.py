import re
from collections import defaultdict
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from pydantic import ValidationError
from sqlmodel import Session, col, select

from meridian.config import settings
from meridian.insights.detectors import DETECTORS, Detector
from meridian.insights.types import (
    InsightCategory,
    InsightFinding,
    InsightType,
    PullRequestView,
    ReviewView,
    StrategicAdvice,
)
from meridian.llms.summarizer import Summarizer
from meridian.models.pull_request import PullRequest
from meridian.models.repository import Repository
from meridian.models.review import Review
from meridian.prompts.prompts import Prompts
from meridian.utils.logger import logger
from meridian.utils.timeutils import utcnow

STRATEGIC_MIN_INSIGHTS = 2
STRATEGIC_CONTEXT_SIZE = 5

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class InsightEngine:
    """
    Turns an owner's recent pull request history into a ranked list of findings.

    The engine only reads; persisting the result is up to the caller.
    """

    def __init__(
        self,
        session: Session,
        summarizer: Optional[Summarizer] = None,
        window_days: Optional[int] = None,
        detectors: Sequence[Detector] = DETECTORS,
    ):
        self.session = session
        self.summarizer = summarizer
        self.window_days = window_days or settings.INSIGHT_WINDOW_DAYS
        self.detectors = detectors

    def generate(
        self,
        owner_id: int,
        contributor: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[InsightFinding]:
        now = now or utcnow()
        pull_requests = self.load_window(owner_id, contributor, now)
        if not pull_requests:
            return []
        return self.analyze(pull_requests, now)

    def load_window(
        self, owner_id: int, contributor: Optional[str], now: datetime
    ) -> List[PullRequestView]:
        """PRs created inside the window, with their reviews, for every repository of the owner."""
        start = now - timedelta(days=self.window_days)
        statement = (
            select(PullRequest)
            .join(Repository, Repository.id == PullRequest.repository_id)
            .where(Repository.owner_id == owner_id, PullRequest.created_at >= start)
            .order_by(col(PullRequest.created_at).desc())
        )
        if contributor:
            statement = statement.where(PullRequest.author_login == contributor)
        pull_requests = self.session.exec(statement).all()
        if not pull_requests:
            return []

        reviews_by_pr = defaultdict(list)
        reviews = self.session.exec(
            select(Review).where(
                col(Review.pull_request_id).in_([pr.id for pr in pull_requests])
            )
        ).all()
        for review in reviews:
            reviews_by_pr[review.pull_request_id].append(
                ReviewView(
                    reviewer_login=review.reviewer_login,
                    state=review.state,
                    submitted_at=review.submitted_at,
                )
            )

        return [
            PullRequestView(
                id=pr.id,
                repository_id=pr.repository_id,
                number=pr.number,
                title=pr.title,
                state=pr.state,
                author_login=pr.author_login,
                created_at=pr.created_at,
                updated_at=pr.updated_at,
                merged_at=pr.merged_at,
                time_to_first_review=pr.time_to_first_review,
                time_to_merge=pr.time_to_merge,
                reviews=reviews_by_pr[pr.id],
            )
            for pr in pull_requests
        ]

    def analyze(
        self, pull_requests: List[PullRequestView], now: datetime
    ) -> List[InsightFinding]:
        findings: List[InsightFinding] = []
        for detector in self.detectors:
            try:
                findings.extend(detector(pull_requests, now))
            except Exception as e:
                logger.exception(f"Insight detector {detector.__name__} failed: {e}")

        findings.sort(key=lambda finding: finding.priority, reverse=True)

        strategic = self.strategic_insight(findings)
        if strategic is not None:
            findings.insert(0, strategic)
        return findings

    def strategic_insight(
        self, findings: List[InsightFinding]
    ) -> Optional[InsightFinding]:
        """One synthesized recommendation from the top findings, or None."""
        if self.summarizer is None or len(findings) < STRATEGIC_MIN_INSIGHTS:
            return None

        signals = "\n".join(
            f"- [{finding.type.value}] {finding.title}: {finding.description}"
            for finding in findings[:STRATEGIC_CONTEXT_SIZE]
        )
        try:
            reply = self.summarizer.summarize(
                Prompts.STRATEGIC_INSIGHT_PROMPT.format(signals=signals)
            )
        except Exception as e:
            logger.warning(f"Strategic insight generation failed: {e}")
            return None

        match = _JSON_OBJECT.search(reply or "")
        if not match:
            logger.warning("Summarizer reply contained no JSON object.")
            return None
        try:
            advice = StrategicAdvice.model_validate_json(match.group(0))
        except ValidationError as e:
            logger.warning(f"Summarizer reply was not a valid insight: {e}")
            return None

        return InsightFinding(
            type=InsightType.INFO,
            category=InsightCategory.STRATEGIC,
            title=advice.title,
            description=advice.description,
            action=advice.action,
            priority=10,
        )


def generate_insights(
    session: Session,
    owner_id: int,
    contributor: Optional[str] = None,
    summarizer: Optional[Summarizer] = None,
    now: Optional[datetime] = None,
) -> List[InsightFinding]:
    return InsightEngine(session, summarizer).generate(owner_id, contributor, now)
