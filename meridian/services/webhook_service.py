"""
Single-object ingestion from GitHub webhook deliveries.

A delivery updates every repository row that tracks the GitHub repository
(one per connected owner) through the same upserts a full sync uses.
"""

from typing import Any, Dict, List

from sqlmodel import Session, select

from meridian.integrations.github.github_webhook_parser import GitHubWebhookParser
from meridian.models.repository import Repository
from meridian.services import persistence
from meridian.utils.logger import logger

parser = GitHubWebhookParser()


def _tracking_repositories(session: Session, github_repo_id) -> List[Repository]:
    if github_repo_id is None:
        return []
    return list(
        session.exec(
            select(Repository)
            .where(Repository.github_repo_id == github_repo_id)
            .order_by(Repository.id)
        ).all()
    )


def on_pull_request_event(session: Session, payload: Dict[str, Any]) -> int:
    """Upsert the pull request in the payload. Returns the number of rows written."""
    attrs = parser.get_pull_request(payload)
    if attrs is None:
        logger.warning("pull_request event without a usable pull_request; ignoring")
        return 0

    repositories = _tracking_repositories(session, parser.get_repository_id(payload))
    if not repositories:
        logger.info(
            f"Webhook for untracked repository {payload.get('repository', {}).get('full_name')}; skipping"
        )
        return 0

    for repository in repositories:
        pull_request = persistence.upsert_pull_request(session, repository.id, attrs)
        persistence.refresh_pull_request_timings(session, pull_request)
    session.commit()
    logger.info(
        f"Webhook {payload.get('action')} applied to PR #{attrs.number} "
        f"in {len(repositories)} repository row(s)"
    )
    return len(repositories)


def on_review_event(session: Session, payload: Dict[str, Any]) -> int:
    """
    Upsert the review and its pull request, then recompute the PR's timings.

    Reviews that are not submitted yet only refresh the pull request.
    """
    pr_attrs = parser.get_pull_request(payload)
    if pr_attrs is None:
        logger.warning("pull_request_review event without a pull_request; ignoring")
        return 0
    review_attrs = parser.get_review(payload)

    repositories = _tracking_repositories(session, parser.get_repository_id(payload))
    if not repositories:
        return 0

    for repository in repositories:
        pull_request = persistence.upsert_pull_request(session, repository.id, pr_attrs)
        if review_attrs is not None:
            persistence.upsert_review(session, pull_request.id, review_attrs)
        persistence.refresh_pull_request_timings(session, pull_request)
    session.commit()
    return len(repositories)
