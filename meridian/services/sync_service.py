"""
Full synchronization pass for one owner.

The pass is sequential: repositories one at a time, pull requests one at a
time, reviews fetched per pull request. Every write goes through the
idempotent upserts in ``persistence``, so a manual sync, the cron sync and
webhook deliveries may overlap freely.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from sqlmodel import Session, col, select

from meridian.config import settings
from meridian.integrations.github.github import (
    GitHubAuthError,
    GitHubClient,
    GitHubRateLimitError,
)
from meridian.models.github_data import PullRequestAttrs
from meridian.models.owner import Owner
from meridian.models.repository import Repository
from meridian.models.sync_job import SyncJobType
from meridian.services import persistence, sync_jobs
from meridian.utils.logger import logger
from meridian.utils.timeutils import utcnow


class SyncCancelledError(Exception):
    """The caller asked the running sync to stop."""


@dataclass
class SyncResult:
    job_id: Optional[int] = None
    repositories: int = 0
    pull_requests: int = 0
    reviews: int = 0
    comments: int = 0
    failed_repositories: List[str] = field(default_factory=list)

    def to_progress(self) -> dict:
        return {
            "repositories": self.repositories,
            "pull_requests": self.pull_requests,
            "reviews": self.reviews,
            "comments": self.comments,
            "failed_repositories": list(self.failed_repositories),
        }


class SyncOrchestrator:
    def __init__(
        self,
        session: Session,
        github: GitHubClient,
        clock: Callable[[], datetime] = utcnow,
        sync_comments: Optional[bool] = None,
    ):
        self.session = session
        self.github = github
        self.clock = clock
        self.sync_comments = (
            settings.SYNC_COMMENTS if sync_comments is None else sync_comments
        )

    def run(
        self,
        owner: Owner,
        job_type: SyncJobType = SyncJobType.MANUAL,
        cancel_event: Optional[threading.Event] = None,
    ) -> SyncResult:
        """
        Sync every repository visible to the owner's token.

        The job row always ends COMPLETED or FAILED. On failure the error is
        recorded on the job and re-raised; rows already written are kept and
        the owner's cursor is left unchanged, so the next run re-fetches them.
        """
        job = sync_jobs.create_job(self.session, owner.id, job_type)
        started_at = self.clock()
        result = SyncResult(job_id=job.id)

        try:
            self._sync_owner(owner, started_at, result, cancel_event)
        except Exception as e:
            self.session.rollback()
            logger.error(f"Sync failed for owner {owner.github_login}: {e}")
            sync_jobs.fail_job(self.session, job, str(e))
            raise

        sync_jobs.complete_job(self.session, job, result.to_progress())
        return result

    def _check_cancelled(self, cancel_event: Optional[threading.Event]):
        if cancel_event is not None and cancel_event.is_set():
            raise SyncCancelledError("Sync cancelled")

    def _sync_owner(
        self,
        owner: Owner,
        started_at: datetime,
        result: SyncResult,
        cancel_event: Optional[threading.Event],
    ):
        cursor = owner.last_synced_at
        # Repositories that have never finished a sync have no history stored yet.
        known_repo_ids = set(
            self.session.exec(
                select(Repository.github_repo_id).where(
                    Repository.owner_id == owner.id,
                    col(Repository.last_synced_at).is_not(None),
                )
            ).all()
        )

        repositories = self.github.fetch_repositories()
        logger.info(
            f"Syncing {len(repositories)} repositories for {owner.github_login}"
            + (f" since {cursor.isoformat()}" if cursor else " (full sync)")
        )

        for attrs in repositories:
            self._check_cancelled(cancel_event)
            since = cursor if attrs.github_repo_id in known_repo_ids else None
            try:
                repository = persistence.upsert_repository(
                    self.session, owner.id, attrs
                )
                self.session.commit()
                self._sync_repository(repository, since, result, cancel_event)
                persistence.mark_repository_synced(self.session, repository)
                self.session.commit()
                result.repositories += 1
            except (SyncCancelledError, GitHubAuthError, GitHubRateLimitError):
                raise
            except Exception as e:
                self.session.rollback()
                logger.exception(f"Failed to sync repository {attrs.full_name}: {e}")
                result.failed_repositories.append(attrs.full_name)

        persistence.deactivate_missing_repositories(
            self.session, owner.id, [attrs.github_repo_id for attrs in repositories]
        )
        if result.failed_repositories:
            # The cursor is shared; it only moves once every repository synced.
            logger.warning(
                f"Keeping the sync cursor for {owner.github_login}: "
                f"{len(result.failed_repositories)} repositories failed"
            )
        else:
            owner.last_synced_at = started_at
        owner.updated_at = self.clock()
        self.session.add(owner)
        self.session.commit()

    def _sync_repository(
        self,
        repository: Repository,
        since: Optional[datetime],
        result: SyncResult,
        cancel_event: Optional[threading.Event],
    ):
        owner_login, name = repository.owner_and_name
        pull_requests = self.github.fetch_pull_requests(owner_login, name, since)
        logger.info(f"{repository.full_name}: {len(pull_requests)} pull requests to sync")

        for attrs in pull_requests:
            self._check_cancelled(cancel_event)
            self._sync_pull_request(repository, owner_login, name, attrs, result)
            self.session.commit()

    def _sync_pull_request(
        self,
        repository: Repository,
        owner_login: str,
        name: str,
        attrs: PullRequestAttrs,
        result: SyncResult,
    ):
        pull_request = persistence.upsert_pull_request(
            self.session, repository.id, attrs
        )
        result.pull_requests += 1

        try:
            reviews = self.github.fetch_reviews(owner_login, name, attrs.number)
        except Exception as e:
            logger.warning(
                f"Skipping reviews for {repository.full_name}#{attrs.number}: {e}"
            )
            reviews = []

        for review in reviews:
            persistence.upsert_review(self.session, pull_request.id, review)
        result.reviews += len(reviews)

        if self.sync_comments:
            try:
                comments = self.github.fetch_comments(owner_login, name, attrs.number)
            except Exception as e:
                logger.warning(
                    f"Skipping comments for {repository.full_name}#{attrs.number}: {e}"
                )
                comments = []
            for comment in comments:
                persistence.upsert_comment(self.session, pull_request.id, comment)
            result.comments += len(comments)

        persistence.refresh_pull_request_timings(self.session, pull_request)


def run_sync(
    session: Session,
    owner: Owner,
    github: GitHubClient,
    job_type: SyncJobType = SyncJobType.MANUAL,
    cancel_event: Optional[threading.Event] = None,
) -> SyncResult:
    return SyncOrchestrator(session, github).run(owner, job_type, cancel_event)