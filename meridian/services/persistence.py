"""
Idempotent writes of normalized GitHub objects.

Every write is an ``INSERT ... ON CONFLICT DO UPDATE`` keyed by the object's
natural key, so manual, cron and webhook syncs may race on the same rows
without a lock: the last write wins and every write reflects a state GitHub
reported.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, select

from meridian.models.comment import Comment
from meridian.models.github_data import (
    CommentAttrs,
    GitHubUser,
    PullRequestAttrs,
    RepoAttrs,
    ReviewAttrs,
)
from meridian.models.metric_snapshot import MetricSnapshot
from meridian.models.owner import Owner
from meridian.models.pull_request import PullRequest, PullRequestState
from meridian.models.repository import Repository
from meridian.models.review import Review
from meridian.utils.timeutils import minutes_between, utcnow


def _insert_for(session: Session, model):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Upserts are not implemented for '{dialect}'.")


def _upsert(
    session: Session,
    model,
    values: Dict[str, Any],
    conflict_columns: List[str],
    update_set: Dict[str, Any],
):
    table = model.__table__
    statement = _insert_for(session, table).values(**values)
    statement = statement.on_conflict_do_update(
        index_elements=[table.c[name] for name in conflict_columns],
        set_=update_set,
    )
    session.execute(statement)
    session.flush()


def _reload(session: Session, statement):
    # Core upserts bypass the identity map; refresh any instance already loaded.
    return session.exec(statement.execution_options(populate_existing=True)).one()


def upsert_repository(session: Session, owner_id: int, attrs: RepoAttrs) -> Repository:
    now = utcnow()
    mutable = {
        "name": attrs.name,
        "full_name": attrs.full_name,
        "default_branch": attrs.default_branch,
        "description": attrs.description,
        "is_private": attrs.is_private,
    }
    _upsert(
        session,
        Repository,
        values={
            "owner_id": owner_id,
            "github_repo_id": attrs.github_repo_id,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
            **mutable,
        },
        conflict_columns=["owner_id", "github_repo_id"],
        update_set={
            **mutable,
            "is_active": True,
            "updated_at": now,
        },
    )
    return _reload(
        session,
        select(Repository).where(
            Repository.owner_id == owner_id,
            Repository.github_repo_id == attrs.github_repo_id,
        ),
    )


def upsert_pull_request(
    session: Session, repository_id: int, attrs: PullRequestAttrs
) -> PullRequest:
    """
    Create or refresh a pull request. A MERGED row never moves back to another
    state; a CLOSED row reopened on GitHub becomes OPEN again. Derived timing
    fields are left to ``refresh_pull_request_timings``.
    """
    now = utcnow()
    table = PullRequest.__table__
    mutable = {
        "github_pr_id": attrs.github_pr_id,
        "title": attrs.title,
        "body": attrs.body,
        "author_login": attrs.author_login,
        "author_avatar_url": attrs.author_avatar_url,
        "created_at": attrs.created_at,
        "updated_at": attrs.updated_at,
        "closed_at": attrs.closed_at,
    }
    diff_stats = {
        name: getattr(attrs, name)
        for name in ("lines_added", "lines_deleted", "files_changed", "commits_count")
    }
    merged = PullRequestState.MERGED.value
    _upsert(
        session,
        PullRequest,
        values={
            "repository_id": repository_id,
            "number": attrs.number,
            "state": attrs.state.value,
            "merged_at": attrs.merged_at,
            "review_cycle_count": 0,
            "synced_at": now,
            **mutable,
            **{name: value or 0 for name, value in diff_stats.items()},
        },
        conflict_columns=["repository_id", "number"],
        update_set={
            **mutable,
            # Listings without diff stats keep the values a webhook stored.
            **{
                name: func.coalesce(value, table.c[name])
                for name, value in diff_stats.items()
            },
            "state": case(
                (table.c.state == merged, table.c.state),
                else_=attrs.state.value,
            ),
            "merged_at": func.coalesce(attrs.merged_at, table.c.merged_at),
            "synced_at": now,
        },
    )
    return _reload(
        session,
        select(PullRequest).where(
            PullRequest.repository_id == repository_id,
            PullRequest.number == attrs.number,
        ),
    )


def upsert_review(session: Session, pull_request_id: int, attrs: ReviewAttrs) -> Review:
    """Reviewer and owning pull request are fixed at creation; only state, body and submission time change."""
    now = utcnow()
    _upsert(
        session,
        Review,
        values={
            "github_review_id": attrs.github_review_id,
            "pull_request_id": pull_request_id,
            "reviewer_login": attrs.reviewer_login,
            "reviewer_avatar_url": attrs.reviewer_avatar_url,
            "state": attrs.state.value,
            "body": attrs.body,
            "submitted_at": attrs.submitted_at,
            "synced_at": now,
        },
        conflict_columns=["github_review_id"],
        update_set={
            "state": attrs.state.value,
            "body": attrs.body,
            "submitted_at": attrs.submitted_at,
            "synced_at": now,
        },
    )
    return _reload(
        session,
        select(Review).where(Review.github_review_id == attrs.github_review_id),
    )


def upsert_comment(
    session: Session, pull_request_id: int, attrs: CommentAttrs
) -> Comment:
    now = utcnow()
    _upsert(
        session,
        Comment,
        values={
            "github_comment_id": attrs.github_comment_id,
            "pull_request_id": pull_request_id,
            "author_login": attrs.author_login,
            "author_avatar_url": attrs.author_avatar_url,
            "body": attrs.body,
            "created_at": attrs.created_at,
            "updated_at": attrs.updated_at,
            "synced_at": now,
        },
        conflict_columns=["github_comment_id"],
        update_set={
            "body": attrs.body,
            "updated_at": attrs.updated_at,
            "synced_at": now,
        },
    )
    return _reload(
        session,
        select(Comment).where(Comment.github_comment_id == attrs.github_comment_id),
    )


def compute_timings(
    created_at: datetime,
    merged_at: Optional[datetime],
    review_times: List[datetime],
) -> Dict[str, Optional[int]]:
    """Whole minutes from creation to the first review and to merge; None when not applicable."""
    return {
        "time_to_first_review": minutes_between(created_at, min(review_times))
        if review_times
        else None,
        "time_to_merge": minutes_between(created_at, merged_at) if merged_at else None,
    }


def refresh_pull_request_timings(session: Session, pull_request: PullRequest) -> PullRequest:
    """Recompute the derived timing fields from the stored reviews and merge time."""
    review_times = list(
        session.exec(
            select(Review.submitted_at).where(
                Review.pull_request_id == pull_request.id
            )
        ).all()
    )
    timings = compute_timings(
        pull_request.created_at, pull_request.merged_at, review_times
    )
    pull_request.time_to_first_review = timings["time_to_first_review"]
    pull_request.time_to_merge = timings["time_to_merge"]
    pull_request.review_cycle_count = len(review_times)
    session.add(pull_request)
    session.flush()
    return pull_request


def mark_repository_synced(session: Session, repository: Repository) -> None:
    repository.last_synced_at = utcnow()
    repository.updated_at = repository.last_synced_at
    session.add(repository)
    session.flush()


def deactivate_missing_repositories(
    session: Session, owner_id: int, visible_repo_ids: List[int]
) -> int:
    """Flag the owner's repositories GitHub no longer lists. Returns how many were flagged."""
    statement = select(Repository).where(
        Repository.owner_id == owner_id, Repository.is_active == True  # noqa: E712
    )
    if visible_repo_ids:
        statement = statement.where(Repository.github_repo_id.notin_(visible_repo_ids))
    stale = session.exec(statement).all()
    for repository in stale:
        repository.is_active = False
        repository.updated_at = utcnow()
        session.add(repository)
    session.flush()
    return len(stale)


def upsert_owner(session: Session, user: GitHubUser, encrypted_token: str) -> Owner:
    """Owners are keyed by GitHub user id; reconnecting replaces the stored token."""
    now = utcnow()
    profile = {
        "github_login": user.login,
        "name": user.name,
        "email": user.email,
        "avatar_url": user.avatar_url,
        "encrypted_token": encrypted_token,
        "token_created_at": now,
        "updated_at": now,
    }
    _upsert(
        session,
        Owner,
        values={"github_user_id": user.github_user_id, "created_at": now, **profile},
        conflict_columns=["github_user_id"],
        update_set=profile,
    )
    return _reload(
        session, select(Owner).where(Owner.github_user_id == user.github_user_id)
    )


def upsert_metric_snapshot(
    session: Session, repository_id: int, snapshot_date: date, metrics: Dict[str, Any]
) -> MetricSnapshot:
    """One row per repository and day; re-running a day overwrites it."""
    now = utcnow()
    _upsert(
        session,
        MetricSnapshot,
        values={
            "repository_id": repository_id,
            "snapshot_date": snapshot_date,
            "created_at": now,
            "updated_at": now,
            **metrics,
        },
        conflict_columns=["repository_id", "snapshot_date"],
        update_set={**metrics, "updated_at": now},
    )
    return _reload(
        session,
        select(MetricSnapshot).where(
            MetricSnapshot.repository_id == repository_id,
            MetricSnapshot.snapshot_date == snapshot_date,
        ),
    )
