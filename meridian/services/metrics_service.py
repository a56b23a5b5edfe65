from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, col, select

from meridian.insights.stats import percentile
from meridian.models.metric_snapshot import MetricSnapshot
from meridian.models.pull_request import PullRequest, PullRequestState
from meridian.models.repository import Repository
from meridian.models.review import Review
from meridian.services.persistence import upsert_metric_snapshot
from meridian.utils.logger import logger
from meridian.utils.timeutils import utcnow

MERGED = PullRequestState.MERGED.value
OPEN = PullRequestState.OPEN.value
CLOSED = PullRequestState.CLOSED.value


def _rounded(value) -> Optional[int]:
    return round(value) if value is not None else None


def _owner_repository_ids(owner_id: int):
    return select(Repository.id).where(Repository.owner_id == owner_id)


def get_top_contributors(
    session: Session, owner_id: int, limit: int = 10
) -> List[Dict[str, Any]]:
    """Authors and reviewers ranked by 2 x PRs opened + reviews given."""
    repo_ids = _owner_repository_ids(owner_id)
    contributors: Dict[str, Dict[str, Any]] = {}

    def entry(login: str) -> Dict[str, Any]:
        if login not in contributors:
            contributors[login] = {
                "login": login,
                "avatar_url": f"https://avatars.githubusercontent.com/{login}",
                "prs_opened": 0,
                "prs_merged": 0,
                "reviews_given": 0,
                "lines_added": 0,
                "lines_deleted": 0,
                "avg_time_to_merge": None,
            }
        return contributors[login]

    opened = session.exec(
        select(
            PullRequest.author_login,
            func.count(PullRequest.id),
            func.coalesce(func.sum(PullRequest.lines_added), 0),
            func.coalesce(func.sum(PullRequest.lines_deleted), 0),
            func.max(PullRequest.author_avatar_url),
        )
        .where(col(PullRequest.repository_id).in_(repo_ids))
        .group_by(PullRequest.author_login)
    ).all()
    for login, count, added, deleted, avatar_url in opened:
        stats = entry(login)
        stats["prs_opened"] = count
        stats["lines_added"] = int(added)
        stats["lines_deleted"] = int(deleted)
        if avatar_url:
            stats["avatar_url"] = avatar_url

    merged = session.exec(
        select(
            PullRequest.author_login,
            func.count(PullRequest.id),
            func.avg(PullRequest.time_to_merge),
        )
        .where(
            col(PullRequest.repository_id).in_(repo_ids),
            PullRequest.state == MERGED,
        )
        .group_by(PullRequest.author_login)
    ).all()
    for login, count, avg_time_to_merge in merged:
        stats = entry(login)
        stats["prs_merged"] = count
        stats["avg_time_to_merge"] = _rounded(avg_time_to_merge)

    reviews = session.exec(
        select(Review.reviewer_login, func.count(Review.id))
        .join(PullRequest, PullRequest.id == Review.pull_request_id)
        .where(col(PullRequest.repository_id).in_(repo_ids))
        .group_by(Review.reviewer_login)
    ).all()
    for login, count in reviews:
        entry(login)["reviews_given"] = count

    ranked = sorted(
        contributors.values(),
        key=lambda c: (-(c["prs_opened"] * 2 + c["reviews_given"]), c["login"]),
    )
    return ranked[:limit]


def get_repository_metrics(
    session: Session, owner_id: int, repository_id: int
) -> Optional[Dict[str, Any]]:
    repository = session.get(Repository, repository_id)
    if repository is None or repository.owner_id != owner_id:
        return None

    counts = dict(
        session.exec(
            select(PullRequest.state, func.count(PullRequest.id))
            .where(PullRequest.repository_id == repository_id)
            .group_by(PullRequest.state)
        ).all()
    )
    cycle_times = list(
        session.exec(
            select(PullRequest.time_to_merge).where(
                PullRequest.repository_id == repository_id,
                PullRequest.state == MERGED,
                col(PullRequest.time_to_merge).is_not(None),
            )
        ).all()
    )
    avg_first_review = session.exec(
        select(func.avg(PullRequest.time_to_first_review)).where(
            PullRequest.repository_id == repository_id,
            col(PullRequest.time_to_first_review).is_not(None),
        )
    ).one()

    return {
        "repository_id": repository.id,
        "repository_name": repository.name,
        "total_prs": sum(counts.values()),
        "merged_prs": counts.get(MERGED, 0),
        "open_prs": counts.get(OPEN, 0),
        "avg_cycle_time": _rounded(sum(cycle_times) / len(cycle_times))
        if cycle_times
        else None,
        "p50_cycle_time": int(percentile(cycle_times, 0.5)) if cycle_times else None,
        "p75_cycle_time": int(percentile(cycle_times, 0.75)) if cycle_times else None,
        "avg_time_to_first_review": _rounded(avg_first_review),
    }


def get_time_series(
    session: Session,
    owner_id: int,
    days: int = 30,
    contributor: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """
    Daily activity for the last ``days`` days, oldest first, ending today.

    PRs are counted on the day they were opened and on the day they were
    merged; ``avg_cycle_time`` averages time-to-merge over that day's merges.
    Days without activity are present with zero counts.
    """
    today = today or utcnow().date()
    first_day = today - timedelta(days=days - 1)
    start = datetime.combine(first_day, time.min)
    end = datetime.combine(today, time.min) + timedelta(days=1)

    buckets = {}
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        buckets[day] = {"date": day.isoformat(), "prs_opened": 0, "prs_merged": 0}
    merge_times: Dict[date, List[int]] = {day: [] for day in buckets}

    scope = [col(PullRequest.repository_id).in_(_owner_repository_ids(owner_id))]
    if contributor:
        scope.append(PullRequest.author_login == contributor)

    opened = session.exec(
        select(PullRequest.created_at).where(
            *scope, PullRequest.created_at >= start, PullRequest.created_at < end
        )
    ).all()
    for created_at in opened:
        buckets[created_at.date()]["prs_opened"] += 1

    merged = session.exec(
        select(PullRequest.merged_at, PullRequest.time_to_merge).where(
            *scope,
            col(PullRequest.merged_at).is_not(None),
            PullRequest.merged_at >= start,
            PullRequest.merged_at < end,
        )
    ).all()
    for merged_at, time_to_merge in merged:
        buckets[merged_at.date()]["prs_merged"] += 1
        if time_to_merge is not None:
            merge_times[merged_at.date()].append(time_to_merge)

    for day, point in buckets.items():
        times = merge_times[day]
        point["avg_cycle_time"] = round(sum(times) / len(times)) if times else None
    return list(buckets.values())


def snapshot_repository_day(
    session: Session, repository: Repository, day: date
) -> MetricSnapshot:
    """Record one day of activity for a repository. Safe to re-run for the same day."""
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)

    prs_opened = session.exec(
        select(func.count(PullRequest.id)).where(
            PullRequest.repository_id == repository.id,
            PullRequest.created_at >= start,
            PullRequest.created_at < end,
        )
    ).one()
    merge_times = list(
        session.exec(
            select(PullRequest.time_to_merge).where(
                PullRequest.repository_id == repository.id,
                PullRequest.state == MERGED,
                PullRequest.merged_at >= start,
                PullRequest.merged_at < end,
            )
        ).all()
    )
    closed_unmerged = session.exec(
        select(func.count(PullRequest.id)).where(
            PullRequest.repository_id == repository.id,
            PullRequest.state == CLOSED,
            PullRequest.closed_at >= start,
            PullRequest.closed_at < end,
        )
    ).one()

    prs_merged = len(merge_times)
    known_times = [t for t in merge_times if t is not None]
    finished = prs_merged + closed_unmerged
    snapshot = upsert_metric_snapshot(
        session,
        repository.id,
        day,
        {
            "prs_opened": prs_opened,
            "prs_merged": prs_merged,
            "p50_cycle_time": int(percentile(known_times, 0.5)) if known_times else None,
            "p95_cycle_time": int(percentile(known_times, 0.95)) if known_times else None,
            "merge_rate": prs_merged / finished if finished else None,
        },
    )
    session.commit()
    logger.info(f"Recorded {day.isoformat()} metrics for {repository.full_name}")
    return snapshot


def snapshot_owner_day(session: Session, owner_id: int, day: date) -> List[MetricSnapshot]:
    repositories = session.exec(
        select(Repository).where(
            Repository.owner_id == owner_id,
            Repository.is_active == True,  # noqa: E712
        )
    ).all()
    return [snapshot_repository_day(session, repo, day) for repo in repositories]
