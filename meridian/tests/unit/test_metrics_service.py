from datetime import date, datetime, timedelta

from meridian.models.pull_request import PullRequest
from meridian.models.review import Review
from meridian.services import metrics_service
from meridian.tests.helpers import make_owner, make_repository

DAY = date(2026, 3, 17)
DAY_START = datetime(2026, 3, 17, 0, 0, 0)


def add_pr(session, repository, number, author, state="OPEN", created_at=None,
           merged_at=None, closed_at=None, time_to_merge=None,
           time_to_first_review=None, lines_added=0):
    created_at = created_at or DAY_START + timedelta(hours=1)
    pr = PullRequest(
        repository_id=repository.id,
        github_pr_id=number,
        number=number,
        title=f"PR {number}",
        state=state,
        author_login=author,
        created_at=created_at,
        updated_at=created_at,
        merged_at=merged_at,
        closed_at=closed_at,
        time_to_merge=time_to_merge,
        time_to_first_review=time_to_first_review,
        lines_added=lines_added,
    )
    session.add(pr)
    session.commit()
    session.refresh(pr)
    return pr


def add_review(session, pr, review_id, reviewer):
    session.add(
        Review(
            github_review_id=review_id,
            pull_request_id=pr.id,
            reviewer_login=reviewer,
            state="APPROVED",
            submitted_at=pr.created_at + timedelta(hours=1),
        )
    )
    session.commit()


def test_top_contributors_ranking(session):
    owner = make_owner(session)
    repository = make_repository(session, owner)
    a1 = add_pr(session, repository, 1, "alice", state="MERGED", time_to_merge=60, lines_added=10)
    add_pr(session, repository, 2, "alice", state="MERGED", time_to_merge=120, lines_added=5)
    b1 = add_pr(session, repository, 3, "bob")
    for i in range(3):
        add_review(session, a1 if i < 2 else b1, 100 + i, "carol")
    add_review(session, b1, 200, "alice")

    contributors = metrics_service.get_top_contributors(session, owner.id)

    assert [c["login"] for c in contributors] == ["alice", "carol", "bob"]
    alice = contributors[0]
    assert alice["prs_opened"] == 2
    assert alice["prs_merged"] == 2
    assert alice["reviews_given"] == 1
    assert alice["lines_added"] == 15
    assert alice["avg_time_to_merge"] == 90
    assert contributors[1]["prs_opened"] == 0
    assert contributors[1]["reviews_given"] == 3
    assert contributors[2]["avg_time_to_merge"] is None

    assert len(metrics_service.get_top_contributors(session, owner.id, limit=1)) == 1


def test_top_contributors_ignore_other_owners(session):
    owner = make_owner(session)
    stranger = make_owner(session, login="stranger", github_user_id=2)
    add_pr(session, make_repository(session, stranger, 200, "stranger/repo"), 1, "mallory")

    assert metrics_service.get_top_contributors(session, owner.id) == []


def test_repository_metrics(session):
    owner = make_owner(session)
    repository = make_repository(session, owner)
    for number, ttm in enumerate([60, 120, 180, 240], start=1):
        add_pr(session, repository, number, "alice", state="MERGED", time_to_merge=ttm,
               time_to_first_review=30)
    add_pr(session, repository, 5, "bob", time_to_first_review=90)
    add_pr(session, repository, 6, "bob", state="CLOSED")

    metrics = metrics_service.get_repository_metrics(session, owner.id, repository.id)

    assert metrics["total_prs"] == 6
    assert metrics["merged_prs"] == 4
    assert metrics["open_prs"] == 1
    assert metrics["avg_cycle_time"] == 150
    assert metrics["p50_cycle_time"] == 180
    assert metrics["p75_cycle_time"] == 240
    assert metrics["avg_time_to_first_review"] == 42


def test_repository_metrics_of_another_owner(session):
    owner = make_owner(session)
    stranger = make_owner(session, login="stranger", github_user_id=2)
    repository = make_repository(session, stranger, 200, "stranger/repo")

    assert metrics_service.get_repository_metrics(session, owner.id, repository.id) is None
    assert metrics_service.get_repository_metrics(session, owner.id, 9999) is None


def test_snapshot_repository_day(session):
    owner = make_owner(session)
    repository = make_repository(session, owner)
    merged_at = DAY_START + timedelta(hours=5)
    add_pr(session, repository, 1, "alice", state="MERGED", merged_at=merged_at, time_to_merge=240)
    add_pr(session, repository, 2, "alice", state="MERGED", merged_at=merged_at, time_to_merge=60)
    add_pr(session, repository, 3, "bob", state="CLOSED", closed_at=merged_at)
    add_pr(session, repository, 4, "bob", created_at=DAY_START - timedelta(days=2))

    snapshot = metrics_service.snapshot_repository_day(session, repository, DAY)

    assert snapshot.snapshot_date == DAY
    assert snapshot.prs_opened == 3
    assert snapshot.prs_merged == 2
    assert snapshot.p50_cycle_time == 240
    assert snapshot.merge_rate == 2 / 3

    again = metrics_service.snapshot_repository_day(session, repository, DAY)
    assert again.id == snapshot.id


def test_snapshot_owner_day_skips_inactive_repositories(session):
    owner = make_owner(session)
    make_repository(session, owner)
    inactive = make_repository(session, owner, 101, "octocat/old")
    inactive.is_active = False
    session.add(inactive)
    session.commit()

    snapshots = metrics_service.snapshot_owner_day(session, owner.id, DAY)

    assert len(snapshots) == 1
    assert snapshots[0].prs_opened == 0
    assert snapshots[0].merge_rate is None


def test_time_series_buckets_by_open_and_merge_day(session):
    owner = make_owner(session)
    repository = make_repository(session, owner)
    earlier = DAY_START - timedelta(days=5)
    add_pr(session, repository, 1, "alice", state="MERGED", created_at=earlier,
           merged_at=DAY_START + timedelta(hours=2), time_to_merge=100)
    add_pr(session, repository, 2, "bob", state="MERGED",
           merged_at=DAY_START + timedelta(hours=3), time_to_merge=200)
    add_pr(session, repository, 3, "alice")
    # Outside the window.
    add_pr(session, repository, 4, "alice", created_at=DAY_START - timedelta(days=30))

    series = metrics_service.get_time_series(session, owner.id, days=7, today=DAY)

    assert len(series) == 7
    assert series[0]["date"] == "2026-03-11"
    assert series[-1]["date"] == "2026-03-17"
    assert series[1] == {
        "date": "2026-03-12",
        "prs_opened": 1,
        "prs_merged": 0,
        "avg_cycle_time": None,
    }
    assert series[-1] == {
        "date": "2026-03-17",
        "prs_opened": 2,
        "prs_merged": 2,
        "avg_cycle_time": 150,
    }
    assert sum(point["prs_opened"] for point in series) == 3


def test_time_series_filters_by_contributor_and_owner(session):
    owner = make_owner(session)
    stranger = make_owner(session, login="stranger", github_user_id=2)
    repository = make_repository(session, owner)
    other = make_repository(session, stranger, 200, "stranger/repo")
    add_pr(session, repository, 1, "alice")
    add_pr(session, repository, 2, "bob")
    add_pr(session, other, 1, "alice")

    series = metrics_service.get_time_series(
        session, owner.id, days=1, contributor="alice", today=DAY
    )

    assert series == [
        {"date": "2026-03-17", "prs_opened": 1, "prs_merged": 0, "avg_cycle_time": None}
    ]
