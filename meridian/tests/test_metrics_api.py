from meridian.models.pull_request import PullRequest
from meridian.models.review import Review
from meridian.tests.helpers import NOW, make_owner, make_repository


def seed(database, owner):
    with database.session() as s:
        repository = make_repository(s, owner)
        merged = PullRequest(
            repository_id=repository.id,
            github_pr_id=1,
            number=1,
            title="Merged",
            state="MERGED",
            author_login="alice",
            created_at=NOW,
            updated_at=NOW,
            merged_at=NOW,
            time_to_merge=90,
            time_to_first_review=30,
        )
        s.add(merged)
        s.commit()
        s.add(
            Review(
                github_review_id=1,
                pull_request_id=merged.id,
                reviewer_login="bob",
                state="APPROVED",
                submitted_at=NOW,
            )
        )
        s.commit()
        return repository.id


def test_top_contributors(client, auth_headers, database, owner):
    seed(database, owner)

    response = client.get("/api/metrics/contributors", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert [c["login"] for c in data] == ["alice", "bob"]
    assert data[0]["prs_merged"] == 1
    assert data[0]["avg_time_to_merge"] == 90
    assert data[1]["reviews_given"] == 1


def test_contributor_limit_is_validated(client, auth_headers):
    response = client.get("/api/metrics/contributors?limit=0", headers=auth_headers)
    assert response.status_code == 422


def test_repository_metrics(client, auth_headers, database, owner):
    repository_id = seed(database, owner)

    response = client.get(f"/api/metrics/repositories/{repository_id}", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total_prs"] == 1
    assert data["merged_prs"] == 1
    assert data["p50_cycle_time"] == 90
    assert data["avg_time_to_first_review"] == 30


def test_repository_of_another_owner_is_not_found(client, auth_headers, database):
    with database.session() as s:
        stranger = make_owner(s, login="stranger", github_user_id=2)
        repository = make_repository(s, stranger, 200, "stranger/repo")
        repository_id = repository.id

    response = client.get(f"/api/metrics/repositories/{repository_id}", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Repository not found"


def test_time_series(client, auth_headers, database, owner):
    seed(database, owner)

    response = client.get("/api/metrics/timeseries?days=7", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 7
    assert all(set(point) == {"date", "prs_opened", "prs_merged", "avg_cycle_time"} for point in data)
    assert client.get("/api/metrics/timeseries?days=0", headers=auth_headers).status_code == 422
