from datetime import datetime, timedelta
from typing import List, Optional

from meridian.insights.types import PullRequestView, ReviewView
from meridian.models.owner import Owner
from meridian.models.pull_request import PullRequestState
from meridian.models.repository import Repository

NOW = datetime(2026, 3, 18, 12, 0, 0)  # a Wednesday


def make_owner(session, login="octocat", github_user_id=1, encrypted_token="enc"):
    owner = Owner(
        github_user_id=github_user_id,
        github_login=login,
        encrypted_token=encrypted_token,
    )
    session.add(owner)
    session.commit()
    session.refresh(owner)
    return owner


def make_repository(session, owner, github_repo_id=100, full_name="octocat/hello"):
    repository = Repository(
        owner_id=owner.id,
        github_repo_id=github_repo_id,
        name=full_name.split("/")[1],
        full_name=full_name,
    )
    session.add(repository)
    session.commit()
    session.refresh(repository)
    return repository


def gh_user(login="octocat", user_id=1):
    return {"login": login, "id": user_id, "avatar_url": f"https://avatars/{login}"}


def gh_repo(repo_id=100, full_name="octocat/hello", private=False):
    return {
        "id": repo_id,
        "name": full_name.split("/")[1],
        "full_name": full_name,
        "private": private,
        "default_branch": "main",
        "description": "A repository",
    }


def gh_pull(
    number=1,
    created_at="2026-03-01T10:00:00Z",
    updated_at="2026-03-02T10:00:00Z",
    state="open",
    merged_at=None,
    closed_at=None,
    login="octocat",
    pr_id=None,
    **extra,
):
    data = {
        "id": pr_id or 5000 + number,
        "number": number,
        "title": f"PR {number}",
        "body": "Body",
        "state": state,
        "user": gh_user(login),
        "created_at": created_at,
        "updated_at": updated_at,
        "closed_at": closed_at,
        "merged_at": merged_at,
    }
    data.update(extra)
    return data


def gh_review(review_id=9000, submitted_at="2026-03-01T12:30:00Z", state="APPROVED", login="hubot"):
    return {
        "id": review_id,
        "user": gh_user(login, 2),
        "state": state,
        "body": "LGTM",
        "submitted_at": submitted_at,
    }


def view(
    number: int,
    author: str = "alice",
    state: PullRequestState = PullRequestState.OPEN,
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
    merged_at: Optional[datetime] = None,
    time_to_first_review: Optional[int] = None,
    time_to_merge: Optional[int] = None,
    reviews: Optional[List[ReviewView]] = None,
) -> PullRequestView:
    created_at = created_at or NOW - timedelta(days=1)
    return PullRequestView(
        id=number,
        repository_id=1,
        number=number,
        title=f"PR {number}",
        state=state,
        author_login=author,
        created_at=created_at,
        updated_at=updated_at or created_at,
        merged_at=merged_at,
        time_to_first_review=time_to_first_review,
        time_to_merge=time_to_merge,
        reviews=reviews or [],
    )


def merged_view(number: int, merged_days_ago: float, time_to_merge: int, author="alice"):
    merged_at = NOW - timedelta(days=merged_days_ago)
    return view(
        number,
        author=author,
        state=PullRequestState.MERGED,
        created_at=merged_at - timedelta(minutes=time_to_merge),
        merged_at=merged_at,
        time_to_merge=time_to_merge,
    )
