"""Normalized GitHub objects, as produced by the client and webhook parsing."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from meridian.models.pull_request import PullRequestState
from meridian.models.review import ReviewState
from meridian.utils.timeutils import parse_github_datetime


class RepoAttrs(BaseModel):
    github_repo_id: int
    name: str
    full_name: str
    default_branch: str = "main"
    description: Optional[str] = None
    is_private: bool = False

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> "RepoAttrs":
        is_private = data.get("private")
        if is_private is None:
            is_private = data.get("visibility", "public") != "public"
        return cls(
            github_repo_id=data["id"],
            name=data["name"],
            full_name=data["full_name"],
            default_branch=data.get("default_branch") or "main",
            description=data.get("description"),
            is_private=bool(is_private),
        )


def pull_request_state(data: Dict[str, Any]) -> PullRequestState:
    """Map GitHub's open/closed + merged flags onto OPEN/MERGED/CLOSED; merged wins."""
    if data.get("merged_at") or data.get("merged"):
        return PullRequestState.MERGED
    if data.get("state") == "open":
        return PullRequestState.OPEN
    return PullRequestState.CLOSED


class PullRequestAttrs(BaseModel):
    github_pr_id: int
    number: int
    title: str
    body: Optional[str] = None
    state: PullRequestState
    author_login: str = "unknown"
    author_avatar_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    # None when the payload carries no diff stats.
    lines_added: Optional[int] = None
    lines_deleted: Optional[int] = None
    files_changed: Optional[int] = None
    commits_count: Optional[int] = None

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> "PullRequestAttrs":
        user = data.get("user") or {}
        return cls(
            github_pr_id=data["id"],
            number=data["number"],
            title=data.get("title") or "",
            body=data.get("body"),
            state=pull_request_state(data),
            author_login=user.get("login") or "unknown",
            author_avatar_url=user.get("avatar_url"),
            created_at=parse_github_datetime(data["created_at"]),
            updated_at=parse_github_datetime(data["updated_at"]),
            closed_at=parse_github_datetime(data.get("closed_at")),
            merged_at=parse_github_datetime(data.get("merged_at")),
            # The list endpoint omits diff stats; webhook payloads include them.
            lines_added=data.get("additions"),
            lines_deleted=data.get("deletions"),
            files_changed=data.get("changed_files"),
            commits_count=data.get("commits"),
        )


class ReviewAttrs(BaseModel):
    github_review_id: int
    reviewer_login: str = "unknown"
    reviewer_avatar_url: Optional[str] = None
    state: ReviewState
    body: Optional[str] = None
    submitted_at: datetime

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> Optional["ReviewAttrs"]:
        """Returns None for drafts (never submitted) and unrecognized states."""
        submitted_at = parse_github_datetime(data.get("submitted_at"))
        state = (data.get("state") or "").upper()
        if submitted_at is None or state not in ReviewState.__members__:
            return None
        user = data.get("user") or {}
        return cls(
            github_review_id=data["id"],
            reviewer_login=user.get("login") or "unknown",
            reviewer_avatar_url=user.get("avatar_url"),
            state=ReviewState(state),
            body=data.get("body"),
            submitted_at=submitted_at,
        )


class CommentAttrs(BaseModel):
    github_comment_id: int
    author_login: str = "unknown"
    author_avatar_url: Optional[str] = None
    body: str = ""
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> "CommentAttrs":
        user = data.get("user") or {}
        return cls(
            github_comment_id=data["id"],
            author_login=user.get("login") or "unknown",
            author_avatar_url=user.get("avatar_url"),
            body=data.get("body") or "",
            created_at=parse_github_datetime(data["created_at"]),
            updated_at=parse_github_datetime(data["updated_at"]),
        )


class GitHubUser(BaseModel):
    github_user_id: int
    login: str
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> "GitHubUser":
        return cls(
            github_user_id=data["id"],
            login=data["login"],
            name=data.get("name"),
            email=data.get("email"),
            avatar_url=data.get("avatar_url"),
        )


class RateLimit(BaseModel):
    remaining: Optional[int] = None
    limit: Optional[int] = None
    reset_at: Optional[datetime] = Field(
        None, description="When the current rate-limit window resets (naive UTC)."
    )
