from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from meridian.config import settings
from meridian.models.github_data import (
    CommentAttrs,
    GitHubUser,
    PullRequestAttrs,
    RateLimit,
    RepoAttrs,
    ReviewAttrs,
)
from meridian.utils.logger import logger


class GitHubError(Exception):
    """A GitHub API call failed after the HTTP layer's retries."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(GitHubError):
    """The credential was rejected. Re-authenticate instead of retrying."""

    def __init__(
        self,
        message: str = "GitHub token is invalid or expired. Please update your token.",
    ):
        super().__init__(message, status_code=401)


class GitHubRateLimitError(GitHubError):
    def __init__(self, reset_at: Optional[datetime] = None):
        message = "GitHub API rate limit exhausted"
        if reset_at:
            message += f"; resets at {reset_at.isoformat()}Z"
        super().__init__(message, status_code=403)
        self.reset_at = reset_at


def _build_session(token: str, max_retries: int) -> requests.Session:
    session = requests.Session()
    session.headers.update(
        {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "Meridian-Sync",
        }
    )
    # Connection errors and 5xx are retried with exponential backoff.
    retry = Retry(
        total=max_retries,
        backoff_factor=1,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class GitHubClient:
    """
    Read-only GitHub REST client for one credential.

    Every response refreshes ``rate_limit`` from the ``X-RateLimit-*`` headers,
    so callers can inspect the remaining budget without an extra request.
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        per_page: Optional[int] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
    ):
        self.base_url = (base_url or settings.GITHUB_API_URL).rstrip("/")
        self.per_page = per_page or settings.GITHUB_PER_PAGE
        self.timeout = timeout or settings.GITHUB_TIMEOUT
        self.session = _build_session(
            token,
            settings.GITHUB_MAX_RETRIES if max_retries is None else max_retries,
        )
        self.rate_limit = RateLimit()

    def close(self):
        self.session.close()

    def _update_rate_limit(self, headers) -> None:
        remaining = headers.get("X-RateLimit-Remaining")
        limit = headers.get("X-RateLimit-Limit")
        reset = headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self.rate_limit.remaining = int(remaining)
        if limit is not None:
            self.rate_limit.limit = int(limit)
        if reset is not None:
            self.rate_limit.reset_at = datetime.fromtimestamp(
                int(reset), tz=timezone.utc
            ).replace(tzinfo=None)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"GitHub request to {path} failed: {e}")
            raise GitHubError(f"GitHub request to {path} failed: {e}") from e

        self._update_rate_limit(response.headers)

        if response.status_code == 401:
            raise GitHubAuthError()
        if response.status_code == 403 and response.headers.get(
            "X-RateLimit-Remaining"
        ) == "0":
            logger.warning(f"GitHub rate limit exhausted while requesting {path}")
            raise GitHubRateLimitError(self.rate_limit.reset_at)
        if response.status_code >= 400:
            logger.error(
                f"GitHub returned {response.status_code} for {path}: {response.text[:200]}"
            )
            raise GitHubError(
                f"GitHub returned {response.status_code} for {path}",
                status_code=response.status_code,
            )
        return response.json()

    def _paginate(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Iterator[List[Dict[str, Any]]]:
        """Yield page after page; a short page is the last one."""
        page = 1
        while True:
            query = dict(params or {})
            query.update({"per_page": self.per_page, "page": page})
            items = self._get(path, params=query)
            if not items:
                return
            yield items
            if len(items) < self.per_page:
                return
            page += 1

    def get_authenticated_user(self) -> GitHubUser:
        return GitHubUser.from_github(self._get("/user"))

    def fetch_repositories(self) -> List[RepoAttrs]:
        repos = []
        for page in self._paginate("/user/repos", {"sort": "updated"}):
            repos.extend(RepoAttrs.from_github(item) for item in page)
        return repos

    def fetch_pull_requests(
        self, owner: str, repo: str, since: Optional[datetime] = None
    ) -> List[PullRequestAttrs]:
        """
        Fetch pull requests newest-update first.

        With ``since``, pagination stops at the first PR updated at or before
        the cutoff. This relies on GitHub ordering the listing by
        ``updated_at`` descending; PRs updated exactly at ``since`` are left
        for the next sync.
        """
        params = {"state": "all", "sort": "updated", "direction": "desc"}
        pull_requests = []
        for page in self._paginate(f"/repos/{owner}/{repo}/pulls", params):
            for item in page:
                attrs = PullRequestAttrs.from_github(item)
                if since is not None and attrs.updated_at <= since:
                    return pull_requests
                pull_requests.append(attrs)
        return pull_requests

    def fetch_reviews(self, owner: str, repo: str, pr_number: int) -> List[ReviewAttrs]:
        reviews = []
        path = f"/repos/{owner}/{repo}/pulls/{pr_number}/reviews"
        for page in self._paginate(path):
            for item in page:
                review = ReviewAttrs.from_github(item)
                if review is not None:
                    reviews.append(review)
        return reviews

    def fetch_comments(
        self, owner: str, repo: str, pr_number: int
    ) -> List[CommentAttrs]:
        comments = []
        path = f"/repos/{owner}/{repo}/issues/{pr_number}/comments"
        for page in self._paginate(path):
            comments.extend(CommentAttrs.from_github(item) for item in page)
        return comments

    def check_rate_limit(self) -> RateLimit:
        data = self._get("/rate_limit")
        core = data.get("resources", {}).get("core") or data.get("rate", {})
        self.rate_limit = RateLimit(
            remaining=core.get("remaining"),
            limit=core.get("limit"),
            reset_at=datetime.fromtimestamp(core["reset"], tz=timezone.utc).replace(
                tzinfo=None
            )
            if core.get("reset") is not None
            else None,
        )
        return self.rate_limit
