"""
GitHub webhook payload parser.

Extracts the repository, pull request and review objects that the webhook
ingestion path upserts.
"""

import hashlib
import hmac
from typing import Any, Dict, Optional

from meridian.models.github_data import PullRequestAttrs, ReviewAttrs
from meridian.utils.logger import logger


def verify_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Check ``sha256=<hex hmac>`` of the raw body in constant time."""
    if not secret or not signature:
        return False
    digest = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={digest}", signature)


class GitHubWebhookParser:
    """Parses GitHub webhook payloads into normalized attributes."""

    def get_repository_id(self, webhook_payload: Dict[str, Any]) -> Optional[int]:
        repo_info = webhook_payload.get("repository") or {}
        return repo_info.get("id")

    def get_pull_request(
        self, webhook_payload: Dict[str, Any]
    ) -> Optional[PullRequestAttrs]:
        pr_info = webhook_payload.get("pull_request")
        if not pr_info:
            return None
        try:
            return PullRequestAttrs.from_github(pr_info)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed pull_request in webhook payload: {e}")
            return None

    def get_review(self, webhook_payload: Dict[str, Any]) -> Optional[ReviewAttrs]:
        review_info = webhook_payload.get("review")
        if not review_info:
            return None
        try:
            return ReviewAttrs.from_github(review_info)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Malformed review in webhook payload: {e}")
            return None
