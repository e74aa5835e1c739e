"""GitHub web URL generation utilities."""

from __future__ import annotations

import logging
from urllib.parse import quote

logger = logging.getLogger(__name__)

GITHUB_WEB_URL = "https://github.com"


def build_repo_url(owner: str, repo: str) -> str:
    """
    Build the GitHub web URL for a repository.

    Args:
        owner: Organization or user login (e.g., "my-org")
        repo: Repository name (e.g., "pr-radiator")

    Returns:
        URL such as https://github.com/my-org/pr-radiator

    Raises:
        ValueError: If owner or repo is empty

    Example:
        >>> build_repo_url("my-org", "pr-radiator")
        'https://github.com/my-org/pr-radiator'
    """
    if not owner or not owner.strip():
        raise ValueError("Owner cannot be empty")
    if not repo or not repo.strip():
        raise ValueError("Repository name cannot be empty")

    # Warn for unusually long owner names
    if len(owner) > 39:
        logger.warning(
            f"Owner '{owner}' exceeds GitHub's 39-character limit. "
            "URL may not work correctly."
        )

    return f"{GITHUB_WEB_URL}/{quote(owner.strip())}/{quote(repo.strip())}"


def build_pull_request_path(repo: str, number: int) -> str:
    """Short link text for a pull request, e.g. 'pr-radiator/pull/42'."""
    return f"{repo}/pull/{number}"
