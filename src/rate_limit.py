"""GitHub API quota preflight."""

from __future__ import annotations

import logging
from datetime import datetime

from github import Auth, Github, GithubException

from models import RateLimitStatus

logger = logging.getLogger(__name__)


def check_rate_limit(token: str, api_url: str | None = None) -> RateLimitStatus | None:
    """
    Check GitHub API rate limit and return status object.

    Reads the core quota through PyGithub. Returns None if the check itself
    fails (non-fatal): polling then proceeds and any real exhaustion surfaces
    as an UpstreamError from the fetch.

    Args:
        token: GitHub Personal Access Token
        api_url: Base URL of the GitHub API; PyGithub's default when None

    Returns:
        RateLimitStatus with current quota info, or None if check failed
    """
    kwargs = {"base_url": api_url} if api_url else {}
    github = Github(auth=Auth.Token(token), **kwargs)
    try:
        remaining, limit = github.rate_limiting
        reset_timestamp = github.rate_limiting_resettime
    except (GithubException, OSError) as e:
        logger.debug(f"Could not check rate limit: {e}")
        return None
    finally:
        github.close()

    remaining = max(0, remaining)

    # Calculate wait time if exhausted
    current_time = datetime.now().timestamp()
    wait_seconds = max(0, int(reset_timestamp - current_time)) if remaining == 0 else None

    status = RateLimitStatus(
        remaining=remaining,
        limit=limit,
        reset_timestamp=reset_timestamp,
        is_exhausted=(remaining == 0),
        wait_seconds=wait_seconds,
    )

    logger.debug(f"GitHub API rate limit: {remaining}/{limit} remaining")

    if status.is_low:
        logger.warning(
            f"GitHub API rate limit is low: {remaining}/{limit} requests remaining. "
            f"Resets at {status.reset_time.strftime('%Y-%m-%d %H:%M:%S')}."
        )
    elif remaining < 500:
        logger.info(f"GitHub API rate limit: {remaining}/{limit} requests remaining")

    return status


def should_proceed(status: RateLimitStatus, threshold_seconds: int) -> bool:
    """
    Decide whether to proceed with API calls based on rate limit status.

    Does not wait: when the quota is exhausted but resets within the
    threshold, the caller sleeps `status.wait_seconds` before fetching.

    Args:
        status: Current rate limit status
        threshold_seconds: Maximum seconds to wait (from config)

    Returns:
        True if should proceed (after waiting if needed), False if the cycle
        should be skipped
    """
    if not status.is_exhausted:
        return True

    if status.wait_seconds is None or status.wait_seconds <= 0:
        return True  # Already reset

    return status.wait_seconds <= threshold_seconds
