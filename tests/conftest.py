"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest

from models import Comment, CommitNode, Config, PullRequest, Review


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


@pytest.fixture
def now() -> datetime:
    """A fixed reference time: Wednesday 2025-10-29 12:00 UTC."""
    return datetime(2025, 10, 29, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def sample_config() -> Config:
    """Provide a sample Config object for testing."""
    return Config(
        github_token="ghp_test_token_1234567890",
        github_org="test-org",
        github_team="platform",
        log_level="DEBUG",
        poll_interval=60,
    )


@pytest.fixture
def sample_pr() -> PullRequest:
    """Provide a sample PullRequest for testing."""
    return PullRequest(
        url="https://github.com/test-org/pr-radiator/pull/123",
        number=123,
        title="Add staleness calculation",
        created_at=datetime(2025, 10, 28, 10, 0, 0, tzinfo=UTC),
        author="alice",
        repo_name="pr-radiator",
        base_branch="main",
        head_oid="abc123",
        reviews=[
            Review(
                created_at=datetime(2025, 10, 28, 11, 0, 0, tzinfo=UTC),
                author="bob",
                state="APPROVED",
            )
        ],
        comments=[
            Comment(created_at=datetime(2025, 10, 28, 10, 30, 0, tzinfo=UTC), author="carol"),
        ],
        commits=[CommitNode(oid="abc123", rollup_state="SUCCESS")],
        review_decision="APPROVED",
    )


def _actor(login: str | None) -> dict[str, str] | None:
    return {"login": login} if login is not None else None


def build_pr_node(
    number: int,
    created_at: str,
    *,
    repo: str = "pr-radiator",
    owner: str = "test-org",
    title: str | None = None,
    author: str | None = "alice",
    base: str = "main",
    is_draft: bool = False,
    head_oid: str = "abc123",
    rollup: str | None = "SUCCESS",
    status: str | None = None,
    review_decision: str | None = "REVIEW_REQUIRED",
    reviews: list[tuple[str, str, str]] | None = None,
    comments: list[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    """
    Build an open-PR GraphQL node as GitHub returns it.

    reviews are (author, state, createdAt) triples; comments are
    (author, createdAt) pairs.
    """
    return {
        "title": title or f"PR {number}",
        "url": f"https://github.com/{owner}/{repo}/pull/{number}",
        "createdAt": created_at,
        "baseRefName": base,
        "headRefOid": head_oid,
        "isDraft": is_draft,
        "number": number,
        "reviewDecision": review_decision,
        "author": _actor(author),
        "comments": {
            "nodes": [
                {"createdAt": when, "author": _actor(login)} for login, when in comments or []
            ]
        },
        "reviews": {
            "nodes": [
                {"state": state, "createdAt": when, "author": _actor(login)}
                for login, state, when in reviews or []
            ]
        },
        "commits": {
            "nodes": [
                {
                    "commit": {
                        "oid": head_oid,
                        "statusCheckRollup": {"state": rollup} if rollup else None,
                        "status": {"state": status} if status else None,
                    }
                }
            ]
        },
    }


def build_history_node(
    committed_date: str,
    parents: int,
    pull_requests: list[tuple[int, str]] | None = None,
    *,
    repo: str = "pr-radiator",
    owner: str = "test-org",
    author: str = "alice",
) -> dict[str, Any]:
    """
    Build a commit history GraphQL node.

    pull_requests are (number, createdAt) pairs of associated PRs.
    """
    return {
        "committedDate": committed_date,
        "messageHeadline": f"Merge commit at {committed_date}",
        "parents": {"totalCount": parents},
        "associatedPullRequests": {
            "nodes": [
                {
                    "createdAt": created_at,
                    "number": number,
                    "title": f"PR {number}",
                    "url": f"https://github.com/{owner}/{repo}/pull/{number}",
                    "author": {"login": author},
                }
                for number, created_at in pull_requests or []
            ]
        },
    }


@pytest.fixture
def pr_node():
    """Factory for open-PR GraphQL nodes."""
    return build_pr_node


@pytest.fixture
def history_node():
    """Factory for commit history GraphQL nodes."""
    return build_history_node
