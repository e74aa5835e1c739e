"""Data models for the PR Radiator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

EventState = Literal["APPROVED", "CHANGES_REQUESTED", "COMMENTED", "DISMISSED"]

AgeBucket = Literal["last-hour", "last-two-hours", "last-day", "last-week", "over-week-old"]


@dataclass(frozen=True)
class Review:
    """A submitted review on a pull request."""

    created_at: datetime
    """Timestamp when the review was submitted (timezone-aware)"""

    author: str
    """GitHub username of the reviewer"""

    state: str
    """Raw review state as reported by GitHub (e.g., 'APPROVED', 'COMMENTED')"""


@dataclass(frozen=True)
class Comment:
    """A conversation comment on a pull request."""

    created_at: datetime
    """Timestamp when the comment was posted (timezone-aware)"""

    author: str
    """GitHub username of the commenter"""


@dataclass(frozen=True)
class CommitNode:
    """The last-known commit of a pull request and its CI status."""

    oid: str
    """Commit SHA"""

    rollup_state: str | None = None
    """Consolidated check-rollup state (SUCCESS, PENDING, FAILURE, EXPECTED, ERROR)"""

    status_state: str | None = None
    """Legacy combined commit status, used when no rollup is available"""


@dataclass
class PullRequest:
    """A GitHub pull request, either open or recently merged."""

    url: str
    """Full URL to the PR on GitHub; globally unique identity key"""

    number: int
    """PR number within the repository"""

    title: str
    """PR title"""

    created_at: datetime
    """Timestamp when the PR was created (timezone-aware)"""

    author: str
    """GitHub username of the PR author ('ghost' for deleted accounts)"""

    repo_name: str
    """Repository name (e.g., 'pr-radiator')"""

    base_branch: str = ""
    """Name of the target branch for this PR (e.g., 'main', 'develop')"""

    head_oid: str = ""
    """SHA of the PR's head commit"""

    is_draft: bool = False
    """Whether the PR is still a draft"""

    reviews: list[Review] = field(default_factory=list)
    """Submitted reviews in GitHub's order"""

    comments: list[Comment] = field(default_factory=list)
    """Conversation comments in GitHub's order"""

    commits: list[CommitNode] = field(default_factory=list)
    """Last-known commit nodes with their check states"""

    review_decision: str | None = None
    """
    GitHub's computed review status based on branch protection rules.
    Values: 'APPROVED', 'CHANGES_REQUESTED', 'REVIEW_REQUIRED', or None.
    """

    committed_date: datetime | None = None
    """Merge commit timestamp; only set for PRs inferred from recent merge history"""

    @property
    def display_ref(self) -> str:
        """Short 'repo#number' reference."""
        return f"{self.repo_name}#{self.number}"


@dataclass(frozen=True)
class Event:
    """A single review or comment, normalized for the timeline."""

    created_at: datetime
    author: str
    state: EventState


@dataclass(frozen=True)
class CompressedEvent:
    """One or more adjacent events by the same author with the same state."""

    created_at: datetime
    """Timestamp of the first event in the run"""

    author: str
    state: EventState
    count: int = 1
    """Number of consecutive raw events folded into this entry"""

    @property
    def label(self) -> str:
        """Author with repetition badge, e.g. 'alice(3)'."""
        return f"{self.author}({self.count})" if self.count > 1 else self.author


@dataclass(frozen=True)
class CommitCheck:
    """Display glyph and style class for a commit's CI state."""

    icon: str
    css_class: str


@dataclass
class Config:
    """Application configuration from environment variables."""

    github_token: str
    """GitHub Personal Access Token with 'repo' and 'read:org' scopes"""

    github_org: str
    """GitHub organization that owns the team's repositories"""

    github_team: str
    """Slug of the team whose repositories are shown"""

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR)"""

    poll_interval: int = 300
    """Seconds between fetch cycles"""

    recent_window_days: int = 14
    """Number of days of merge history to scan for recently merged PRs"""

    ignore_repos: list[str] = field(default_factory=list)
    """Repositories excluded from PR fetching"""

    repos_cache_file: str = ".pr_radiator_repos.json"
    """Path of the JSON file caching the resolved team repository list"""

    rate_limit_wait_threshold: int = 300
    """Max auto-wait seconds (5 minutes default)"""

    holidays_country: str = "US"
    """Country code for holiday calendar used in business day calculation (e.g., 'US', 'KR')"""

    github_api_url: str = "https://api.github.com"
    """Base URL of the GitHub API (override for GitHub Enterprise)"""

    request_timeout: float = 30.0
    """Per-request timeout in seconds"""


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status for decision-making."""

    remaining: int
    """Remaining API calls in current window"""

    limit: int
    """Total API calls allowed per window"""

    reset_timestamp: int
    """Unix timestamp when quota resets"""

    is_exhausted: bool
    """Whether quota is depleted (remaining == 0)"""

    wait_seconds: int | None
    """Seconds until reset (None if not exhausted)"""

    @property
    def reset_time(self) -> datetime:
        """Get reset time as datetime object."""
        return datetime.fromtimestamp(self.reset_timestamp)

    @property
    def is_low(self) -> bool:
        """Check if fewer than 100 calls remain."""
        return self.remaining < 100


@dataclass
class APICallMetrics:
    """Track API usage across fetch cycles."""

    graphql_calls: int = 0
    """Number of GraphQL requests issued (batch queries and repository pages)"""

    rest_calls: int = 0
    """Number of REST permission lookups issued"""

    pages_fetched: int = 0
    """Number of repository listing pages consumed"""

    failed_calls: int = 0
    """Number of requests that raised TransportError or UpstreamError"""

    @property
    def total_calls(self) -> int:
        return self.graphql_calls + self.rest_calls

    @property
    def success_rate(self) -> float:
        """
        Calculate percentage of successful API calls.

        Returns 100.0 if no calls made.
        """
        if self.total_calls == 0:
            return 100.0
        return ((self.total_calls - self.failed_calls) / self.total_calls) * 100
