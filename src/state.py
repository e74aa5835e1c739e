"""View-model state for the radiator board and its reducer."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from classifier import needs_review
from models import PullRequest

DEPENDABOT_LOGIN = "dependabot"
PROTECTED_BRANCHES = frozenset({"main", "master"})


@dataclass(frozen=True)
class RadiatorState:
    """Immutable snapshot of everything the board needs to render."""

    repos: tuple[str, ...] = ()
    """Team repositories in resolution order"""

    ignore_repos: frozenset[str] = frozenset()
    """Repositories excluded from fetching"""

    pull_requests: tuple[PullRequest, ...] = ()
    """Open PRs from the last successful cycle"""

    recent_pull_requests: tuple[PullRequest, ...] = ()
    """Recently merged PRs from the last successful cycle"""

    show_dependabot: bool = False
    show_protected_base: bool = True
    needs_review_only: bool = False
    show_recent: bool = False

    last_error: str | None = None
    """Message of the most recent failed cycle; cleared by the next success"""


# Actions


@dataclass(frozen=True)
class ReposResolved:
    repos: tuple[str, ...]


@dataclass(frozen=True)
class OpenPullRequestsFetched:
    pull_requests: tuple[PullRequest, ...]


@dataclass(frozen=True)
class RecentMergesFetched:
    pull_requests: tuple[PullRequest, ...]


@dataclass(frozen=True)
class FetchFailed:
    message: str


@dataclass(frozen=True)
class ToggleDependabot:
    pass


@dataclass(frozen=True)
class ToggleProtectedBase:
    pass


@dataclass(frozen=True)
class ToggleNeedsReview:
    pass


@dataclass(frozen=True)
class ToggleRecent:
    pass


@dataclass(frozen=True)
class ToggleIgnoreRepo:
    repo: str


@dataclass(frozen=True)
class ResetRepos:
    pass


Action = (
    ReposResolved
    | OpenPullRequestsFetched
    | RecentMergesFetched
    | FetchFailed
    | ToggleDependabot
    | ToggleProtectedBase
    | ToggleNeedsReview
    | ToggleRecent
    | ToggleIgnoreRepo
    | ResetRepos
)


def reduce(state: RadiatorState, action: Action) -> RadiatorState:
    """
    Apply one action and return the next state.

    The input state is never modified. Collections carried by actions are
    copied into tuples so later changes by the caller do not leak in.

    Raises:
        TypeError: If the action type is unknown
    """
    replace = dataclasses.replace

    if isinstance(action, ReposResolved):
        return replace(state, repos=tuple(action.repos), last_error=None)
    if isinstance(action, OpenPullRequestsFetched):
        return replace(state, pull_requests=tuple(action.pull_requests), last_error=None)
    if isinstance(action, RecentMergesFetched):
        return replace(state, recent_pull_requests=tuple(action.pull_requests), last_error=None)
    if isinstance(action, FetchFailed):
        return replace(state, last_error=action.message)
    if isinstance(action, ToggleDependabot):
        return replace(state, show_dependabot=not state.show_dependabot)
    if isinstance(action, ToggleProtectedBase):
        return replace(state, show_protected_base=not state.show_protected_base)
    if isinstance(action, ToggleNeedsReview):
        return replace(state, needs_review_only=not state.needs_review_only)
    if isinstance(action, ToggleRecent):
        return replace(state, show_recent=not state.show_recent)
    if isinstance(action, ToggleIgnoreRepo):
        return replace(state, ignore_repos=state.ignore_repos ^ {action.repo})
    if isinstance(action, ResetRepos):
        return replace(state, repos=(), pull_requests=(), recent_pull_requests=())

    raise TypeError(f"Unknown action: {type(action).__name__}")


def active_repos(state: RadiatorState) -> list[str]:
    """Repositories to fetch: the team list minus ignored ones, in order."""
    return [repo for repo in state.repos if repo not in state.ignore_repos]


def visible_pull_requests(state: RadiatorState) -> list[PullRequest]:
    """Open pull requests after the display filters."""
    visible = []
    for pr in state.pull_requests:
        if not state.show_dependabot and pr.author == DEPENDABOT_LOGIN:
            continue
        if not state.show_protected_base and pr.base_branch in PROTECTED_BRANCHES:
            continue
        if state.needs_review_only and not needs_review(pr):
            continue
        visible.append(pr)
    return visible
