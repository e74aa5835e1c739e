"""
Typed records for the three GraphQL response shapes.

Raw JSON is parsed here exactly once: timestamps become timezone-aware
datetimes, absent connections become empty lists and absent refs become empty
histories. Nodes missing an identity field (url, createdAt) are skipped with a
warning instead of aborting the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from models import Comment, CommitNode, PullRequest, Review
from query_builder import RECENT_REF_FIELDS

logger = logging.getLogger(__name__)

GHOST_LOGIN = "ghost"


def parse_datetime(value: str) -> datetime:
    """Parse a GitHub ISO-8601 timestamp (with trailing 'Z') into an aware datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _nodes(container: dict[str, Any] | None, key: str) -> list[dict[str, Any]]:
    """Return `container[key].nodes`, treating any missing level as empty."""
    if not container:
        return []
    connection = container.get(key) or {}
    return [node for node in connection.get("nodes") or [] if node]


def _login(actor: dict[str, Any] | None) -> str:
    if not actor:
        return GHOST_LOGIN
    return actor.get("login") or GHOST_LOGIN


# ============================================================================
# Team repository listing
# ============================================================================


@dataclass(frozen=True)
class RepositoryEdge:
    """One team repository with the team's permission on it."""

    name: str
    permission: str | None
    is_archived: bool

    @property
    def is_active_admin(self) -> bool:
        return self.permission == "ADMIN" and not self.is_archived


@dataclass(frozen=True)
class RepositoryPage:
    """One page of the team repository listing."""

    edges: list[RepositoryEdge] = field(default_factory=list)
    end_cursor: str | None = None
    has_next_page: bool = False
    total_count: int = 0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RepositoryPage:
        """
        Parse a repository listing response.

        A missing organization or team (unknown slug, no access) yields an empty
        final page so the pagination loop terminates.
        """
        organization = (payload.get("data") or {}).get("organization") or {}
        team = organization.get("team") or {}
        repositories = team.get("repositories")
        if not repositories:
            logger.warning("Team repository listing returned no repositories connection")
            return cls()

        edges = []
        for edge in repositories.get("edges") or []:
            node = (edge or {}).get("node") or {}
            name = node.get("name")
            if not name:
                continue
            edges.append(
                RepositoryEdge(
                    name=name,
                    permission=edge.get("permission"),
                    is_archived=bool(node.get("isArchived", False)),
                )
            )

        page_info = repositories.get("pageInfo") or {}
        return cls(
            edges=edges,
            end_cursor=page_info.get("endCursor"),
            has_next_page=bool(page_info.get("hasNextPage", False)),
            total_count=repositories.get("totalCount") or 0,
        )


# ============================================================================
# Open pull request batch
# ============================================================================


def pull_request_from_node(node: dict[str, Any], repo_name: str) -> PullRequest:
    """
    Build a PullRequest from an open-PR GraphQL node.

    Raises:
        KeyError: If url or createdAt is absent
        ValueError: If a timestamp is malformed
    """
    reviews = [
        Review(
            created_at=parse_datetime(review["createdAt"]),
            author=_login(review.get("author")),
            state=review.get("state") or "COMMENTED",
        )
        for review in _nodes(node, "reviews")
    ]
    comments = [
        Comment(
            created_at=parse_datetime(comment["createdAt"]),
            author=_login(comment.get("author")),
        )
        for comment in _nodes(node, "comments")
    ]
    commits = []
    for commit_node in _nodes(node, "commits"):
        commit = commit_node.get("commit") or {}
        if not commit.get("oid"):
            continue
        commits.append(
            CommitNode(
                oid=commit["oid"],
                rollup_state=(commit.get("statusCheckRollup") or {}).get("state"),
                status_state=(commit.get("status") or {}).get("state"),
            )
        )

    return PullRequest(
        url=node["url"],
        number=node.get("number") or 0,
        title=node.get("title") or "",
        created_at=parse_datetime(node["createdAt"]),
        author=_login(node.get("author")),
        repo_name=repo_name,
        base_branch=node.get("baseRefName") or "",
        head_oid=node.get("headRefOid") or "",
        is_draft=bool(node.get("isDraft", False)),
        reviews=reviews,
        comments=comments,
        commits=commits,
        review_decision=node.get("reviewDecision") or None,
    )


@dataclass(frozen=True)
class RepoPullRequests:
    """Open pull requests reported for one aliased repository."""

    repo_name: str
    pull_requests: list[PullRequest] = field(default_factory=list)
    is_archived: bool = False


def parse_open_prs_batch(
    alias_map: dict[str, str], payload: dict[str, Any]
) -> list[RepoPullRequests]:
    """
    Demultiplex an open-PR batch response by alias.

    Args:
        alias_map: Alias -> repository name map used to build the query
        payload: Decoded JSON response

    Returns:
        One entry per alias, in alias map order
    """
    data = payload.get("data") or {}
    entries = []
    for alias, repo_name in alias_map.items():
        repository = data.get(alias) or {}
        pull_requests = []
        for node in _nodes(repository, "pullRequests"):
            try:
                pull_requests.append(pull_request_from_node(node, repo_name))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed pull request node in {repo_name}: {e}")
        entries.append(
            RepoPullRequests(
                repo_name=repo_name,
                pull_requests=pull_requests,
                is_archived=bool(repository.get("isArchived")),
            )
        )
    return entries


# ============================================================================
# Recent commit history batch
# ============================================================================


@dataclass(frozen=True)
class HistoryCommit:
    """A commit on a protected branch with its associated pull requests."""

    committed_date: datetime
    parent_count: int
    message_headline: str = ""
    associated_pull_requests: list[PullRequest] = field(default_factory=list)

    @property
    def is_merge(self) -> bool:
        """More than one parent means the commit merged a branch."""
        return self.parent_count > 1


@dataclass(frozen=True)
class RefHistory:
    """Recent history of one candidate branch ref."""

    branch: str
    commits: list[HistoryCommit] = field(default_factory=list)


@dataclass(frozen=True)
class RepoHistory:
    """Recent history refs reported for one aliased repository."""

    repo_name: str
    refs: list[RefHistory] = field(default_factory=list)
    is_archived: bool = False


def _associated_pull_request(node: dict[str, Any], repo_name: str) -> PullRequest:
    return PullRequest(
        url=node["url"],
        number=node.get("number") or 0,
        title=node.get("title") or "",
        created_at=parse_datetime(node["createdAt"]),
        author=_login(node.get("author")),
        repo_name=repo_name,
    )


def _history_commit(node: dict[str, Any], repo_name: str) -> HistoryCommit:
    associated = []
    for pr_node in _nodes(node, "associatedPullRequests"):
        try:
            associated.append(_associated_pull_request(pr_node, repo_name))
        except (KeyError, ValueError) as e:
            logger.warning(f"Skipping malformed associated pull request in {repo_name}: {e}")

    return HistoryCommit(
        committed_date=parse_datetime(node["committedDate"]),
        parent_count=(node.get("parents") or {}).get("totalCount") or 0,
        message_headline=node.get("messageHeadline") or "",
        associated_pull_requests=associated,
    )


def parse_recent_commits_batch(
    alias_map: dict[str, str], payload: dict[str, Any]
) -> list[RepoHistory]:
    """
    Demultiplex a recent-commit batch response by alias.

    Refs are returned in RECENT_REF_FIELDS order (main, then master); a ref
    that does not exist in the repository yields no entry.
    """
    data = payload.get("data") or {}
    entries = []
    for alias, repo_name in alias_map.items():
        repository = data.get(alias) or {}
        refs = []
        for field_name, branch in RECENT_REF_FIELDS.items():
            ref = repository.get(field_name)
            if not ref:
                continue
            target = ref.get("target") or {}
            commits = []
            for node in _nodes(target, "history"):
                try:
                    commits.append(_history_commit(node, repo_name))
                except (KeyError, ValueError) as e:
                    logger.warning(f"Skipping malformed commit on {repo_name}@{branch}: {e}")
            refs.append(RefHistory(branch=branch, commits=commits))
        entries.append(
            RepoHistory(
                repo_name=repo_name,
                refs=refs,
                is_archived=bool(repository.get("isArchived")),
            )
        )
    return entries
