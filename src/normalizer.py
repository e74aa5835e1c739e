"""Flattening, deduplication and ordering of batched pull request responses."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from models import PullRequest
from schemas import parse_open_prs_batch, parse_recent_commits_batch

logger = logging.getLogger(__name__)

# (alias map used to build the query, decoded JSON response)
BatchResult = tuple[dict[str, str], dict[str, Any]]


def normalize_open_prs(batches: list[BatchResult]) -> list[PullRequest]:
    """
    Flatten open-PR batch responses into one list of non-draft pull requests.

    Each record is stamped with its owning repository from the batch's alias
    map. Drafts and repositories archived since the repository list was
    cached are always excluded here; display filters (dependabot, base
    branch) are applied later by the view layer. Records are not deduplicated:
    each repository reports its own open PRs exactly once per cycle.

    Args:
        batches: One (alias_map, payload) pair per chunk, in chunk order

    Returns:
        Pull requests sorted ascending by created_at (stable for equal times)
    """
    pull_requests: list[PullRequest] = []
    drafts = 0

    for alias_map, payload in batches:
        for entry in parse_open_prs_batch(alias_map, payload):
            if entry.is_archived:
                logger.debug(f"Skipping archived repository {entry.repo_name}")
                continue
            for pr in entry.pull_requests:
                if pr.is_draft:
                    drafts += 1
                    continue
                pull_requests.append(pr)

    if drafts:
        logger.debug(f"Excluded {drafts} draft PR(s)")

    pull_requests.sort(key=lambda pr: pr.created_at)
    return pull_requests


def normalize_recent_merges(batches: list[BatchResult]) -> list[PullRequest]:
    """
    Infer recently merged pull requests from protected-branch history.

    Only merge commits (more than one parent) count. Every pull request
    associated with a merge commit is stamped with that commit's date. The
    same PR can surface through several commits or through both the main and
    master refs; the first occurrence in walk order (batch, repository, ref,
    commit, associated PR) is kept.

    Args:
        batches: One (alias_map, payload) pair per chunk, in chunk order

    Returns:
        Unique pull requests sorted descending by committed_date
    """
    seen_urls: set[str] = set()
    recent: list[PullRequest] = []
    duplicates = 0

    for alias_map, payload in batches:
        for repo_history in parse_recent_commits_batch(alias_map, payload):
            if repo_history.is_archived:
                logger.debug(f"Skipping archived repository {repo_history.repo_name}")
                continue
            for ref in repo_history.refs:
                for commit in ref.commits:
                    if not commit.is_merge:
                        continue
                    for pr in commit.associated_pull_requests:
                        if pr.url in seen_urls:
                            duplicates += 1
                            continue
                        seen_urls.add(pr.url)
                        recent.append(
                            dataclasses.replace(pr, committed_date=commit.committed_date)
                        )

    if duplicates:
        logger.debug(f"Dropped {duplicates} duplicate recent PR occurrence(s)")

    recent.sort(key=lambda pr: pr.committed_date, reverse=True)
    return recent
