"""GitHub API client for team repositories, open pull requests and recent merges."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Literal

import httpx

from concurrency import chunked, gather_bounded
from exceptions import TransportError, UpstreamError
from models import APICallMetrics, PullRequest
from normalizer import BatchResult, normalize_open_prs, normalize_recent_merges
from query_builder import (
    build_alias_map,
    build_open_prs_query,
    build_recent_commits_query,
    build_repositories_query,
)
from schemas import RepositoryPage

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

# Repositories per GraphQL batch; keeps request bodies and server time well
# under the GraphQL endpoint's limits
BATCH_CHUNK_SIZE = 4

# Maximum simultaneous REST permission lookups
PERMISSION_CHECK_CONCURRENCY = 20

# GitHub asks integrators to wait at least one second between rapid
# sequential requests for the same user
PAGE_DELAY_SECONDS = 1.0

BatchKind = Literal["open", "recent"]


class GitHubClient:
    """
    Async client for the GitHub GraphQL and REST APIs.

    One instance owns one httpx.AsyncClient with connection pooling. Repository
    lists are batched BATCH_CHUNK_SIZE repositories per GraphQL request and all
    batches are sent concurrently. Failures surface as TransportError or
    UpstreamError; nothing is retried here, retry policy belongs to the caller
    that owns the poll schedule.

    Use as an async context manager so the connection pool is closed:

        async with GitHubClient(token) as client:
            prs = await client.fetch_open_pull_requests("my-org", repos)
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        page_delay: float = PAGE_DELAY_SECONDS,
    ) -> None:
        """
        Initialize GitHub client with authentication token.

        Args:
            token: GitHub Personal Access Token with 'repo' and 'read:org' scopes
            api_url: Base URL of the GitHub API (default: https://api.github.com)
            timeout: Per-request timeout in seconds (default: 30.0)
            transport: Optional httpx transport, used by tests to fake GitHub
            page_delay: Pause after each repository listing page in seconds (default: 1.0)
        """
        self.api_url = api_url.rstrip("/")
        self.page_delay = page_delay
        self.metrics = APICallMetrics()
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=httpx.Timeout(timeout, connect=5.0),
            # Batch fan-out is bounded by the chunk count only; REST lookups
            # are bounded by their own semaphore
            limits=httpx.Limits(
                max_connections=None,
                max_keepalive_connections=PERMISSION_CHECK_CONCURRENCY,
            ),
            transport=transport,
        )

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Issue one request and decode its JSON body.

        Raises:
            TransportError: If the request could not be completed
            UpstreamError: If GitHub answered with a non-2xx status or a body
                that is not JSON
        """
        url = f"{self.api_url}{path}"
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TransportError as e:
            self.metrics.failed_calls += 1
            raise TransportError(str(e) or type(e).__name__, url=url) from e

        if not response.is_success:
            self.metrics.failed_calls += 1
            raise UpstreamError(response.status_code, response.text, url=url)

        try:
            return response.json()
        except ValueError as e:
            self.metrics.failed_calls += 1
            raise UpstreamError(response.status_code, response.text, url=url) from e

    async def _post_graphql(self, query: str) -> dict[str, Any]:
        """
        POST a GraphQL document and return the decoded response.

        GraphQL-level errors inside a 2xx response (e.g., one repository in a
        batch not found) are logged and the partial data is returned. Errors
        without any data (rate limited, query too complex, missing scope) fail
        the request.

        Raises:
            UpstreamError: If the response carries errors and no data
        """
        self.metrics.graphql_calls += 1
        payload = await self._request("POST", "/graphql", json={"query": query})
        if not isinstance(payload, dict):
            raise UpstreamError(200, f"Unexpected GraphQL response type: {type(payload).__name__}")

        errors = payload.get("errors") or []
        if errors and payload.get("data") is None:
            self.metrics.failed_calls += 1
            raise UpstreamError(200, json.dumps(errors), url=f"{self.api_url}/graphql")

        for error in errors:
            message = error.get("message") if isinstance(error, dict) else error
            logger.warning(f"GraphQL error (partial data returned): {message}")
        return payload

    # ------------------------------------------------------------------
    # Batch fetching
    # ------------------------------------------------------------------

    async def fetch_batches(
        self,
        kind: BatchKind,
        owner: str,
        repos: list[str],
        since: str | None = None,
    ) -> list[BatchResult]:
        """
        Fetch one GraphQL batch per chunk of repositories, all concurrently.

        Aliases for every chunk are generated before any request is sent, so an
        alias collision fails the whole call without network traffic.

        Args:
            kind: 'open' for open pull requests, 'recent' for merge history
            owner: Repository owner
            repos: Repository names
            since: ISO-8601 lower bound for history (required for 'recent')

        Returns:
            (alias_map, payload) per chunk, in chunk order

        Raises:
            AliasCollisionError: If two names in one chunk share an alias
            TransportError: If any chunk request could not be completed
            UpstreamError: If any chunk request returned a non-2xx status
        """
        if kind == "recent" and not since:
            raise ValueError("'since' is required for recent merge batches")

        alias_maps = [build_alias_map(chunk) for chunk in chunked(repos, BATCH_CHUNK_SIZE)]
        logger.debug(
            f"Fetching {kind} batches: {len(repos)} repo(s) in {len(alias_maps)} request(s)"
        )

        async def fetch_chunk(alias_map: dict[str, str]) -> BatchResult:
            if kind == "open":
                query = build_open_prs_query(owner, alias_map)
            else:
                query = build_recent_commits_query(owner, alias_map, since)
            payload = await self._post_graphql(query)
            return alias_map, payload

        return list(await asyncio.gather(*(fetch_chunk(m) for m in alias_maps)))

    # ------------------------------------------------------------------
    # Team repositories
    # ------------------------------------------------------------------

    async def resolve_team_repositories(self, owner: str, team: str) -> list[str]:
        """
        List repositories the team administers, excluding archived ones.

        Pages through the team's repositories 100 at a time, sleeping
        `page_delay` seconds after each page.

        Args:
            owner: Organization login
            team: Team slug

        Returns:
            Unique repository names in listing order
        """
        repo_names: list[str] = []
        seen: set[str] = set()
        cursor: str | None = None

        while True:
            payload = await self._post_graphql(build_repositories_query(owner, team, cursor))
            self.metrics.pages_fetched += 1
            page = RepositoryPage.from_payload(payload)

            for edge in page.edges:
                if edge.is_active_admin and edge.name not in seen:
                    seen.add(edge.name)
                    repo_names.append(edge.name)

            logger.debug(
                f"Repository page {self.metrics.pages_fetched}: {len(page.edges)} edge(s), "
                f"{len(repo_names)}/{page.total_count} admin repo(s) so far"
            )

            await asyncio.sleep(self.page_delay)

            if not page.has_next_page:
                break
            if not page.end_cursor:
                logger.warning("Repository listing reported another page without a cursor; stopping")
                break
            cursor = page.end_cursor

        logger.info(f"Found {len(repo_names)} admin repositories for team {owner}/{team}")
        return repo_names

    async def _team_has_admin(self, owner: str, team: str, repo: str) -> bool:
        """
        Check one repository's team permissions.

        Lookup failures are logged and treated as 'not admin' so that one bad
        repository does not abort the whole verification.
        """
        self.metrics.rest_calls += 1
        try:
            teams = await self._request(
                "GET", f"/repos/{owner}/{repo}/teams", params={"per_page": 100}
            )
        except (TransportError, UpstreamError) as e:
            logger.warning(f"Error fetching teams for repo {repo}: {e}")
            return False

        if not isinstance(teams, list):
            logger.warning(f"Unexpected teams response for repo {repo}: {type(teams).__name__}")
            return False

        return any(
            isinstance(t, dict) and t.get("slug") == team and t.get("permission") == "admin"
            for t in teams
        )

    async def verify_admin_repos(self, owner: str, team: str, candidates: list[str]) -> list[str]:
        """
        Re-check admin permission for each candidate via the REST teams endpoint.

        At most PERMISSION_CHECK_CONCURRENCY lookups are in flight at once.

        Args:
            owner: Organization login
            team: Team slug
            candidates: Repository names to verify

        Returns:
            Candidates where the team holds admin permission, in input order
        """

        async def check(repo: str) -> bool:
            return await self._team_has_admin(owner, team, repo)

        results = await gather_bounded(candidates, check, PERMISSION_CHECK_CONCURRENCY)
        verified = [repo for repo, is_admin in zip(candidates, results) if is_admin]

        if len(verified) < len(candidates):
            logger.info(
                f"Permission check kept {len(verified)} of {len(candidates)} repositories"
            )
        return verified

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def fetch_open_pull_requests(self, owner: str, repos: list[str]) -> list[PullRequest]:
        """
        Fetch open, non-draft pull requests across repositories.

        Args:
            owner: Repository owner
            repos: Repository names (ignored repositories already removed)

        Returns:
            Pull requests sorted ascending by creation time
        """
        if not repos:
            return []

        batches = await self.fetch_batches("open", owner, repos)
        pull_requests = normalize_open_prs(batches)
        logger.info(f"Fetched {len(pull_requests)} open PR(s) from {len(repos)} repositories")
        return pull_requests

    async def fetch_recent_merges(
        self, owner: str, repos: list[str], since: str | datetime
    ) -> list[PullRequest]:
        """
        Infer recently merged pull requests from main/master merge commits.

        Args:
            owner: Repository owner
            repos: Repository names
            since: Lower bound for commit history (ISO-8601 string or aware datetime)

        Returns:
            Unique pull requests sorted by merge time, most recent first
        """
        if not repos:
            return []

        since_iso = since.isoformat() if isinstance(since, datetime) else since
        batches = await self.fetch_batches("recent", owner, repos, since=since_iso)
        recent = normalize_recent_merges(batches)
        logger.info(f"Found {len(recent)} PR(s) merged since {since_iso}")
        return recent
