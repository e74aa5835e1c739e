"""In-memory GitHub fake served through httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any

import httpx
import pytest

from github_client import GitHubClient

ALIAS_PATTERN = re.compile(r'(\w+): repository\(owner: "([^"]+)", name: "([^"]+)"\)')
CURSOR_PATTERN = re.compile(r'after: "cursor-(\d+)"')
TEAMS_PATH = re.compile(r"/repos/([^/]+)/([^/]+)/teams")


class FakeGitHub:
    """
    Minimal GitHub API double.

    Serves the team repository listing, the batched open-PR and recent-commit
    queries, and the REST teams endpoint from plain dicts. Every request is
    recorded, along with the peak number of requests in flight.
    """

    def __init__(self) -> None:
        self.repository_pages: list[list[dict[str, Any]]] = []
        self.open_prs: dict[str, list[dict[str, Any]]] = {}
        self.history: dict[str, dict[str, list[dict[str, Any]]]] = {}
        self.teams: dict[str, Any] = {}
        self.graphql_failure: Exception | tuple[int, str] | None = None
        self.graphql_errors: list[dict[str, Any]] = []
        self.graphql_rejection: list[dict[str, Any]] | None = None
        self.graphql_delay = 0.0
        self.failing_repos: set[str] = set()
        self.rest_delay = 0.0

        self.requests: list[httpx.Request] = []
        self.graphql_queries: list[str] = []
        self.rest_in_flight = 0
        self.rest_max_in_flight = 0
        self.graphql_in_flight = 0
        self.graphql_max_in_flight = 0

    @property
    def batch_sizes(self) -> list[int]:
        """Number of aliased repositories in each batch query seen, in order."""
        return [
            len(ALIAS_PATTERN.findall(query))
            for query in self.graphql_queries
            if ALIAS_PATTERN.search(query)
        ]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/graphql":
            return await self._graphql(request)

        match = TEAMS_PATH.fullmatch(request.url.path)
        if match:
            return await self._teams(request, match.group(2))

        return httpx.Response(404, json={"message": "Not Found"})

    async def _graphql(self, request: httpx.Request) -> httpx.Response:
        query = json.loads(request.content)["query"]
        self.graphql_queries.append(query)

        self.graphql_in_flight += 1
        self.graphql_max_in_flight = max(self.graphql_max_in_flight, self.graphql_in_flight)
        try:
            if self.graphql_delay:
                await asyncio.sleep(self.graphql_delay)
        finally:
            self.graphql_in_flight -= 1

        if isinstance(self.graphql_failure, Exception):
            raise self.graphql_failure
        if self.graphql_failure is not None:
            status, body = self.graphql_failure
            return httpx.Response(status, text=body)
        if self.graphql_rejection is not None:
            return httpx.Response(200, json={"data": None, "errors": self.graphql_rejection})
        if any(repo in self.failing_repos for _a, _o, repo in ALIAS_PATTERN.findall(query)):
            return httpx.Response(500, text="Internal Server Error")

        if "organization(login:" in query:
            data = self._repository_page(query)
        elif "query openPRs" in query:
            data = {
                alias: {"name": repo, "pullRequests": {"nodes": self.open_prs.get(repo, [])}}
                for alias, _owner, repo in ALIAS_PATTERN.findall(query)
            }
        else:
            data = {}
            for alias, _owner, repo in ALIAS_PATTERN.findall(query):
                refs = self.history.get(repo, {})
                data[alias] = {
                    "name": repo,
                    "mainRef": self._ref(refs.get("main")),
                    "masterRef": self._ref(refs.get("master")),
                }

        body: dict[str, Any] = {"data": data}
        if self.graphql_errors:
            body["errors"] = self.graphql_errors
        return httpx.Response(200, json=body)

    @staticmethod
    def _ref(nodes: list[dict[str, Any]] | None) -> dict[str, Any] | None:
        if nodes is None:
            return None
        return {"target": {"history": {"nodes": nodes}}}

    def _repository_page(self, query: str) -> dict[str, Any]:
        match = CURSOR_PATTERN.search(query)
        index = int(match.group(1)) if match else 0
        edges = self.repository_pages[index] if index < len(self.repository_pages) else []
        has_next = index + 1 < len(self.repository_pages)
        return {
            "organization": {
                "team": {
                    "repositories": {
                        "totalCount": sum(len(page) for page in self.repository_pages),
                        "pageInfo": {
                            "endCursor": f"cursor-{index + 1}" if has_next else None,
                            "hasNextPage": has_next,
                        },
                        "edges": edges,
                    }
                }
            }
        }

    async def _teams(self, request: httpx.Request, repo: str) -> httpx.Response:
        self.rest_in_flight += 1
        self.rest_max_in_flight = max(self.rest_max_in_flight, self.rest_in_flight)
        try:
            if self.rest_delay:
                await asyncio.sleep(self.rest_delay)
        finally:
            self.rest_in_flight -= 1

        outcome = self.teams.get(repo, [])
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return httpx.Response(outcome, json={"message": "error"})
        return httpx.Response(200, json=outcome)


def repo_edge(name: str, permission: str = "ADMIN", archived: bool = False) -> dict[str, Any]:
    return {"permission": permission, "node": {"name": name, "isArchived": archived}}


def admin_team(slug: str = "platform") -> list[dict[str, str]]:
    return [{"slug": "everyone", "permission": "pull"}, {"slug": slug, "permission": "admin"}]


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def edge():
    """Factory for team repository listing edges."""
    return repo_edge


@pytest.fixture
def team_entries():
    """Factory for REST teams responses granting admin to a team."""
    return admin_team


@pytest.fixture
def make_client(fake_github):
    """Build a GitHubClient talking to the fake, without page delays."""

    def factory(**kwargs: Any) -> GitHubClient:
        kwargs.setdefault("page_delay", 0)
        return GitHubClient("ghp_test_token", transport=fake_github.transport(), **kwargs)

    return factory
