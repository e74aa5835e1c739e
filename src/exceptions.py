"""Exceptions raised by the PR Radiator core."""

from __future__ import annotations

# Upstream bodies can be large HTML error pages; keep log lines readable
_BODY_PREVIEW_CHARS = 200


class RadiatorError(Exception):
    """Base class for errors raised while talking to GitHub."""


class TransportError(RadiatorError):
    """The network call itself could not be completed (DNS, connect, timeout)."""

    def __init__(self, message: str, url: str | None = None) -> None:
        self.message = message
        self.url = url
        super().__init__(message if url is None else f"{message} ({url})")


class UpstreamError(RadiatorError):
    """GitHub answered, but with a non-2xx status or a GraphQL rejection without data."""

    def __init__(self, status: int, body: str, url: str | None = None) -> None:
        self.status = status
        self.body = body
        self.url = url
        preview = body[:_BODY_PREVIEW_CHARS]
        where = f" from {url}" if url else ""
        super().__init__(f"GitHub returned HTTP {status}{where}: {preview}")


class AliasCollisionError(RadiatorError):
    """Two repository names in one batch reduce to the same query alias."""

    def __init__(self, alias: str, repos: tuple[str, str]) -> None:
        self.alias = alias
        self.repos = repos
        super().__init__(
            f"Repositories {repos[0]!r} and {repos[1]!r} both map to query alias "
            f"{alias!r}; rename one or add it to IGNORE_REPOS"
        )
