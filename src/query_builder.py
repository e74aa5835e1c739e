"""GraphQL query documents for team repositories, open PRs and recent merges."""

from __future__ import annotations

import re

from exceptions import AliasCollisionError

REPOSITORIES_PAGE_SIZE = 100
OPEN_PRS_PER_REPO = 15
EVENTS_PER_PR = 50
HISTORY_DEPTH = 25
ASSOCIATED_PRS_PER_COMMIT = 5

# Protected branch candidates; an organization may use either name
RECENT_REF_FIELDS = {
    "mainRef": "main",
    "masterRef": "master",
}

_NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")


def build_repositories_query(owner: str, team: str, cursor: str | None) -> str:
    """
    Build the paginated team repository listing query.

    Args:
        owner: Organization login
        team: Team slug
        cursor: End cursor of the previous page, or None for the first page

    Returns:
        GraphQL query string
    """
    after = f'"{cursor}"' if cursor else "null"

    return f"""
    {{
        organization(login: "{owner}") {{
            team(slug: "{team}") {{
                repositories(first: {REPOSITORIES_PAGE_SIZE}, after: {after}) {{
                    totalCount
                    pageInfo {{
                        endCursor
                        hasNextPage
                    }}
                    edges {{
                        permission
                        node {{
                            name
                            isArchived
                        }}
                    }}
                }}
            }}
        }}
    }}
    """


def repo_alias(repo: str) -> str:
    """
    Derive the GraphQL field alias for a repository name.

    Non-alphanumeric characters are stripped and a fixed prefix is added so the
    alias is a valid GraphQL name even for repositories starting with a digit.
    """
    return "repo_" + _NON_ALPHANUMERIC.sub("", repo)


def build_alias_map(repos: list[str]) -> dict[str, str]:
    """
    Build the alias -> repository name map for one batch.

    Args:
        repos: Repository names in the batch

    Returns:
        Ordered dict mapping each generated alias to its repository name

    Raises:
        AliasCollisionError: If two repository names reduce to the same alias
    """
    alias_map: dict[str, str] = {}
    for repo in repos:
        alias = repo_alias(repo)
        existing = alias_map.get(alias)
        if existing is not None:
            raise AliasCollisionError(alias, (existing, repo))
        alias_map[alias] = repo
    return alias_map


def _open_prs_fields() -> str:
    return f"""
                pullRequests(last: {OPEN_PRS_PER_REPO}, states: OPEN) {{
                    nodes {{
                        title
                        url
                        createdAt
                        baseRefName
                        headRefOid
                        isDraft
                        number
                        reviewDecision
                        author {{
                            login
                        }}
                        comments(first: {EVENTS_PER_PR}) {{
                            nodes {{
                                createdAt
                                author {{
                                    login
                                }}
                            }}
                        }}
                        reviews(first: {EVENTS_PER_PR}) {{
                            nodes {{
                                state
                                createdAt
                                author {{
                                    login
                                }}
                            }}
                        }}
                        commits(last: 1) {{
                            nodes {{
                                commit {{
                                    oid
                                    statusCheckRollup {{
                                        state
                                    }}
                                    status {{
                                        state
                                    }}
                                }}
                            }}
                        }}
                    }}
                }}"""


def _recent_ref_fields(since: str) -> str:
    refs = []
    for field_name, branch in RECENT_REF_FIELDS.items():
        refs.append(f"""
                {field_name}: ref(qualifiedName: "{branch}") {{
                    target {{
                        ... on Commit {{
                            history(first: {HISTORY_DEPTH}, since: "{since}") {{
                                nodes {{
                                    committedDate
                                    messageHeadline
                                    parents {{
                                        totalCount
                                    }}
                                    associatedPullRequests(first: {ASSOCIATED_PRS_PER_COMMIT}) {{
                                        nodes {{
                                            createdAt
                                            number
                                            title
                                            url
                                            author {{
                                                login
                                            }}
                                        }}
                                    }}
                                }}
                            }}
                        }}
                    }}
                }}""")
    return "".join(refs)


def _build_batch_query(operation: str, owner: str, alias_map: dict[str, str], inner: str) -> str:
    repo_fields = []
    for alias, repo in alias_map.items():
        repo_fields.append(f"""
            {alias}: repository(owner: "{owner}", name: "{repo}") {{
                name
                isArchived{inner}
            }}""")

    fields = "".join(repo_fields)
    return f"""
    query {operation} {{{fields}
    }}
    """


def build_open_prs_query(owner: str, alias_map: dict[str, str]) -> str:
    """
    Build the batched open pull request query.

    Args:
        owner: Repository owner
        alias_map: Alias -> repository name map from build_alias_map

    Returns:
        GraphQL query string with one aliased repository field per entry
    """
    return _build_batch_query("openPRs", owner, alias_map, _open_prs_fields())


def build_recent_commits_query(owner: str, alias_map: dict[str, str], since: str) -> str:
    """
    Build the batched recent commit history query for main and master.

    Args:
        owner: Repository owner
        alias_map: Alias -> repository name map from build_alias_map
        since: ISO-8601 lower bound for commit history

    Returns:
        GraphQL query string; each repository carries both mainRef and masterRef
    """
    return _build_batch_query("recentPRs", owner, alias_map, _recent_ref_fields(since))
