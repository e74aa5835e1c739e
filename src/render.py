"""Plain-text rendering of the radiator board."""

from __future__ import annotations

from datetime import UTC, datetime

from classifier import age_bucket, commit_check, is_unreviewed
from models import CompressedEvent, PullRequest
from staleness import business_days_open
from state import RadiatorState, visible_pull_requests
from timeline import combine_reviews_and_comments
from url_builder import build_pull_request_path, build_repo_url

EVENT_GLYPHS = {
    "APPROVED": "✔",
    "CHANGES_REQUESTED": "✖",
    "COMMENTED": "💬",
    "DISMISSED": "-",
}

UNREVIEWED_MARKER = "●"

# (upper bound in seconds, unit length in seconds, unit name)
_DISTANCE_UNITS = [
    (60, 1, "second"),
    (60 * 60, 60, "minute"),
    (24 * 60 * 60, 60 * 60, "hour"),
    (30 * 24 * 60 * 60, 24 * 60 * 60, "day"),
    (365 * 24 * 60 * 60, 30 * 24 * 60 * 60, "month"),
]
_YEAR_SECONDS = 365 * 24 * 60 * 60


def format_distance_to_now(dt: datetime, now: datetime | None = None) -> str:
    """
    Describe how long ago `dt` was, e.g. '3 minutes ago' or '1 day ago'.

    The largest unit whose range contains the distance is used and the value
    is rounded half up. Future timestamps read as '0 seconds ago'.
    """
    seconds = max(((now or datetime.now(UTC)) - dt).total_seconds(), 0.0)

    for upper, unit_seconds, unit in _DISTANCE_UNITS:
        if seconds < upper:
            value = int(seconds / unit_seconds + 0.5)
            break
    else:
        value, unit = int(seconds / _YEAR_SECONDS + 0.5), "year"

    plural = "" if value == 1 else "s"
    return f"{value} {unit}{plural} ago"


def render_event(event: CompressedEvent) -> str:
    return f"{event.label}{EVENT_GLYPHS[event.state]}"


def render_pull_request(
    pr: PullRequest,
    now: datetime,
    show_branch: bool = True,
    holidays_country: str = "US",
) -> str:
    """
    Render one open pull request as a header line and a timeline line.

    Header: age bucket, relative age, business days open, unreviewed marker,
    CI glyph, base branch (when shown), author, link text and title.
    """
    check = commit_check(pr.head_oid, pr.commits)
    days = business_days_open(pr.created_at, holidays_country, now=now)
    marker = UNREVIEWED_MARKER if is_unreviewed(pr) else " "

    parts = [
        f"[{age_bucket(pr.created_at, now)}]",
        format_distance_to_now(pr.created_at, now),
        f"({days:.1f} business days)",
        marker,
        check.icon,
    ]
    if show_branch and pr.base_branch:
        parts.append(pr.base_branch)
    parts.extend([pr.author, build_pull_request_path(pr.repo_name, pr.number), pr.title])

    events = combine_reviews_and_comments(pr.reviews, pr.comments)
    timeline = " ".join(render_event(event) for event in events)
    return f"{' '.join(parts)}\n    {timeline}".rstrip()


def render_recent_pull_request(pr: PullRequest, now: datetime) -> str:
    """Render one merged pull request: merge age, author, link text and title."""
    merged_at = pr.committed_date or pr.created_at
    return " ".join(
        [
            format_distance_to_now(merged_at, now),
            pr.author,
            build_pull_request_path(pr.repo_name, pr.number),
            pr.title,
        ]
    )


def render_board(
    state: RadiatorState,
    owner: str,
    now: datetime | None = None,
    holidays_country: str = "US",
    team: str | None = None,
) -> str:
    """
    Render the whole board for the current state.

    Until the repository list is resolved only a loading line naming the
    team (or the owner when no team is given) is shown.

    Shows the recent-merges view when `show_recent` is set, otherwise the
    filtered open pull requests. A failed last cycle adds a notice line; the
    data shown is then from the last successful cycle.
    """
    now = now or datetime.now(UTC)
    lines: list[str] = []

    if not state.repos:
        lines.append(f"Fetching {team or owner} team repositories...")
    elif state.show_recent:
        lines.append(f"PR Radiator: {owner} (recently merged)")
        if state.recent_pull_requests:
            lines.extend(render_recent_pull_request(pr, now) for pr in state.recent_pull_requests)
        else:
            lines.append("No recently merged PRs found")
    else:
        visible = visible_pull_requests(state)
        lines.append(f"({len(visible)}) PR Radiator: {owner}")
        if visible:
            lines.extend(
                render_pull_request(
                    pr,
                    now,
                    show_branch=state.show_protected_base,
                    holidays_country=holidays_country,
                )
                for pr in visible
            )
        else:
            lines.append("No PRs found")

    if state.last_error:
        lines.append(f"! Last refresh failed, showing previous data: {state.last_error}")

    return "\n".join(lines)


def render_repo_links(state: RadiatorState, owner: str, team: str | None = None) -> str:
    """List the team's repositories with their GitHub URLs; ignored ones are marked."""
    lines = [f"{team or owner} repositories ({len(state.repos)})"]
    for repo in state.repos:
        suffix = " (ignored)" if repo in state.ignore_repos else ""
        lines.append(f"  {repo}: {build_repo_url(owner, repo)}{suffix}")
    return "\n".join(lines)
