"""Derived display values for pull requests: age bucket, CI state, review flags."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from models import AgeBucket, CommitCheck, CommitNode, PullRequest

# Evaluated in ascending order; first match wins
AGE_THRESHOLDS: list[tuple[timedelta, AgeBucket]] = [
    (timedelta(hours=1), "last-hour"),
    (timedelta(hours=2), "last-two-hours"),
    (timedelta(days=1), "last-day"),
    (timedelta(weeks=1), "last-week"),
]

CHECK_DISPLAY: dict[str, CommitCheck] = {
    "SUCCESS": CommitCheck(icon="✔", css_class="success"),
    "PENDING": CommitCheck(icon="⧗", css_class="pending"),
    "EXPECTED": CommitCheck(icon="⧗", css_class="expected"),
    "FAILURE": CommitCheck(icon="✖", css_class="failure"),
    "ERROR": CommitCheck(icon="⚠", css_class="error"),
}

MISSING_CHECK = CommitCheck(icon="-", css_class="missing")


def age_bucket(created_at: datetime, now: datetime | None = None) -> AgeBucket:
    """
    Bucket a pull request by time since creation.

    Uses creation time, not last activity: a month-old PR that was just
    updated is still 'over-week-old'.

    Args:
        created_at: PR creation timestamp (timezone-aware)
        now: Reference time; defaults to the current UTC time

    Returns:
        One of last-hour, last-two-hours, last-day, last-week, over-week-old
    """
    age = (now or datetime.now(UTC)) - created_at
    for threshold, bucket in AGE_THRESHOLDS:
        if age < threshold:
            return bucket
    return "over-week-old"


def commit_check(head_oid: str, commits: list[CommitNode]) -> CommitCheck:
    """
    Map the head commit's CI state to a display glyph and class.

    The check-rollup state is preferred; the legacy commit status is used when
    no rollup exists. A missing head commit, missing state or unknown state all
    map to the neutral 'missing' display.
    """
    node = next((commit for commit in commits if commit.oid == head_oid), None)
    if node is None:
        return MISSING_CHECK

    state = node.rollup_state or node.status_state
    if not state:
        return MISSING_CHECK
    return CHECK_DISPLAY.get(state.upper(), MISSING_CHECK)


def is_unreviewed(pr: PullRequest) -> bool:
    """A PR nobody has reviewed yet; comments do not count as reviews."""
    return not pr.reviews


def needs_review(pr: PullRequest) -> bool:
    """Whether GitHub still requires review action on the PR."""
    return pr.review_decision in ("REVIEW_REQUIRED", None)
