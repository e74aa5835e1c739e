"""Unit tests for plain-text board rendering."""

from __future__ import annotations

import dataclasses
from datetime import timedelta

import pytest

from render import (
    format_distance_to_now,
    render_board,
    render_pull_request,
    render_recent_pull_request,
    render_repo_links,
)
from state import RadiatorState


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (timedelta(seconds=30), "30 seconds ago"),
        (timedelta(minutes=1), "1 minute ago"),
        (timedelta(minutes=3), "3 minutes ago"),
        (timedelta(hours=2), "2 hours ago"),
        (timedelta(days=5), "5 days ago"),
        (timedelta(days=45), "2 months ago"),
        (timedelta(days=400), "1 year ago"),
    ],
)
def test_format_distance_to_now(now, delta, expected):
    assert format_distance_to_now(now - delta, now) == expected


def test_format_distance_future_is_zero(now):
    assert format_distance_to_now(now + timedelta(minutes=5), now) == "0 seconds ago"


class TestRenderPullRequest:
    """Tests for render_pull_request function."""

    def test_header_and_timeline(self, sample_pr, now):
        header, timeline = render_pull_request(sample_pr, now).split("\n")

        assert header.startswith("[last-week] 1 day ago (1.1 business days)")
        assert "✔ main alice pr-radiator/pull/123 Add staleness calculation" in header
        assert "●" not in header
        assert timeline.strip() == "carol💬 bob✔"

    def test_unreviewed_marker(self, sample_pr, now):
        pr = dataclasses.replace(sample_pr, reviews=[])

        assert "●" in render_pull_request(pr, now).split("\n")[0]

    def test_branch_hidden(self, sample_pr, now):
        header = render_pull_request(sample_pr, now, show_branch=False).split("\n")[0]

        assert " main " not in header
        assert "✔ alice" in header

    def test_no_events_has_no_timeline_line(self, sample_pr, now):
        pr = dataclasses.replace(sample_pr, reviews=[], comments=[])

        assert "\n" not in render_pull_request(pr, now)


def test_render_recent_pull_request(sample_pr, now):
    """Test recent PRs show the merge time, not the creation time."""
    pr = dataclasses.replace(sample_pr, committed_date=now - timedelta(hours=3))

    assert render_recent_pull_request(pr, now) == (
        "3 hours ago alice pr-radiator/pull/123 Add staleness calculation"
    )


class TestRenderBoard:
    """Tests for render_board function."""

    def test_waiting_for_repositories(self, now):
        assert render_board(RadiatorState(), "test-org", now) == "Fetching test-org team repositories..."

    def test_waiting_names_the_team(self, now):
        assert (
            render_board(RadiatorState(), "test-org", now, team="platform")
            == "Fetching platform team repositories..."
        )

    def test_open_prs_with_count(self, sample_pr, now):
        state = RadiatorState(repos=("pr-radiator",), pull_requests=(sample_pr,))

        board = render_board(state, "test-org", now)

        assert board.splitlines()[0] == "(1) PR Radiator: test-org"
        assert "pr-radiator/pull/123" in board

    def test_no_prs(self, now):
        board = render_board(RadiatorState(repos=("web",)), "test-org", now)

        assert board.splitlines() == ["(0) PR Radiator: test-org", "No PRs found"]

    def test_filters_apply(self, sample_pr, now):
        """Test dependabot PRs are not rendered by default."""
        bot = dataclasses.replace(sample_pr, author="dependabot")
        state = RadiatorState(repos=("pr-radiator",), pull_requests=(bot,))

        assert "No PRs found" in render_board(state, "test-org", now)

    def test_recent_view(self, sample_pr, now):
        merged = dataclasses.replace(sample_pr, committed_date=now - timedelta(days=2))
        state = RadiatorState(
            repos=("pr-radiator",), recent_pull_requests=(merged,), show_recent=True
        )

        lines = render_board(state, "test-org", now).splitlines()

        assert lines[0] == "PR Radiator: test-org (recently merged)"
        assert lines[1].startswith("2 days ago alice")

    def test_recent_view_empty(self, now):
        state = RadiatorState(repos=("web",), show_recent=True)

        assert "No recently merged PRs found" in render_board(state, "test-org", now)

    def test_last_error_notice(self, sample_pr, now):
        state = RadiatorState(
            repos=("pr-radiator",), pull_requests=(sample_pr,), last_error="timed out"
        )

        board = render_board(state, "test-org", now)

        assert "pr-radiator/pull/123" in board
        assert board.splitlines()[-1] == "! Last refresh failed, showing previous data: timed out"


def test_render_repo_links():
    state = RadiatorState(repos=("web", "legacy"), ignore_repos=frozenset({"legacy"}))

    assert render_repo_links(state, "test-org", "platform").splitlines() == [
        "platform repositories (2)",
        "  web: https://github.com/test-org/web",
        "  legacy: https://github.com/test-org/legacy (ignored)",
    ]
