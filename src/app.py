"""Main application entry point for the PR Radiator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import UTC, datetime, timedelta

from config import clear_repo_cache, load_config, load_repo_cache, save_repo_cache
from exceptions import AliasCollisionError, TransportError, UpstreamError
from github_client import GitHubClient
from models import APICallMetrics, Config
from rate_limit import check_rate_limit, should_proceed
from render import render_board, render_repo_links
from state import (
    FetchFailed,
    OpenPullRequestsFetched,
    RadiatorState,
    RecentMergesFetched,
    ReposResolved,
    ResetRepos,
    ToggleRecent,
    active_repos,
    reduce,
)

logger = logging.getLogger(__name__)

CYCLE_ERRORS = (TransportError, UpstreamError, AliasCollisionError)


def setup_logging(log_level: str) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Show a team's open GitHub pull requests on a polling console board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single fetch cycle, print the board and exit",
    )
    parser.add_argument(
        "--recent",
        action="store_true",
        help="Show recently merged PRs instead of open PRs",
    )
    parser.add_argument(
        "--reset-repos",
        action="store_true",
        help="Forget the cached team repository list and resolve it again",
    )
    parser.add_argument(
        "--repos",
        action="store_true",
        help="Print the team's repositories with their GitHub URLs and exit",
    )
    return parser


async def load_team_repos(
    client: GitHubClient, config: Config, state: RadiatorState
) -> RadiatorState:
    """
    Fill the repository list from the cache file, resolving it when empty.

    A freshly resolved list is re-verified through the REST teams endpoint
    and written back to the cache.
    """
    cached = load_repo_cache(config.repos_cache_file)
    if cached:
        logger.info(f"Using {len(cached)} cached repositories from {config.repos_cache_file}")
        return reduce(state, ReposResolved(tuple(cached)))

    logger.info(f"Fetching {config.github_team} team repositories...")
    candidates = await client.resolve_team_repositories(config.github_org, config.github_team)
    repos = await client.verify_admin_repos(config.github_org, config.github_team, candidates)

    if not repos:
        logger.warning(
            f"No admin repositories found for team {config.github_org}/{config.github_team}"
        )
    else:
        save_repo_cache(config.repos_cache_file, repos)

    return reduce(state, ReposResolved(tuple(repos)))


async def refresh_team_repos(
    client: GitHubClient, config: Config, state: RadiatorState
) -> RadiatorState:
    """
    Load the repository list, recording a failed resolution as the last error.

    The poll loop calls this on every pass while the list is empty, so a
    transient failure or an empty team is retried on the next pass.
    """
    try:
        return await load_team_repos(client, config, state)
    except CYCLE_ERRORS as e:
        logger.error(f"Failed to fetch team repositories: {e}")
        return reduce(state, FetchFailed(str(e)))


async def preflight(config: Config) -> bool:
    """
    Check the API quota before a cycle, waiting out a short reset.

    Returns:
        False if the cycle should be skipped
    """
    status = await asyncio.to_thread(check_rate_limit, config.github_token, config.github_api_url)
    if status is None or not status.is_exhausted:
        return True

    if not should_proceed(status, config.rate_limit_wait_threshold):
        wait_hours = status.wait_seconds / 3600 if status.wait_seconds else 0
        logger.error(
            f"GitHub API rate limit exhausted. "
            f"Reset in {wait_hours:.1f} hours at "
            f"{status.reset_time.strftime('%Y-%m-%d %H:%M:%S')}. "
            f"This exceeds the configured wait threshold of "
            f"{config.rate_limit_wait_threshold}s. Skipping this cycle."
        )
        return False

    if status.wait_seconds:
        logger.info(
            f"Rate limit exhausted. Waiting {status.wait_seconds}s until reset at "
            f"{status.reset_time.strftime('%Y-%m-%d %H:%M:%S')}"
        )
        await asyncio.sleep(status.wait_seconds)
    return True


async def run_cycle(
    client: GitHubClient,
    config: Config,
    state: RadiatorState,
    now: datetime | None = None,
) -> RadiatorState:
    """
    Fetch open PRs (and recent merges when shown) and fold them into the state.

    A failed fetch is logged and recorded as the state's last error; the
    previously fetched data is kept.
    """
    repos = active_repos(state)
    now = now or datetime.now(UTC)

    try:
        pull_requests = await client.fetch_open_pull_requests(config.github_org, repos)
        state = reduce(state, OpenPullRequestsFetched(tuple(pull_requests)))

        if state.show_recent:
            since = now - timedelta(days=config.recent_window_days)
            recent = await client.fetch_recent_merges(config.github_org, repos, since)
            state = reduce(state, RecentMergesFetched(tuple(recent)))
    except CYCLE_ERRORS as e:
        logger.error(f"Fetch cycle failed: {e}")
        state = reduce(state, FetchFailed(str(e)))

    return state


def log_metrics(metrics: APICallMetrics) -> None:
    logger.info("API Metrics:")
    logger.info(f"  GraphQL calls: {metrics.graphql_calls}")
    logger.info(f"  REST calls: {metrics.rest_calls}")
    logger.info(f"  Repository pages: {metrics.pages_fetched}")
    logger.info(f"  Failed calls: {metrics.failed_calls}")
    logger.info(f"  Success rate: {metrics.success_rate:.1f}%")


async def run(args: argparse.Namespace, config: Config) -> int:
    """Poll until interrupted (or once), resolving repositories while none are known."""
    state = RadiatorState(ignore_repos=frozenset(config.ignore_repos))

    if args.reset_repos:
        clear_repo_cache(config.repos_cache_file)
        state = reduce(state, ResetRepos())

    async with GitHubClient(
        token=config.github_token,
        api_url=config.github_api_url,
        timeout=config.request_timeout,
    ) as client:
        if args.repos:
            state = await refresh_team_repos(client, config, state)
            if state.last_error:
                return 1
            print(render_repo_links(state, config.github_org, config.github_team))
            return 0

        if args.recent:
            state = reduce(state, ToggleRecent())

        while True:
            if await preflight(config):
                if not state.repos:
                    state = await refresh_team_repos(client, config, state)
                if state.repos:
                    state = await run_cycle(client, config, state)
                print(
                    render_board(
                        state,
                        config.github_org,
                        holidays_country=config.holidays_country,
                        team=config.github_team,
                    )
                )
                log_metrics(client.metrics)

            if args.once:
                return 0 if state.last_error is None else 1

            logger.debug(f"Next poll in {config.poll_interval}s")
            await asyncio.sleep(config.poll_interval)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the PR Radiator.

    Returns:
        Exit code (0 for success, 1 for error, 130 when interrupted)
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        setup_logging(config.log_level)

        logger.info("Starting PR Radiator")
        logger.debug(
            f"Configuration: org={config.github_org}, team={config.github_team}, "
            f"poll_interval={config.poll_interval}s, log_level={config.log_level}"
        )

        return asyncio.run(run(args, config))

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
