"""Configuration loading and validation."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import holidays
from dotenv import load_dotenv

from models import Config

logger = logging.getLogger(__name__)

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

MIN_POLL_INTERVAL = 5


def _required(name: str, hint: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ValueError(f"{name} is required. {hint}")
    return value


def _int_setting(name: str, default: str, minimum: int, maximum: int | None = None) -> int:
    """Read an integer variable and check it lies within [minimum, maximum]."""
    raw = os.getenv(name, default)
    if maximum is None:
        expectation = f"Must be an integer of at least {minimum}."
    else:
        expectation = f"Must be between {minimum} and {maximum}."

    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name} '{raw}'. {expectation}") from e

    if value < minimum or (maximum is not None and value > maximum):
        raise ValueError(f"Invalid {name} '{raw}'. {expectation}")
    return value


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Loads from .env file if present, then reads required environment variables.

    Returns:
        Config object with validated configuration values

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    # Load .env file if it exists
    load_dotenv()

    # Required variables
    github_token = _required(
        "GH_TOKEN",
        "Create a GitHub Personal Access Token with 'repo' and 'read:org' scopes "
        "and set it in your .env file.",
    )
    github_org = _required(
        "GITHUB_ORG", "Set the name of your GitHub organization in your .env file."
    )
    github_team = _required(
        "GITHUB_TEAM", "Set the slug of the team whose repositories to watch in your .env file."
    )

    # Optional variables with defaults
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        msg = (
            f"Invalid LOG_LEVEL '{log_level}'. "
            "Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
        raise ValueError(msg)

    poll_interval = _int_setting("POLL_INTERVAL", "300", MIN_POLL_INTERVAL)
    recent_window_days = _int_setting("RECENT_WINDOW_DAYS", "14", 1)
    rate_limit_wait_threshold = _int_setting("RATE_LIMIT_WAIT_THRESHOLD", "300", 60, 600)

    ignore_repos = [
        repo.strip() for repo in os.getenv("IGNORE_REPOS", "").split(",") if repo.strip()
    ]

    repos_cache_file = os.getenv("REPOS_CACHE_FILE", ".pr_radiator_repos.json")

    # Holidays country configuration for business day calculation
    # See https://pypi.org/project/holidays/ for full list of supported countries
    holidays_country = os.getenv("HOLIDAYS_COUNTRY", "US").upper()
    try:
        holidays.country_holidays(holidays_country)
    except NotImplementedError as e:
        msg = (
            f"Invalid HOLIDAYS_COUNTRY '{holidays_country}'. "
            "Must be a valid country code supported by the holidays library. "
            "Common codes: US, GB, CA, AU, FR, DE, JP, KR, CN, IN, BR, MX."
        )
        raise ValueError(msg) from e

    github_api_url = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
    if not github_api_url.startswith(("https://", "http://")):
        raise ValueError(
            f"Invalid GITHUB_API_URL '{github_api_url}'. Must start with https:// or http://."
        )

    request_timeout_str = os.getenv("REQUEST_TIMEOUT", "30")
    try:
        request_timeout = float(request_timeout_str)
    except ValueError as e:
        raise ValueError(
            f"Invalid REQUEST_TIMEOUT '{request_timeout_str}'. Must be a positive number of seconds."
        ) from e
    if request_timeout <= 0:
        raise ValueError(
            f"Invalid REQUEST_TIMEOUT '{request_timeout_str}'. Must be a positive number of seconds."
        )

    return Config(
        github_token=github_token,
        github_org=github_org,
        github_team=github_team,
        log_level=log_level,
        poll_interval=poll_interval,
        recent_window_days=recent_window_days,
        ignore_repos=ignore_repos,
        repos_cache_file=repos_cache_file,
        rate_limit_wait_threshold=rate_limit_wait_threshold,
        holidays_country=holidays_country,
        github_api_url=github_api_url,
        request_timeout=request_timeout,
    )


def load_repo_cache(file_path: str) -> list[str]:
    """
    Load the cached team repository list.

    Args:
        file_path: Path to the JSON cache file

    Returns:
        Repository names, or an empty list if the file does not exist

    Raises:
        ValueError: If the file is not valid JSON or not an array of strings
    """
    path = Path(file_path)
    if not path.exists():
        return []

    try:
        with path.open("r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in {file_path}: {e}. Delete it or run with --reset-repos."
        raise ValueError(msg) from e

    if not isinstance(data, list) or not all(isinstance(repo, str) for repo in data):
        msg = f"Repository cache {file_path} must contain a JSON array of repository names"
        raise ValueError(msg)

    logger.debug(f"Loaded {len(data)} repositories from {file_path}")
    return data


def save_repo_cache(file_path: str, repos: list[str]) -> None:
    """Write the team repository list to the JSON cache file."""
    path = Path(file_path)
    with path.open("w") as f:
        json.dump(list(repos), f, indent=2)
    logger.debug(f"Saved {len(repos)} repositories to {file_path}")


def clear_repo_cache(file_path: str) -> None:
    """Delete the repository cache file; a missing file is not an error."""
    Path(file_path).unlink(missing_ok=True)
    logger.info(f"Cleared repository cache {file_path}")
