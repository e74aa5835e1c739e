"""Business-day staleness for open pull requests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import holidays


def _count_business_days(start: datetime, end: datetime, country: str) -> float:
    """
    Count business days between two datetimes, excluding weekends and holidays.

    Business days are Monday-Friday, excluding holidays defined by the country's
    holiday calendar. Fractional days are calculated proportionally.

    Args:
        start: Start datetime (timezone-aware)
        end: End datetime (timezone-aware)
        country: Country code for holiday calendar (e.g., 'US', 'KR')

    Returns:
        Number of business days as a float (e.g., 1.5 for 1 day + 12 hours)

    Examples:
        - Monday 9am to Tuesday 9am = 1.0 business days
        - Friday 5pm to Monday 9am = 0.67 business days (weekend skipped)
        - Monday 9am to Monday 9pm = 0.5 business days (12 hours / 24 hours)
        - Wednesday (holiday) 9am to Thursday 9am = 0.375 business days
    """
    if end <= start:
        return 0.0

    country_holidays = holidays.country_holidays(country)

    def is_business_day(day) -> bool:
        return day.weekday() < 5 and day not in country_holidays

    current_date = start.date()
    end_date = end.date()

    if current_date == end_date:
        if not is_business_day(current_date):
            return 0.0
        return (end - start).total_seconds() / 86400

    business_days = 0.0

    # Partial first day
    start_of_next_day = datetime.combine(
        current_date + timedelta(days=1), datetime.min.time(), tzinfo=start.tzinfo
    )
    if is_business_day(current_date):
        business_days += (start_of_next_day - start).total_seconds() / 86400
    current_date += timedelta(days=1)

    # Full days in between
    while current_date < end_date:
        if is_business_day(current_date):
            business_days += 1.0
        current_date += timedelta(days=1)

    # Partial last day
    if is_business_day(end_date):
        start_of_end_day = datetime.combine(end_date, datetime.min.time(), tzinfo=end.tzinfo)
        business_days += (end - start_of_end_day).total_seconds() / 86400

    return business_days


def business_days_open(created_at: datetime, country: str, now: datetime | None = None) -> float:
    """
    Calculate how many business days a pull request has been open.

    Weekends and the country's public holidays do not count, so a PR opened on
    Friday evening is not three days stale on Monday morning.

    Args:
        created_at: PR creation timestamp (timezone-aware)
        country: Country code for holiday calendar (e.g., 'US', 'KR')
        now: Reference time; defaults to the current UTC time

    Returns:
        Fractional business days since creation (0.0 for future timestamps)
    """
    return _count_business_days(created_at, now or datetime.now(UTC), country)
