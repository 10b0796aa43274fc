# backend/navreport/utils/date_utils.py
"""
Date utility functions for the NAV reporting engine.

This module provides shared date handling used by the record normalizer
and the report service:
- Parsing raw date values (date, datetime, ISO strings) to calendar dates
- Resolving named reporting periods ("this_week", "last_month", ...) to
  inclusive [start, end] date ranges

Every "what day is it" decision is made in the reporting time zone
(settings.reporting_timezone), never the server's local zone, so a report
requested just after midnight in Mumbai covers the Mumbai calendar day.

Usage:
    from navreport.utils.date_utils import resolve_named_period

    start, end = resolve_named_period("this_month", today=date(2024, 3, 15))
    # (date(2024, 3, 1), date(2024, 3, 31))
"""

import calendar
from datetime import date, datetime, timedelta, tzinfo
from typing import Any

from navreport.services.constants import NAMED_PERIODS
from navreport.services.exceptions import InvalidPeriodError


def today_in(zone: tzinfo) -> date:
    """Current calendar date in the given time zone."""
    return datetime.now(zone).date()


def parse_date(value: Any, zone: tzinfo | None = None) -> date:
    """
    Convert a raw date value to a calendar date.

    Accepts:
        - date objects (returned as-is)
        - datetime objects (converted to `zone` when aware, then truncated)
        - ISO strings: "2024-03-15", "2024-03-15T18:30:00Z",
          "2024-03-15 18:30:00+05:30"

    Raises:
        ValueError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return _datetime_to_date(value, zone)
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date type {type(value).__name__}: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("Empty date string")

    if len(text) == 10:
        return date.fromisoformat(text)
    return _datetime_to_date(datetime.fromisoformat(text), zone)


def _datetime_to_date(value: datetime, zone: tzinfo | None) -> date:
    if zone is not None and value.tzinfo is not None:
        value = value.astimezone(zone)
    return value.date()


def start_of_week(d: date) -> date:
    """Monday of the ISO week containing d."""
    return d - timedelta(days=d.weekday())


def end_of_month(d: date) -> date:
    """Last calendar day of d's month."""
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def resolve_named_period(period: str, today: date) -> tuple[date, date]:
    """
    Resolve a named reporting period to an inclusive date range.

    Weeks start on Monday. Ranges cover the whole calendar unit, so
    "this_month" on the 15th still ends on the last day of the month;
    records simply do not exist past today.

    Args:
        period: One of constants.NAMED_PERIODS
        today: Current date in the reporting time zone

    Returns:
        (start_date, end_date), both inclusive

    Raises:
        InvalidPeriodError: If period is not a known name
    """
    if period == "today":
        return today, today
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if period == "this_week":
        monday = start_of_week(today)
        return monday, monday + timedelta(days=6)
    if period == "last_week":
        monday = start_of_week(today) - timedelta(days=7)
        return monday, monday + timedelta(days=6)
    if period == "this_month":
        return today.replace(day=1), end_of_month(today)
    if period == "last_month":
        last_day_prev = today.replace(day=1) - timedelta(days=1)
        return last_day_prev.replace(day=1), last_day_prev
    if period == "this_year":
        return date(today.year, 1, 1), date(today.year, 12, 31)

    raise InvalidPeriodError(period, NAMED_PERIODS)
