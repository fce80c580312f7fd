"""
Date helpers.

Dates travel as ISO strings (YYYY-MM-DD) so they sort and compare
lexicographically.  Weekdays follow the Sunday-first convention
(0=Sunday .. 6=Saturday) used for plan mappings and storage; Python's own
``datetime.weekday()`` is Monday-first and is converted here only.
"""

import re
from datetime import datetime, timedelta

from .config import DATE_FORMAT, DAYS_PER_WEEK

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_iso_date(date_str: str) -> str:
    """
    Validate date string is ISO format YYYY-MM-DD.

    Raises:
        ValueError: If the string is malformed or not a real date
    """
    if not isinstance(date_str, str) or not _ISO_DATE_RE.match(date_str):
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, DATE_FORMAT)
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}") from e
    return date_str


def parse_date(date_str: str) -> datetime:
    return datetime.strptime(validate_iso_date(date_str), DATE_FORMAT)


def format_date(dt: datetime) -> str:
    return dt.strftime(DATE_FORMAT)


def add_days(date_str: str, days: int) -> str:
    """Return the ISO date ``days`` after ``date_str`` (negative goes back)."""
    return format_date(parse_date(date_str) + timedelta(days=days))


def days_between(start: str, end: str) -> int:
    """Signed number of days from ``start`` to ``end``."""
    return (parse_date(end) - parse_date(start)).days


def sunday_weekday(date_str: str) -> int:
    """Weekday of an ISO date with 0=Sunday .. 6=Saturday."""
    return (parse_date(date_str).weekday() + 1) % DAYS_PER_WEEK


def display_weekday_order(week_starts_on: str = "monday") -> list[int]:
    """
    Sunday-first weekday numbers in the order a UI should list them.

    Re-ordering is a display concern; storage always keeps 0=Sunday.
    """
    if week_starts_on == "monday":
        return [1, 2, 3, 4, 5, 6, 0]
    if week_starts_on == "sunday":
        return list(range(DAYS_PER_WEEK))
    raise ValueError(f"Invalid week_starts_on: {week_starts_on!r}. Must be 'monday' or 'sunday'")
