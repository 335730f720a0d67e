"""UTC datetime and calendar-date utilities."""

from __future__ import annotations

from datetime import date, datetime, timezone
from math import ceil
from typing import Optional, Union

from dateutil import parser as date_parser


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utc_now().date()


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """
    Parse a calendar date from an ISO string or a date/datetime object.

    Datetime strings are accepted and truncated to their date part as written,
    with no timezone conversion: "2025-06-01T23:00:00+01:00" is 2025-06-01.

    Args:
        value: ISO-8601 string, date or datetime

    Returns:
        Optional[date]: The parsed date, or None if the value is empty or unparseable

    Example:
        >>> parse_date("2025-06-01")
        datetime.date(2025, 6, 1)
        >>> parse_date("not a date") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date_parser.isoparse(text).date()
    except (ValueError, OverflowError):
        return None


def count_nights(check_in: date, check_out: date) -> int:
    """Whole nights between two dates, rounded up, order-insensitive."""
    seconds = abs((check_out - check_in).total_seconds())
    return ceil(seconds / 86400)
