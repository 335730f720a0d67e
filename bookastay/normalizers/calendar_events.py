"""
Normalize iCal VEVENT components into half-open date ranges.

Date-only values (``VALUE=DATE``) are taken as written. Datetime values are
converted to UTC before their date is taken; floating (naive) datetimes are
read as UTC. DTEND is exclusive and becomes the checkout day as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional


class CalendarEventError(ValueError):
    """A VEVENT that cannot be turned into a booking range."""


@dataclass(frozen=True)
class ExternalEvent:
    uid: str
    check_in: date
    check_out: date
    summary: Optional[str] = None


def to_calendar_date(value: Any) -> Optional[date]:
    """
    Convert an iCal DTSTART/DTEND value to a calendar date.

    Example:
        >>> to_calendar_date(date(2025, 6, 1))
        datetime.date(2025, 6, 1)
        >>> to_calendar_date(datetime(2025, 6, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5))))
        datetime.date(2025, 6, 2)
    """
    if value is None:
        return None
    value = getattr(value, "dt", value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return None


def normalize_event(component: Any) -> ExternalEvent:
    """
    Build an ExternalEvent from an ``icalendar`` VEVENT.

    A missing DTEND falls back to DTSTART + DURATION, then to a single night.

    Raises:
        CalendarEventError: No UID, no DTSTART, or an end that is not after the start
    """
    uid = str(component.get("UID") or "").strip()
    if not uid:
        raise CalendarEventError("event has no UID")

    start = component.get("DTSTART")
    check_in = to_calendar_date(start)
    if check_in is None:
        raise CalendarEventError(f"event {uid} has no DTSTART")

    check_out = to_calendar_date(component.get("DTEND"))
    if check_out is None:
        duration = component.get("DURATION")
        if duration is not None:
            check_out = to_calendar_date(getattr(start, "dt", start) + getattr(duration, "dt", duration))
        else:
            check_out = check_in + timedelta(days=1)

    if check_out is None or check_out <= check_in:
        raise CalendarEventError(f"event {uid} ends on or before its start")

    summary = component.get("SUMMARY")
    return ExternalEvent(
        uid=uid,
        check_in=check_in,
        check_out=check_out,
        summary=str(summary) if summary is not None else None,
    )
