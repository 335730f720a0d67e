from typing import Any

import structlog
from icalendar import Calendar

from bookastay.config import DEBUG
from bookastay.metrics import sync_runs
from bookastay.network.client import fetch_feed

logger = structlog.get_logger(__name__)


def poll_calendar(feed: dict[str, str]) -> list[Any]:
    """
    Fetch an iCal feed and return its VEVENT components.

    Args:
        feed (dict): Feed config with ``url``, ``room_type`` and ``name``

    Returns:
        list: ``icalendar`` VEVENT components

    Raises:
        requests.RequestException: Feed unreachable after retries
        ValueError: Feed body is not a valid calendar
    """
    name = feed.get("name") or feed.get("room_type", "unknown")
    try:
        body = fetch_feed(feed["url"])
        calendar = Calendar.from_ical(body)
        events = list(calendar.walk("VEVENT"))

        if DEBUG and events:
            sample = events[0].to_ical().decode()
            logger.debug("sample_calendar_event", feed=name, sample=sample)

        logger.info("calendar_fetched", feed=name, events=len(events))
        return events
    except Exception:
        sync_runs.labels(feed=name, status="failure").inc()
        raise
