from unittest.mock import MagicMock, patch

import pytest
import requests

from bookastay.pollers.calendars import poll_calendar

FEED = {"url": "https://www.airbnb.com/calendar/ical/1.ics", "room_type": "room1", "name": "airbnb-room1"}

ICS = "\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Airbnb Inc//Hosting Calendar 0.8.8//EN",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20300601",
        "DTEND;VALUE=DATE:20300604",
        "UID:abc@airbnb.com",
        "SUMMARY:Reserved",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "DTSTART;VALUE=DATE:20300610",
        "DTEND;VALUE=DATE:20300612",
        "UID:def@airbnb.com",
        "SUMMARY:Airbnb (Not available)",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
)


@patch("bookastay.pollers.calendars.fetch_feed")
def test_poll_calendar_returns_vevents(mock_fetch: MagicMock) -> None:
    """
    Ensure poll_calendar fetches the feed URL and returns every VEVENT.
    """
    mock_fetch.return_value = ICS

    events = poll_calendar(FEED)

    mock_fetch.assert_called_once_with(FEED["url"])
    assert [str(event["UID"]) for event in events] == ["abc@airbnb.com", "def@airbnb.com"]


@patch("bookastay.pollers.calendars.fetch_feed")
@patch("bookastay.pollers.calendars.logger")
@patch("bookastay.pollers.calendars.DEBUG", True)
def test_poll_calendar_logs_sample(mock_logger: MagicMock, mock_fetch: MagicMock) -> None:
    """
    If DEBUG is True, the first event should be logged.
    """
    mock_fetch.return_value = ICS

    poll_calendar(FEED)

    assert mock_logger.debug.call_args.args[0] == "sample_calendar_event"
    assert "abc@airbnb.com" in mock_logger.debug.call_args.kwargs["sample"]


@patch("bookastay.pollers.calendars.fetch_feed")
def test_poll_calendar_propagates_fetch_errors(mock_fetch: MagicMock) -> None:
    mock_fetch.side_effect = requests.ConnectionError("refused")

    with pytest.raises(requests.ConnectionError):
        poll_calendar(FEED)


@patch("bookastay.pollers.calendars.fetch_feed")
def test_poll_calendar_rejects_non_calendar_body(mock_fetch: MagicMock) -> None:
    mock_fetch.return_value = "<html>Not found</html>"

    with pytest.raises(ValueError):
        poll_calendar(FEED)
