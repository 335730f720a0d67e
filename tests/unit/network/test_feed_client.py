from unittest.mock import Mock, patch

import pytest
import requests

from bookastay.network.client import MAX_RETRIES, fetch_feed, should_retry

FEED_URL = "https://www.airbnb.com/calendar/ical/1.ics"


def _response(status_code: int, text: str = "") -> Mock:
    res = Mock(status_code=status_code, text=text)
    if status_code >= 400:
        res.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error", response=res)
    return res


@patch("bookastay.network.client.requests.get")
def test_fetch_feed_returns_body(mock_get: Mock) -> None:
    """
    Test that fetch_feed returns the feed text for a successful 200 response.

    Args:
        mock_get (Mock): Mocked requests.get call.
    """
    mock_get.return_value = _response(200, "BEGIN:VCALENDAR\nEND:VCALENDAR")

    body = fetch_feed(FEED_URL)

    assert body.startswith("BEGIN:VCALENDAR")
    assert mock_get.call_args.kwargs["headers"]["User-Agent"].startswith("bookastay")


@patch("bookastay.network.client.time.sleep")
@patch("bookastay.network.client.requests.get")
def test_fetch_feed_retries_server_errors(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.side_effect = [_response(503), _response(200, "BEGIN:VCALENDAR")]

    assert fetch_feed(FEED_URL) == "BEGIN:VCALENDAR"
    assert mock_get.call_count == 2
    mock_sleep.assert_called_once()


@patch("bookastay.network.client.time.sleep")
@patch("bookastay.network.client.requests.get")
def test_fetch_feed_gives_up_after_max_retries(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.side_effect = requests.Timeout("read timed out")

    with pytest.raises(requests.Timeout):
        fetch_feed(FEED_URL)

    assert mock_get.call_count == MAX_RETRIES + 1


@patch("bookastay.network.client.time.sleep")
@patch("bookastay.network.client.requests.get")
def test_fetch_feed_does_not_retry_not_found(mock_get: Mock, mock_sleep: Mock) -> None:
    mock_get.return_value = _response(404)

    with pytest.raises(requests.HTTPError):
        fetch_feed(FEED_URL)

    assert mock_get.call_count == 1
    mock_sleep.assert_not_called()


@pytest.mark.parametrize(
    "status_code, err, expected",
    [
        (429, None, True),
        (500, None, True),
        (502, None, True),
        (404, None, False),
        (None, requests.ConnectionError(), True),
        (None, requests.Timeout(), True),
        (None, ValueError(), False),
    ],
)
def test_should_retry(status_code: int, err: Exception, expected: bool) -> None:
    res = Mock(status_code=status_code) if status_code else None
    assert should_retry(res, err) is expected
