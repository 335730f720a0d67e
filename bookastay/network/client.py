"""
HTTP client for pulling external iCal feeds with retries on timeouts,
rate limiting and server errors.
"""

import time
from typing import Optional

import requests
import structlog

from bookastay.config import HTTP_TIMEOUT_SECONDS
from bookastay.metrics import api_latency, api_requests

logger = structlog.get_logger(__name__)

MAX_RETRIES = 2
RETRY_DELAY = 2.0
USER_AGENT = "bookastay-calendar-sync/1.0"


def should_retry(res: Optional[requests.Response], err: Optional[Exception]) -> bool:
    """
    Determine whether the request should be retried based on response or error.

    Args:
        res (Optional[requests.Response]): Response object if available.
        err (Optional[Exception]): Exception raised by the request, if any.

    Returns:
        bool: True if the request should be retried, False otherwise.
    """
    if res is not None and res.status_code == 429:
        return True
    if isinstance(err, (requests.Timeout, requests.ConnectionError)):
        return True
    if res is not None and 500 <= res.status_code < 600:
        return True
    return False


def fetch_feed(url: str, timeout: float = HTTP_TIMEOUT_SECONDS) -> str:
    """
    Download an iCal feed.

    Args:
        url (str): Feed URL.
        timeout (float): Per-request timeout in seconds.

    Returns:
        str: Raw feed body.

    Raises:
        requests.RequestException: If the request fails after all retries.
    """
    retries = 0

    while True:
        res: Optional[requests.Response] = None
        try:
            start_time = time.time()
            res = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
            latency = time.time() - start_time

            api_requests.labels(service="calendar_feed", status_code=str(res.status_code)).inc()
            api_latency.labels(service="calendar_feed").observe(latency)

            res.raise_for_status()
            return res.text

        except requests.RequestException as err:
            if res is None:
                api_requests.labels(service="calendar_feed", status_code="error").inc()
            retries += 1
            logger.warning("feed_fetch_failed", attempt=retries, error=str(err))
            if retries > MAX_RETRIES or not should_retry(res, err):
                raise
            time.sleep(RETRY_DELAY * retries)
