"""
Internal helper functions for booking route handlers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import UploadFile

from bookastay.exceptions import BookingValidationError, InvalidDateRangeError
from bookastay.services.availability import OverlapResult
from bookastay.services.bookings import UploadedDocument
from bookastay.utils.datetime import count_nights, parse_date


def document_from_upload(upload: Optional[UploadFile]) -> Optional[UploadedDocument]:
    """
    Read an uploaded identity document into memory.

    Args:
        upload: Multipart file field, or None when the client sent none

    Returns:
        Optional[UploadedDocument]: None when no file (or an empty filename) was sent
    """
    if upload is None or not upload.filename:
        return None
    content = upload.file.read()
    return UploadedDocument(
        content=content,
        filename=upload.filename,
        content_type=upload.content_type,
    )


def raise_if_invalid(result: OverlapResult) -> None:
    """
    Turn an invalid overlap query into a 400.

    Raises:
        BookingValidationError: When the resolver flagged the request as invalid
    """
    if result.invalid:
        raise BookingValidationError(result.reason or "Invalid availability request")


def nights_between(check_in: Optional[str], check_out: Optional[str]) -> int:
    """
    Nights between two ISO dates from a query string.

    Raises:
        InvalidDateRangeError: Unparseable dates or checkout not after check-in
    """
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None or end <= start:
        raise InvalidDateRangeError()
    return count_nights(start, end)
