"""
Domain exceptions for booking operations.

Every error a booking operation can raise on purpose derives from
``BookingError``. Each class carries a stable ``kind`` string and the HTTP
status the API renders it with, so route handlers never need to branch on
exception types themselves.
"""

from __future__ import annotations

from typing import Any, Optional


class BookingError(Exception):
    """Base class for expected booking failures."""

    kind = "booking_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.kind, "message": self.message}


class BookingValidationError(BookingError):
    """Missing or malformed input; rejected before the store is touched."""

    kind = "validation_error"
    status_code = 400


class InvalidDateRangeError(BookingValidationError):
    def __init__(self, message: str = "Invalid date range") -> None:
        super().__init__(message)


class UnknownRoomTypeError(BookingValidationError):
    def __init__(self, room_type: str) -> None:
        super().__init__(f"Unknown room type: {room_type}")
        self.room_type = room_type


class MinimumStayError(BookingValidationError):
    def __init__(self, min_nights: int) -> None:
        super().__init__(f"Single room bookings require a minimum of {min_nights} nights.")
        self.min_nights = min_nights


class BookingNotFoundError(BookingError):
    kind = "not_found"
    status_code = 404


class BookingConflictError(BookingError):
    """
    The requested slot is held by an active booking.

    Raised for resolver conflicts and for store-level duplicate-key or
    exclusion-constraint violations (a concurrent request won the race).
    """

    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, blocking: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.blocking = blocking

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["blocking"] = self.blocking
        return data


class InvalidTransitionError(BookingError):
    kind = "invalid_transition"
    status_code = 409


class DeletionRefusedError(BookingError):
    kind = "deletion_refused"
    status_code = 409


class PaymentVerificationError(BookingError):
    """The payment gateway answered, and the payment is not valid."""

    kind = "payment_verification_failed"
    status_code = 402


class UpstreamServiceError(BookingError):
    """A gateway (payment, identity, storage) could not be reached or is not configured."""

    kind = "upstream_failure"
    status_code = 502
