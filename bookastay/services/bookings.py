"""
Booking lifecycle: pricing, pending creation, payment confirmation,
administrative blocks, cancellation and deletion.

Every transition that makes a booking active (confirm, block) re-runs the
overlap resolver inside the writing transaction; the store's exclusion
constraint backs it up, and its violations surface as ``BookingConflictError``.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

import structlog
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from bookastay.config import (
    CLEANING_FEE,
    EXTRA_GUEST_PER_NIGHT,
    INCLUDED_GUESTS,
    MIN_NIGHTS_SINGLE_ROOM,
    PRICE_ENTIRE_APARTMENT,
    PRICE_SINGLE_ROOM,
    SERVICE_FEE,
)
from bookastay.db.readers.bookings import (
    get_booking as read_booking,
    get_booking_by_transaction_ref,
    list_active_bookings,
    list_bookings as read_bookings,
)
from bookastay.db.writers.bookings import (
    delete_booking as remove_booking,
    insert_booking,
    record_booking_event,
    update_booking,
)
from bookastay.exceptions import (
    BookingConflictError,
    BookingNotFoundError,
    BookingValidationError,
    DeletionRefusedError,
    InvalidDateRangeError,
    InvalidTransitionError,
    MinimumStayError,
    PaymentVerificationError,
)
from bookastay.metrics import booking_operations
from bookastay.models.bookings import BookingSource, BookingStatus, PaymentStatus
from bookastay.models.outbox import OutboxTaskKind
from bookastay.services.availability import check_overlap
from bookastay.services.collaborators import Collaborators
from bookastay.services.outbox import enqueue_task
from bookastay.topology import RoomTopology, default_topology
from bookastay.utils.datetime import count_nights, parse_date, utc_now

logger = structlog.get_logger(__name__)

UNAVAILABLE_MESSAGE = "Selected dates are not available for this room"
STORE_CONFLICT_MESSAGE = "Booking conflicts with an existing reservation"


@dataclass
class PriceQuote:
    room_type: str
    nights: int
    guests: int
    nightly_rate: int
    base_total: int
    cleaning_fee: int
    service_fee: int
    extra_guest_fee: int
    total: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class UploadedDocument:
    content: bytes
    filename: str
    content_type: Optional[str] = None


def blocking_summary(booking: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """JSON-safe description of a conflicting booking, without guest details."""
    if not booking:
        return None
    return {
        "id": str(booking["id"]),
        "room_type": booking["room_type"],
        "check_in": booking["check_in"].isoformat(),
        "check_out": booking["check_out"].isoformat(),
        "status": booking["status"],
        "source": booking["source"],
    }


def _require_free(
    db: Union[Engine, Connection],
    room_type: str,
    check_in: date,
    check_out: date,
    topology: RoomTopology,
    operation: str,
) -> None:
    result = check_overlap(db, room_type, check_in, check_out, topology=topology)
    if result.invalid:
        booking_operations.labels(operation=operation, outcome="invalid").inc()
        raise BookingValidationError(result.reason or "Invalid booking request")
    if result.overlapping:
        booking_operations.labels(operation=operation, outcome="conflict").inc()
        logger.info(
            "booking_conflict",
            operation=operation,
            room_type=room_type,
            check_in=check_in.isoformat(),
            check_out=check_out.isoformat(),
            blocking_id=str(result.blocking["id"]) if result.blocking else None,
        )
        raise BookingConflictError(UNAVAILABLE_MESSAGE, blocking=blocking_summary(result.blocking))


def _parse_range(check_in: Union[str, date, None], check_out: Union[str, date, None]) -> tuple[date, date]:
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None or end <= start:
        raise InvalidDateRangeError()
    return start, end


def quote_price(
    room_type: str,
    nights: int,
    guests: int = 1,
    topology: RoomTopology = default_topology,
) -> PriceQuote:
    """
    Price a stay.

    ``total = nightly_rate * nights + cleaning + service + extra_guest_fee`` where
    ``extra_guest_fee = max(0, guests - INCLUDED_GUESTS) * EXTRA_GUEST_PER_NIGHT * nights``.

    Example:
        >>> quote_price("entire", 2, guests=3).total
        255000
    """
    scope = topology.normalize(room_type)
    if nights < 1:
        raise BookingValidationError("A stay must be at least one night")
    if guests < 1:
        raise BookingValidationError("At least one guest is required")

    nightly_rate = PRICE_ENTIRE_APARTMENT if scope == topology.entire else PRICE_SINGLE_ROOM
    base_total = nightly_rate * nights
    extra_guest_fee = max(0, guests - INCLUDED_GUESTS) * EXTRA_GUEST_PER_NIGHT * nights

    return PriceQuote(
        room_type=scope,
        nights=nights,
        guests=guests,
        nightly_rate=nightly_rate,
        base_total=base_total,
        cleaning_fee=CLEANING_FEE,
        service_fee=SERVICE_FEE,
        extra_guest_fee=extra_guest_fee,
        total=base_total + CLEANING_FEE + SERVICE_FEE + extra_guest_fee,
    )


def create_booking(
    engine: Engine,
    room_type: Optional[str],
    check_in: Union[str, date, None],
    check_out: Union[str, date, None],
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    guests: int = 1,
    id_type: Optional[str] = None,
    id_file_url: Optional[str] = None,
    topology: RoomTopology = default_topology,
) -> dict[str, Any]:
    """
    Create a pending (``booked``/``pending``) booking.

    Pending bookings never hold dates; they become active only through
    ``confirm_booking``.

    Args:
        engine: Booking store engine
        room_type: "entire" or a sub-room
        check_in: First night
        check_out: Checkout day (exclusive)
        name: Guest name
        email: Guest email
        phone: Guest phone
        guests: Number of guests
        id_type: Identity document type
        id_file_url: URL of an already uploaded identity document
        topology: Room topology

    Returns:
        dict: The stored booking

    Raises:
        BookingValidationError: Missing fields, bad dates, unknown room or minimum stay not met
        BookingConflictError: An active booking holds the requested slot
    """
    missing = [
        field
        for field, value in (("name", name), ("email", email), ("phone", phone))
        if not (value or "").strip()
    ]
    if missing or not check_in or not check_out or not room_type:
        booking_operations.labels(operation="create", outcome="invalid").inc()
        fields = missing + [
            field
            for field, value in (("room_type", room_type), ("check_in", check_in), ("check_out", check_out))
            if not value
        ]
        raise BookingValidationError(f"Missing required fields: {', '.join(fields)}")

    scope = topology.normalize(room_type)
    start, end = _parse_range(check_in, check_out)
    nights = count_nights(start, end)

    if scope != topology.entire and nights < MIN_NIGHTS_SINGLE_ROOM:
        booking_operations.labels(operation="create", outcome="invalid").inc()
        raise MinimumStayError(MIN_NIGHTS_SINGLE_ROOM)

    _require_free(engine, scope, start, end, topology, "create")
    quote = quote_price(scope, nights, guests, topology=topology)
    unit_lo, unit_hi = topology.unit_span(scope)

    try:
        with engine.begin() as conn:
            _require_free(conn, scope, start, end, topology, "create")
            booking = insert_booking(
                conn,
                {
                    "transaction_ref": str(uuid.uuid4()),
                    "room_type": scope,
                    "unit_lo": unit_lo,
                    "unit_hi": unit_hi,
                    "check_in": start,
                    "check_out": end,
                    "status": BookingStatus.BOOKED.value,
                    "payment_status": PaymentStatus.PENDING.value,
                    "source": BookingSource.WEBSITE.value,
                    "name": (name or "").strip(),
                    "email": (email or "").strip(),
                    "phone": (phone or "").strip(),
                    "guests": guests,
                    "id_type": id_type,
                    "id_file_url": id_file_url,
                    "price": Decimal(quote.total),
                    "paid_amount": Decimal(0),
                },
            )
            record_booking_event(
                conn,
                booking["id"],
                "created",
                to_status=BookingStatus.BOOKED.value,
                details={"price": quote.total, "nights": nights},
            )
    except IntegrityError as err:
        booking_operations.labels(operation="create", outcome="conflict").inc()
        logger.warning("booking_create_integrity_error", error=str(err.orig))
        raise BookingConflictError(STORE_CONFLICT_MESSAGE) from err

    booking_operations.labels(operation="create", outcome="success").inc()
    logger.info(
        "booking_created",
        booking_id=str(booking["id"]),
        transaction_ref=booking["transaction_ref"],
        room_type=scope,
        check_in=start.isoformat(),
        check_out=end.isoformat(),
        nights=nights,
        price=quote.total,
    )
    return booking


def confirm_booking(
    engine: Engine,
    collaborators: Collaborators,
    transaction_ref: Optional[str],
    payment_reference: Optional[str],
    id_document: Optional[UploadedDocument] = None,
    id_file_url: Optional[str] = None,
    id_type: Optional[str] = None,
    topology: RoomTopology = default_topology,
) -> dict[str, Any]:
    """
    Confirm a pending booking after verifying its payment.

    The pending row is transitioned in place to ``confirmed``/``paid``; the
    identity-verification and notification side effects are queued in the
    outbox within the same transaction.

    Args:
        engine: Booking store engine
        collaborators: Payment gateway and document store
        transaction_ref: Reference returned by ``create_booking``
        payment_reference: Paystack transaction reference
        id_document: Uploaded identity document, when not attached yet
        id_file_url: URL of an identity document stored earlier
        id_type: Identity document type
        topology: Room topology

    Returns:
        dict: The confirmed booking

    Raises:
        BookingNotFoundError: Unknown transaction reference
        InvalidTransitionError: The booking is not pending
        BookingValidationError: No identity document
        PaymentVerificationError: Payment not successful or short
        UpstreamServiceError: Payment gateway or storage unavailable
        BookingConflictError: The slot became unavailable
    """
    if not transaction_ref or not payment_reference:
        booking_operations.labels(operation="confirm", outcome="invalid").inc()
        raise BookingValidationError("Transaction reference and payment reference are required")

    with engine.connect() as conn:
        booking = get_booking_by_transaction_ref(conn, transaction_ref)

    if booking is None:
        raise BookingNotFoundError("Booking not found")

    if (
        booking["status"] == BookingStatus.CONFIRMED.value
        and booking["payment_reference"] == payment_reference
    ):
        logger.info("booking_confirm_repeated", booking_id=str(booking["id"]))
        return booking

    if booking["status"] != BookingStatus.BOOKED.value:
        booking_operations.labels(operation="confirm", outcome="invalid").inc()
        raise InvalidTransitionError(f"Booking is {booking['status']} and cannot be confirmed")

    document_url = booking["id_file_url"] or id_file_url
    if not document_url and id_document is not None:
        document_url = collaborators.documents.upload(
            id_document.content, id_document.filename, id_document.content_type
        )
    if not document_url:
        booking_operations.labels(operation="confirm", outcome="invalid").inc()
        raise BookingValidationError("ID file is required")

    payment = collaborators.payments.verify_transaction(payment_reference)
    if not payment.success:
        booking_operations.labels(operation="confirm", outcome="payment_failed").inc()
        logger.warning(
            "payment_verification_failed",
            booking_id=str(booking["id"]),
            payment_reference=payment_reference,
            message=payment.message,
        )
        raise PaymentVerificationError(
            f"Payment verification failed: {payment.message or 'transaction not successful'}"
        )

    if payment.amount < Decimal(booking["price"]):
        booking_operations.labels(operation="confirm", outcome="payment_failed").inc()
        logger.warning(
            "payment_amount_short",
            booking_id=str(booking["id"]),
            paid=str(payment.amount),
            price=str(booking["price"]),
        )
        raise PaymentVerificationError("Paid amount does not cover the booking total")

    start, end = booking["check_in"], booking["check_out"]
    _require_free(engine, booking["room_type"], start, end, topology, "confirm")

    try:
        with engine.begin() as conn:
            _require_free(conn, booking["room_type"], start, end, topology, "confirm")
            updated = update_booking(
                conn,
                booking["id"],
                {
                    "status": BookingStatus.CONFIRMED.value,
                    "payment_status": PaymentStatus.PAID.value,
                    "payment_reference": payment_reference,
                    "paid_amount": payment.amount,
                    "provider": "paystack",
                    "id_file_url": document_url,
                    "id_type": booking["id_type"] or id_type,
                    "confirmed_at": utc_now(),
                },
                expected_status=BookingStatus.BOOKED.value,
            )
            if updated == 0:
                raise InvalidTransitionError("Booking is no longer pending")

            record_booking_event(
                conn,
                booking["id"],
                "confirmed",
                from_status=BookingStatus.BOOKED.value,
                to_status=BookingStatus.CONFIRMED.value,
                details={"payment_reference": payment_reference, "paid_amount": str(payment.amount)},
            )
            for kind in (
                OutboxTaskKind.START_IDENTITY_VERIFICATION,
                OutboxTaskKind.SEND_BOOKING_NOTIFICATIONS,
            ):
                enqueue_task(conn, booking["id"], kind)

            confirmed = read_booking(conn, booking["id"])
            if confirmed is None:
                raise BookingNotFoundError("Booking not found")
    except IntegrityError as err:
        booking_operations.labels(operation="confirm", outcome="conflict").inc()
        logger.warning(
            "booking_confirm_integrity_error", booking_id=str(booking["id"]), error=str(err.orig)
        )
        raise BookingConflictError(STORE_CONFLICT_MESSAGE) from err

    booking_operations.labels(operation="confirm", outcome="success").inc()
    logger.info(
        "booking_confirmed",
        booking_id=str(booking["id"]),
        transaction_ref=transaction_ref,
        payment_reference=payment_reference,
        paid_amount=str(payment.amount),
    )
    return confirmed


def block_dates(
    engine: Engine,
    room_type: Optional[str],
    check_in: Union[str, date, None],
    check_out: Union[str, date, None],
    reason: Optional[str] = None,
    topology: RoomTopology = default_topology,
) -> dict[str, Any]:
    """
    Hold a room scope for a date range as an administrative block.

    Raises:
        BookingValidationError: Bad dates or unknown room type
        BookingConflictError: An active booking already holds part of the range
    """
    scope = topology.normalize(room_type)
    start, end = _parse_range(check_in, check_out)
    _require_free(engine, scope, start, end, topology, "block")
    unit_lo, unit_hi = topology.unit_span(scope)

    try:
        with engine.begin() as conn:
            _require_free(conn, scope, start, end, topology, "block")
            booking = insert_booking(
                conn,
                {
                    "transaction_ref": f"BLOCK-{uuid.uuid4().hex}",
                    "room_type": scope,
                    "unit_lo": unit_lo,
                    "unit_hi": unit_hi,
                    "check_in": start,
                    "check_out": end,
                    "status": BookingStatus.BLOCKED.value,
                    "payment_status": PaymentStatus.PENDING.value,
                    "source": BookingSource.ADMIN.value,
                    "name": "ADMIN BLOCK",
                    "email": "admin@system",
                    "guests": 0,
                    "price": Decimal(0),
                    "paid_amount": Decimal(0),
                    "block_reason": reason,
                },
            )
            record_booking_event(
                conn,
                booking["id"],
                "blocked",
                to_status=BookingStatus.BLOCKED.value,
                details={"reason": reason} if reason else None,
            )
    except IntegrityError as err:
        booking_operations.labels(operation="block", outcome="conflict").inc()
        raise BookingConflictError(STORE_CONFLICT_MESSAGE) from err

    booking_operations.labels(operation="block", outcome="success").inc()
    logger.info(
        "dates_blocked",
        booking_id=str(booking["id"]),
        room_type=scope,
        check_in=start.isoformat(),
        check_out=end.isoformat(),
    )
    return booking


def cancel_booking(engine: Engine, booking_id: uuid.UUID) -> dict[str, Any]:
    """Cancel a pending booking. Only ``booked`` rows can be cancelled."""
    with engine.begin() as conn:
        booking = read_booking(conn, booking_id)
        if booking is None:
            raise BookingNotFoundError("Booking not found")
        if booking["status"] != BookingStatus.BOOKED.value:
            booking_operations.labels(operation="cancel", outcome="invalid").inc()
            raise InvalidTransitionError(f"Booking is {booking['status']} and cannot be cancelled")

        updated = update_booking(
            conn,
            booking_id,
            {"status": BookingStatus.CANCELLED.value},
            expected_status=BookingStatus.BOOKED.value,
        )
        if updated == 0:
            raise InvalidTransitionError("Booking is no longer pending")
        record_booking_event(
            conn,
            booking_id,
            "cancelled",
            from_status=BookingStatus.BOOKED.value,
            to_status=BookingStatus.CANCELLED.value,
        )
        cancelled = read_booking(conn, booking_id)
        if cancelled is None:
            raise BookingNotFoundError("Booking not found")

    booking_operations.labels(operation="cancel", outcome="success").inc()
    logger.info("booking_cancelled", booking_id=str(booking_id))
    return cancelled


def delete_booking(engine: Engine, booking_id: uuid.UUID) -> None:
    """
    Delete a booking or lift an administrative block.

    A paid website booking is refused; admin blocks and synced rows can always go.

    Raises:
        BookingNotFoundError: Unknown booking
        DeletionRefusedError: The booking is a paid guest reservation
    """
    with engine.begin() as conn:
        booking = read_booking(conn, booking_id)
        if booking is None:
            raise BookingNotFoundError("Booking not found")

        if (
            booking["source"] == BookingSource.WEBSITE.value
            and booking["payment_status"] == PaymentStatus.PAID.value
        ):
            booking_operations.labels(operation="delete", outcome="invalid").inc()
            logger.warning("booking_delete_refused", booking_id=str(booking_id))
            raise DeletionRefusedError("Paid guest bookings cannot be deleted")

        remove_booking(conn, booking_id)
        record_booking_event(
            conn,
            booking_id,
            "deleted",
            from_status=booking["status"],
            details={"source": booking["source"], "transaction_ref": booking["transaction_ref"]},
        )

    booking_operations.labels(operation="delete", outcome="success").inc()
    logger.info("booking_deleted", booking_id=str(booking_id), source=booking["source"])


def get_booking(engine: Engine, booking_id: uuid.UUID) -> dict[str, Any]:
    with engine.connect() as conn:
        booking = read_booking(conn, booking_id)
    if booking is None:
        raise BookingNotFoundError("Booking not found")
    return booking


def list_bookings(engine: Engine) -> dict[str, list[dict[str, Any]]]:
    """Admin view: guest bookings and admin blocks, newest first."""
    with engine.connect() as conn:
        bookings = read_bookings(conn)
    return {
        "bookings": [b for b in bookings if b["status"] != BookingStatus.BLOCKED.value],
        "blocks": [b for b in bookings if b["status"] == BookingStatus.BLOCKED.value],
    }


def list_booked_dates(
    engine: Engine,
    room_type: Optional[str] = None,
    topology: RoomTopology = default_topology,
) -> list[dict[str, Any]]:
    """
    Date ranges currently held by active bookings, for calendar display.

    Args:
        engine: Booking store engine
        room_type: Only ranges that block this scope when given; a sub-room
            also shows entire-apartment stays
        topology: Room topology

    Returns:
        list[dict]: ``room_type``, ``check_in``, ``check_out``, ``status``, ``source`` per booking
    """
    with engine.connect() as conn:
        bookings = list_active_bookings(conn)
    if room_type:
        scopes = set(topology.conflicting_scopes(room_type))
        bookings = [b for b in bookings if b["room_type"] in scopes]
    return [
        {
            "room_type": b["room_type"],
            "check_in": b["check_in"].isoformat(),
            "check_out": b["check_out"].isoformat(),
            "status": b["status"],
            "source": b["source"],
        }
        for b in bookings
    ]
