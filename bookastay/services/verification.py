"""
Identity verification flows: pre-booking sessions, post-confirmation
verification of a booking's guest, Shufti Pro callbacks and status lookups.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Engine

from bookastay.db.readers.bookings import get_booking, get_booking_by_verification_reference
from bookastay.db.readers.verification_sessions import get_verification_session
from bookastay.db.writers.bookings import update_booking
from bookastay.db.writers.verification_sessions import (
    insert_verification_session,
    update_verification_session,
)
from bookastay.exceptions import BookingNotFoundError, BookingValidationError
from bookastay.network.shuftipro import ShuftiProClient
from bookastay.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

STATUS_MESSAGES = {
    "verified": "Verification successful. You can proceed to payment.",
    "declined": "Verification failed. Please try again with a valid ID.",
    "cancelled": "Verification was cancelled. Please start again.",
}
PENDING_MESSAGE = "Verification pending. Please complete the verification process."


def start_pre_booking_verification(
    engine: Engine,
    identity: ShuftiProClient,
    name: Optional[str],
    email: Optional[str],
    id_file_url: Optional[str],
    id_type: Optional[str] = None,
) -> dict[str, Any]:
    """
    Start a verification before the guest books, and record the session.

    Returns:
        dict: ``reference``, ``verification_url`` and ``status``

    Raises:
        BookingValidationError: Missing name, email or document URL
        UpstreamServiceError: Shufti Pro unavailable or rejected the request
    """
    if not (name and email and id_file_url):
        raise BookingValidationError("Name, email and ID document are required")

    request = identity.create_verification(
        reference=f"verify_{uuid.uuid4().hex}",
        email=email,
        document_url=id_file_url,
        id_type=id_type,
        name=name,
    )

    with engine.begin() as conn:
        insert_verification_session(
            conn,
            {
                "reference": request.reference,
                "name": name,
                "email": email,
                "id_file_url": id_file_url,
                "id_type": id_type,
                "verification_url": request.verification_url,
                "verification_status": "pending",
                "verification_event": request.event,
            },
        )

    logger.info("pre_booking_verification_started", reference=request.reference)
    return {
        "reference": request.reference,
        "verification_url": request.verification_url,
        "status": "pending",
    }


def get_pre_booking_verification(
    engine: Engine, reference: str, email: Optional[str] = None
) -> dict[str, Any]:
    """
    Report whether a pre-booking verification has passed.

    When ``email`` is given it must match the session's email.

    Raises:
        BookingNotFoundError: Unknown reference or email mismatch
    """
    with engine.connect() as conn:
        session = get_verification_session(conn, reference)

    if session is None or (email and session["email"].lower() != email.strip().lower()):
        raise BookingNotFoundError("Verification session not found")

    status = session["verification_status"]
    return {
        "reference": session["reference"],
        "verified": status == "verified",
        "status": status,
        "message": STATUS_MESSAGES.get(status, PENDING_MESSAGE),
        "declined_reason": session["declined_reason"],
    }


def start_booking_verification(
    engine: Engine, identity: ShuftiProClient, booking_id: uuid.UUID
) -> Optional[str]:
    """
    Start identity verification for a confirmed booking's guest.

    Skipped when the booking is gone, has no ID document, or already has a
    verification reference.

    Returns:
        Optional[str]: The new verification reference, or None when skipped
    """
    with engine.connect() as conn:
        booking = get_booking(conn, booking_id)

    if booking is None or not booking["id_file_url"] or booking["verification_reference"]:
        logger.info(
            "booking_verification_skipped",
            booking_id=str(booking_id),
            reason="missing" if booking is None else "not_applicable",
        )
        return None

    request = identity.create_verification(
        reference=f"booking_{uuid.uuid4().hex}",
        email=booking["email"],
        document_url=booking["id_file_url"],
        id_type=booking["id_type"],
        name=booking["name"],
    )

    with engine.begin() as conn:
        update_booking(
            conn,
            booking_id,
            {
                "verification_reference": request.reference,
                "verification_url": request.verification_url,
                "verification_status": "pending",
                "verification_event": request.event,
            },
        )

    logger.info(
        "booking_verification_started", booking_id=str(booking_id), reference=request.reference
    )
    return request.reference


def handle_verification_callback(
    engine: Engine,
    identity: ShuftiProClient,
    raw_body: bytes,
    signature: Optional[str] = None,
) -> dict[str, Any]:
    """
    Apply a Shufti Pro callback to the matching session and booking.

    A signature that does not match is logged; the callback is still applied.

    Args:
        engine: Booking store engine
        identity: Shufti Pro client (signature check, payload parsing)
        raw_body: Request body exactly as received
        signature: Signature header, if present

    Returns:
        dict: ``reference``, ``status``, ``session_updated``, ``booking_updated``

    Raises:
        BookingValidationError: Body is not a JSON object or has no reference
    """
    try:
        payload = json.loads(raw_body or b"{}")
    except ValueError as err:
        raise BookingValidationError("Invalid callback payload") from err
    if not isinstance(payload, dict):
        raise BookingValidationError("Invalid callback payload")

    if signature and not identity.verify_signature(raw_body, signature):
        logger.warning("verification_signature_mismatch", reference=payload.get("reference"))

    outcome = identity.parse_callback(payload)
    if not outcome.reference:
        raise BookingValidationError("Callback has no reference")

    now = utc_now()
    verified = outcome.status == "verified"

    with engine.begin() as conn:
        session_updated = update_verification_session(
            conn,
            outcome.reference,
            {
                "verification_status": outcome.status,
                "verification_event": outcome.event,
                "verification_data": payload,
                "declined_reason": outcome.declined_reason,
                "verified_at": now if verified else None,
            },
        )

        booking = get_booking_by_verification_reference(conn, outcome.reference)
        if booking is not None:
            update_booking(
                conn,
                booking["id"],
                {
                    "verification_status": outcome.status,
                    "verification_event": outcome.event,
                    "verification_data": outcome.data,
                    "verification_declined_reason": outcome.declined_reason,
                    "verification_completed_at": now if verified else None,
                },
            )

    logger.info(
        "verification_callback_processed",
        reference=outcome.reference,
        verification_event=outcome.event,
        status=outcome.status,
        session_updated=bool(session_updated),
        booking_id=str(booking["id"]) if booking else None,
    )
    return {
        "reference": outcome.reference,
        "status": outcome.status,
        "session_updated": bool(session_updated),
        "booking_updated": booking is not None,
    }


def check_verification_status(identity: ShuftiProClient, reference: str) -> dict[str, Any]:
    if not reference:
        raise BookingValidationError("Verification reference is required")
    return identity.check_status(reference)
