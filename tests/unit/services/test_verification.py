"""
Unit tests for identity verification flows.
"""

from __future__ import annotations

import json
from typing import Any, Callable

import pytest
from sqlalchemy.engine import Engine

from bookastay.db.readers.bookings import get_booking
from bookastay.db.readers.verification_sessions import get_verification_session
from bookastay.exceptions import BookingNotFoundError, BookingValidationError
from bookastay.services.collaborators import Collaborators
from bookastay.services.verification import (
    get_pre_booking_verification,
    handle_verification_callback,
    start_booking_verification,
    start_pre_booking_verification,
)

BookingFactory = Callable[..., dict[str, Any]]

ID_URL = "https://files.example.com/bookings/passport.jpg"


def _callback(reference: str, event: str, **extra: Any) -> bytes:
    return json.dumps({"reference": reference, "event": event, **extra}).encode()


@pytest.mark.unit
def test_pre_booking_session_is_recorded_as_pending(
    sqlite_engine: Engine, collaborators: Collaborators
) -> None:
    session = start_pre_booking_verification(
        sqlite_engine, collaborators.identity, "Ada Guest", "ada@example.com", ID_URL, "passport"
    )

    assert session["reference"].startswith("verify_")
    assert session["status"] == "pending"
    assert session["verification_url"].endswith(session["reference"])
    with sqlite_engine.connect() as conn:
        stored = get_verification_session(conn, session["reference"])
    assert stored["email"] == "ada@example.com"
    assert stored["verification_status"] == "pending"


@pytest.mark.unit
def test_pre_booking_requires_document(sqlite_engine: Engine, collaborators: Collaborators) -> None:
    with pytest.raises(BookingValidationError):
        start_pre_booking_verification(
            sqlite_engine, collaborators.identity, "Ada Guest", "ada@example.com", None
        )
    collaborators.identity.create_verification.assert_not_called()


@pytest.mark.unit
def test_accepted_callback_marks_session_verified(
    sqlite_engine: Engine, collaborators: Collaborators
) -> None:
    session = start_pre_booking_verification(
        sqlite_engine, collaborators.identity, "Ada Guest", "ada@example.com", ID_URL
    )
    reference = session["reference"]

    result = handle_verification_callback(
        sqlite_engine,
        collaborators.identity,
        _callback(reference, "verification.accepted"),
        signature="abc",
    )

    assert result == {
        "reference": reference,
        "status": "verified",
        "session_updated": True,
        "booking_updated": False,
    }
    status = get_pre_booking_verification(sqlite_engine, reference, email="ADA@example.com ")
    assert status["verified"] is True
    assert status["message"].startswith("Verification successful")


@pytest.mark.unit
def test_declined_callback_updates_booking(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking(verification_reference="booking_abc", verification_status="pending")

    result = handle_verification_callback(
        sqlite_engine,
        collaborators.identity,
        _callback("booking_abc", "verification.declined", declined_reason="Document expired"),
    )

    assert result["booking_updated"] is True
    assert result["session_updated"] is False
    with sqlite_engine.connect() as conn:
        stored = get_booking(conn, booking["id"])
    assert stored["verification_status"] == "declined"
    assert stored["verification_declined_reason"] == "Document expired"
    assert stored["status"] == "confirmed"


@pytest.mark.unit
def test_bad_signature_is_logged_but_applied(
    sqlite_engine: Engine, collaborators: Collaborators
) -> None:
    session = start_pre_booking_verification(
        sqlite_engine, collaborators.identity, "Ada Guest", "ada@example.com", ID_URL
    )
    collaborators.identity.verify_signature.return_value = False

    result = handle_verification_callback(
        sqlite_engine,
        collaborators.identity,
        _callback(session["reference"], "verification.cancelled"),
        signature="forged",
    )

    assert result["status"] == "cancelled"
    assert result["session_updated"] is True


@pytest.mark.unit
@pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"event": "verification.accepted"}'])
def test_malformed_callbacks_are_rejected(
    sqlite_engine: Engine, collaborators: Collaborators, body: bytes
) -> None:
    with pytest.raises(BookingValidationError):
        handle_verification_callback(sqlite_engine, collaborators.identity, body)


@pytest.mark.unit
def test_pre_booking_status_unknown_reference_or_wrong_email(
    sqlite_engine: Engine, collaborators: Collaborators
) -> None:
    session = start_pre_booking_verification(
        sqlite_engine, collaborators.identity, "Ada Guest", "ada@example.com", ID_URL
    )

    with pytest.raises(BookingNotFoundError):
        get_pre_booking_verification(sqlite_engine, "verify_missing")
    with pytest.raises(BookingNotFoundError):
        get_pre_booking_verification(sqlite_engine, session["reference"], email="eve@example.com")


@pytest.mark.unit
def test_booking_verification_is_started_once(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking(id_file_url=ID_URL, id_type="passport")

    reference = start_booking_verification(sqlite_engine, collaborators.identity, booking["id"])
    again = start_booking_verification(sqlite_engine, collaborators.identity, booking["id"])

    assert reference is not None and reference.startswith("booking_")
    assert again is None
    collaborators.identity.create_verification.assert_called_once()
    kwargs = collaborators.identity.create_verification.call_args.kwargs
    assert kwargs["document_url"] == ID_URL
    assert kwargs["id_type"] == "passport"
