from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Query,
    UploadFile,
    status,
)
from sqlalchemy.engine import Engine

from bookastay.dependencies import get_collaborators, get_db_engine
from bookastay.exceptions import BookingValidationError
from bookastay.routes._booking_helpers import (
    document_from_upload,
    nights_between,
    raise_if_invalid,
)
from bookastay.schemas.bookings import BookingCreatePayload, booking_out
from bookastay.services.availability import check_overlap
from bookastay.services.bookings import (
    blocking_summary,
    confirm_booking,
    create_booking,
    get_booking,
    list_booked_dates,
    quote_price,
)
from bookastay.services.collaborators import Collaborators
from bookastay.services.outbox import process_outbox

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/availability")
def availability(
    room_type: Optional[str] = Query(None, description="'entire' or a sub-room"),
    check_in: Optional[str] = Query(None, description="First night (YYYY-MM-DD)"),
    check_out: Optional[str] = Query(None, description="Checkout day (YYYY-MM-DD)"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check whether a room scope is free for a date range.

    Returns:
        dict: ``available``, plus the blocking booking (without guest details) when taken
    """
    result = check_overlap(engine, room_type, check_in, check_out)
    raise_if_invalid(result)
    return {
        "success": True,
        "available": not result.overlapping,
        "overlapping": result.overlapping,
        "blocking": blocking_summary(result.blocking),
    }


@router.get("/bookings/dates")
def booked_dates(
    room_type: Optional[str] = Query(None, description="Only this room type"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"success": True, "dates": list_booked_dates(engine, room_type)}


@router.get("/bookings/quote")
def quote(
    room_type: str = Query(..., description="'entire' or a sub-room"),
    check_in: str = Query(..., description="First night (YYYY-MM-DD)"),
    check_out: str = Query(..., description="Checkout day (YYYY-MM-DD)"),
    guests: int = Query(1, ge=1),
) -> dict[str, Any]:
    nights = nights_between(check_in, check_out)
    return {"success": True, "quote": quote_price(room_type, nights, guests).to_dict()}


@router.post("/bookings", status_code=status.HTTP_201_CREATED)
def create_booking_endpoint(
    payload: BookingCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a pending booking. Dates are held only once payment is confirmed.

    Args:
        payload: Guest details, room type and dates
        engine: Booking store engine

    Returns:
        dict: The booking and the transaction reference to pay against
    """
    booking = create_booking(
        engine,
        room_type=payload.room_type,
        check_in=payload.check_in,
        check_out=payload.check_out,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        guests=payload.guests,
        id_type=payload.id_type,
        id_file_url=payload.id_file_url,
    )
    return {
        "success": True,
        "message": "Booking created. Complete payment to confirm it.",
        "transaction_ref": booking["transaction_ref"],
        "booking": booking_out(booking),
    }


@router.post("/bookings/upload-id", status_code=status.HTTP_201_CREATED)
def upload_id_document(
    id_file: Optional[UploadFile] = File(None),
    collaborators: Collaborators = Depends(get_collaborators),
) -> dict[str, Any]:
    document = document_from_upload(id_file)
    if document is None:
        raise BookingValidationError("ID file is required")
    url = collaborators.documents.upload(document.content, document.filename, document.content_type)
    return {"success": True, "url": url}


@router.post("/bookings/confirm")
def confirm_booking_endpoint(
    background_tasks: BackgroundTasks,
    transaction_ref: Optional[str] = Form(None),
    payment_reference: Optional[str] = Form(None),
    id_type: Optional[str] = Form(None),
    id_file_url: Optional[str] = Form(None),
    id_file: Optional[UploadFile] = File(None),
    engine: Engine = Depends(get_db_engine),
    collaborators: Collaborators = Depends(get_collaborators),
) -> dict[str, Any]:
    """
    Verify a payment and confirm the booking it pays for.

    Identity verification and the receipt emails run after the response,
    from the outbox.
    """
    document = document_from_upload(id_file)
    booking = confirm_booking(
        engine,
        collaborators,
        transaction_ref=transaction_ref,
        payment_reference=payment_reference,
        id_document=document,
        id_file_url=id_file_url,
        id_type=id_type,
    )

    background_tasks.add_task(process_outbox, engine, collaborators)

    return {
        "success": True,
        "message": "Payment verified and booking confirmed",
        "booking": booking_out(booking),
    }


@router.get("/bookings/{booking_id}")
def get_booking_endpoint(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"success": True, "booking": booking_out(get_booking(engine, booking_id))}
