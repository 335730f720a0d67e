"""Shufti Pro identity verification routes."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from bookastay.dependencies import get_collaborators, get_db_engine
from bookastay.schemas.bookings import PreBookingVerificationPayload
from bookastay.services.collaborators import Collaborators
from bookastay.services.verification import (
    check_verification_status,
    get_pre_booking_verification,
    handle_verification_callback,
    start_pre_booking_verification,
)

router = APIRouter()
logger = structlog.get_logger(__name__)

SIGNATURE_HEADERS = ("signature", "x-signature", "sp_signature")


@router.post("/pre-booking", status_code=status.HTTP_201_CREATED)
def start_pre_booking(
    payload: PreBookingVerificationPayload,
    engine: Engine = Depends(get_db_engine),
    collaborators: Collaborators = Depends(get_collaborators),
) -> dict[str, Any]:
    session = start_pre_booking_verification(
        engine,
        collaborators.identity,
        name=payload.name,
        email=payload.email,
        id_file_url=payload.id_file_url,
        id_type=payload.id_type,
    )
    return {"success": True, **session}


@router.get("/pre-booking")
def get_pre_booking(
    reference: str = Query(..., description="Verification reference"),
    email: Optional[str] = Query(None, description="Email the session was started with"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"success": True, **get_pre_booking_verification(engine, reference, email)}


@router.post("/callback")
async def verification_callback(
    request: Request,
    engine: Engine = Depends(get_db_engine),
    collaborators: Collaborators = Depends(get_collaborators),
) -> dict[str, Any]:
    """
    Receive a Shufti Pro verification outcome.

    The raw body is read before parsing so the signature is checked over the
    exact bytes that were signed.
    """
    raw_body = await request.body()
    signature = next(
        (request.headers[name] for name in SIGNATURE_HEADERS if name in request.headers), None
    )
    result = await run_in_threadpool(
        handle_verification_callback, engine, collaborators.identity, raw_body, signature
    )
    return {"success": True, "message": "Callback processed successfully", **result}


@router.get("/status/{reference}")
def verification_status(
    reference: str,
    collaborators: Collaborators = Depends(get_collaborators),
) -> dict[str, Any]:
    return {"success": True, **check_verification_status(collaborators.identity, reference)}
