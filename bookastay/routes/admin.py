"""Administrative routes, protected by the X-Admin-Key header."""

from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.engine import Engine

from bookastay.config import DRY_RUN
from bookastay.dependencies import get_db_engine, require_admin
from bookastay.schemas.bookings import BlockCreatePayload, booking_out
from bookastay.services.bookings import (
    block_dates,
    cancel_booking,
    delete_booking,
    list_booked_dates,
    list_bookings,
)
from bookastay.services.outbox import list_booking_tasks
from bookastay.services.sync import cleanup_past_external_bookings, sync_all_feeds

logger = structlog.get_logger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/bookings")
def admin_list_bookings(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    listing = list_bookings(engine)
    return {
        "success": True,
        "bookings": [booking_out(b) for b in listing["bookings"]],
        "blocks": [booking_out(b) for b in listing["blocks"]],
    }


@router.post("/blocks", status_code=status.HTTP_201_CREATED)
def admin_block_dates(
    payload: BlockCreatePayload,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    block = block_dates(
        engine,
        room_type=payload.room_type,
        check_in=payload.check_in,
        check_out=payload.check_out,
        reason=payload.reason,
    )
    return {"success": True, "message": "Dates blocked successfully", "booking": booking_out(block)}


@router.delete("/bookings/{booking_id}")
def admin_delete_booking(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    delete_booking(engine, booking_id)
    return {"success": True, "message": f"Booking {booking_id} deleted"}


@router.post("/bookings/{booking_id}/cancel")
def admin_cancel_booking(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"success": True, "booking": booking_out(cancel_booking(engine, booking_id))}


@router.get("/bookings/{booking_id}/tasks")
def admin_booking_tasks(
    booking_id: UUID,
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"success": True, "tasks": list_booking_tasks(engine, booking_id)}


@router.get("/booked-dates")
def admin_booked_dates(
    room_type: Optional[str] = Query(None, description="Only this room type"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    return {"success": True, "dates": list_booked_dates(engine, room_type)}


@router.post("/sync", status_code=status.HTTP_202_ACCEPTED)
def admin_trigger_sync(
    background_tasks: BackgroundTasks,
    dry_run: Optional[bool] = Query(None, description="Override DRY_RUN setting"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, str]:
    """
    Run a calendar sync of every configured feed in the background.

    Args:
        background_tasks: FastAPI background task runner
        dry_run: Override DRY_RUN setting (optional)
        engine: Booking store engine

    Returns:
        dict: Message confirming the sync has been scheduled
    """
    use_dry_run = DRY_RUN if dry_run is None else dry_run
    background_tasks.add_task(sync_all_feeds, engine, dry_run=use_dry_run)
    logger.info("calendar_sync_triggered", dry_run=use_dry_run)
    return {"message": f"Calendar sync scheduled (dry_run={use_dry_run})"}


@router.post("/cleanup")
def admin_cleanup(
    dry_run: Optional[bool] = Query(None, description="Override DRY_RUN setting"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    use_dry_run = DRY_RUN if dry_run is None else dry_run
    deleted = cleanup_past_external_bookings(engine, dry_run=use_dry_run)
    return {"success": True, "deleted": deleted}
