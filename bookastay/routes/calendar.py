from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.engine import Engine

from bookastay.dependencies import get_db_engine
from bookastay.services.calendar_export import build_availability_calendar

router = APIRouter()


@router.get("/calendar/bookastay.ics", response_class=Response)
def export_calendar(
    room_type: Optional[str] = Query(None, description="Only dates that block this room"),
    engine: Engine = Depends(get_db_engine),
) -> Response:
    """
    iCal feed of dates held here, to import into external listing calendars.

    Example:
        >>> GET /calendar/bookastay.ics?room_type=room1
        BEGIN:VCALENDAR ... SUMMARY:Unavailable ... END:VCALENDAR
    """
    return Response(
        content=build_availability_calendar(engine, room_type),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": 'inline; filename="bookastay.ics"'},
    )
