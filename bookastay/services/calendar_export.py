"""iCal export of locally held dates, for import by external listing calendars."""

from __future__ import annotations

from typing import Optional

from icalendar import Calendar, Event
from sqlalchemy.engine import Engine

from bookastay.db.readers.bookings import list_active_bookings
from bookastay.models.bookings import BookingSource
from bookastay.topology import RoomTopology, default_topology
from bookastay.utils.datetime import utc_now

PRODID = "-//Book-A-Stay//Availability//EN"


def build_availability_calendar(
    engine: Engine,
    room_type: Optional[str] = None,
    topology: RoomTopology = default_topology,
) -> bytes:
    """
    Render active bookings as all-day "Unavailable" events.

    With ``room_type`` the feed holds every booking that blocks that scope:
    for a sub-room that is its own bookings plus entire-apartment ones.
    Airbnb rows of the same scope are left out, since they came from that
    scope's own feed; without ``room_type`` every Airbnb row is left out.

    Args:
        engine: Booking store engine
        room_type: Scope the feed is for; all bookings when None
        topology: Room topology

    Returns:
        bytes: iCalendar document
    """
    airbnb = BookingSource.AIRBNB.value
    with engine.connect() as conn:
        bookings = list_active_bookings(conn, exclude_source=None if room_type else airbnb)

    if room_type:
        scope = topology.normalize(room_type)
        scopes = set(topology.conflicting_scopes(scope))
        bookings = [
            b
            for b in bookings
            if b["room_type"] in scopes and not (b["source"] == airbnb and b["room_type"] == scope)
        ]

    calendar = Calendar()
    calendar.add("prodid", PRODID)
    calendar.add("version", "2.0")
    calendar.add("calscale", "GREGORIAN")
    calendar.add("method", "PUBLISH")

    stamp = utc_now()
    for booking in bookings:
        event = Event()
        event.add("uid", f"{booking['id']}@bookastay")
        event.add("summary", "Unavailable")
        event.add("dtstart", booking["check_in"])
        event.add("dtend", booking["check_out"])
        event.add("dtstamp", stamp)
        calendar.add_component(event)

    return calendar.to_ical()
