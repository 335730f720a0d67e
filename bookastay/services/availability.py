"""
Overlap resolver: can a room scope be booked for a date range?

A request conflicts with an active (confirmed or blocked) booking when their
half-open date ranges intersect and their room scopes intersect in the
topology. Pending and cancelled rows never block anything.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional, Union

import structlog
from sqlalchemy.engine import Connection, Engine

from bookastay.db.readers.bookings import find_active_overlap
from bookastay.exceptions import UnknownRoomTypeError
from bookastay.topology import RoomTopology, default_topology
from bookastay.utils.datetime import parse_date

logger = structlog.get_logger(__name__)

INVALID_DATE_RANGE = "Invalid date range"
UNKNOWN_ROOM_TYPE = "Unknown room type"


@dataclass
class OverlapResult:
    overlapping: bool
    blocking: Optional[dict[str, Any]] = None
    reason: Optional[str] = None
    invalid: bool = False


def _find_conflict(
    conn: Connection,
    room_type: str,
    check_in: date,
    check_out: date,
    topology: RoomTopology,
) -> Optional[dict[str, Any]]:
    if topology.is_entire(room_type):
        # The whole apartment collides with any active booking.
        return find_active_overlap(conn, check_in, check_out)

    # An entire-apartment booking is reported ahead of a same-room one.
    blocking = find_active_overlap(conn, check_in, check_out, room_types=[topology.entire])
    if blocking:
        return blocking
    return find_active_overlap(conn, check_in, check_out, room_types=[room_type])


def check_overlap(
    db: Union[Engine, Connection],
    room_type: Optional[str],
    check_in: Union[str, date, None],
    check_out: Union[str, date, None],
    topology: RoomTopology = default_topology,
) -> OverlapResult:
    """
    Decide whether ``room_type`` is free over ``[check_in, check_out)``.

    Read-only. Invalid input is reported through the result rather than
    raised: an unparseable or empty range, or an unknown room type, yields
    ``overlapping=True`` with ``invalid=True`` so callers answer 400 instead of 409.

    Args:
        db: Engine (a connection is opened) or an existing connection
        room_type: Requested scope ("entire", "room1", ...)
        check_in: First night, ISO string or date
        check_out: Checkout day (exclusive), ISO string or date
        topology: Room topology to apply

    Returns:
        OverlapResult: ``blocking`` carries the conflicting booking when one exists
    """
    start = parse_date(check_in)
    end = parse_date(check_out)
    if start is None or end is None or end <= start:
        return OverlapResult(overlapping=True, reason=INVALID_DATE_RANGE, invalid=True)

    try:
        scope = topology.normalize(room_type)
    except UnknownRoomTypeError:
        return OverlapResult(overlapping=True, reason=UNKNOWN_ROOM_TYPE, invalid=True)

    if isinstance(db, Engine):
        with db.connect() as conn:
            blocking = _find_conflict(conn, scope, start, end, topology)
    else:
        blocking = _find_conflict(db, scope, start, end, topology)

    if blocking:
        logger.debug(
            "overlap_found",
            room_type=scope,
            check_in=start.isoformat(),
            check_out=end.isoformat(),
            blocking_id=str(blocking["id"]),
            blocking_room_type=blocking["room_type"],
        )
        return OverlapResult(overlapping=True, blocking=blocking)

    return OverlapResult(overlapping=False)
