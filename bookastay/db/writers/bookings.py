import uuid
from datetime import date
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Connection

from bookastay.metrics import db_operations
from bookastay.models.booking_events import BookingEvent
from bookastay.models.bookings import Booking
from bookastay.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_booking(conn: Connection, row: dict[str, Any]) -> dict[str, Any]:
    """
    Insert one booking and return it as stored.

    Duplicate transaction/payment references, duplicate external UIDs and
    exclusion-constraint violations raise ``sqlalchemy.exc.IntegrityError``;
    callers translate that into a booking conflict.

    Args:
        conn: Active connection inside a transaction
        row: Column values; ``id`` and timestamps are filled in when absent

    Returns:
        dict: The inserted booking columns
    """
    now = utc_now()
    values = {"id": uuid.uuid4(), "created_at": now, "updated_at": now, **row}

    conn.execute(insert(Booking).values(values))
    db_operations.labels(operation="insert", table="bookings").inc()

    stored = conn.execute(select(Booking.__table__).where(Booking.id == values["id"]))
    return dict(stored.mappings().one())


def update_booking(
    conn: Connection,
    booking_id: UUID,
    values: dict[str, Any],
    expected_status: Optional[str] = None,
) -> int:
    """
    Update columns of one booking.

    Args:
        conn: Active connection inside a transaction
        booking_id: Booking to update
        values: Columns to set
        expected_status: When given, only update if the row still has this status

    Returns:
        int: Number of rows updated (0 when missing or the status moved on)
    """
    stmt = update(Booking).where(Booking.id == booking_id)
    if expected_status is not None:
        stmt = stmt.where(Booking.status == expected_status)

    result = conn.execute(stmt.values(**values, updated_at=utc_now()))
    db_operations.labels(operation="update", table="bookings").inc()
    return result.rowcount


def delete_booking(conn: Connection, booking_id: UUID) -> int:
    result = conn.execute(delete(Booking).where(Booking.id == booking_id))
    db_operations.labels(operation="delete", table="bookings").inc()
    return result.rowcount


def delete_past_bookings_from_source(conn: Connection, source: str, before: date) -> list[UUID]:
    """
    Delete bookings from ``source`` whose checkout day is before ``before``.

    Args:
        conn: Active connection inside a transaction
        source: Booking source to purge (e.g. "airbnb")
        before: Rows with check_out < before are removed

    Returns:
        list[UUID]: IDs of the deleted bookings
    """
    ids = list(
        conn.execute(
            select(Booking.id).where(Booking.source == source, Booking.check_out < before)
        ).scalars()
    )
    if not ids:
        return []

    conn.execute(delete(Booking).where(Booking.id.in_(ids)))
    db_operations.labels(operation="delete", table="bookings").inc()
    return ids


def record_booking_event(
    conn: Connection,
    booking_id: UUID,
    event: str,
    from_status: Optional[str] = None,
    to_status: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    """
    Append an audit record for a booking state change.

    Args:
        conn: Active connection, normally the transaction that made the change
        booking_id: Booking the event belongs to
        event: Event name ("created", "confirmed", "synced", ...)
        from_status: Status before the change, if any
        to_status: Status after the change, if any
        details: Extra JSON-serializable context
    """
    conn.execute(
        insert(BookingEvent).values(
            id=uuid.uuid4(),
            booking_id=booking_id,
            event=event,
            from_status=from_status,
            to_status=to_status,
            details=details,
            created_at=utc_now(),
        )
    )
    db_operations.labels(operation="insert", table="booking_events").inc()
