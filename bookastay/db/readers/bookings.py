from datetime import date
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bookastay.models.bookings import ACTIVE_STATUSES, Booking, BookingStatus


def _one(conn: Connection, stmt: Any) -> Optional[dict[str, Any]]:
    row = conn.execute(stmt).mappings().first()
    return dict(row) if row else None


def get_booking(conn: Connection, booking_id: UUID) -> Optional[dict[str, Any]]:
    """
    Fetch a booking by primary key.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        booking_id (UUID): Booking ID.

    Returns:
        Optional[dict]: Booking columns, or None if not found.
    """
    return _one(conn, select(Booking.__table__).where(Booking.id == booking_id))


def get_booking_by_transaction_ref(
    conn: Connection, transaction_ref: str
) -> Optional[dict[str, Any]]:
    return _one(
        conn, select(Booking.__table__).where(Booking.transaction_ref == transaction_ref)
    )


def get_booking_by_external_uid(conn: Connection, external_uid: str) -> Optional[dict[str, Any]]:
    """
    Fetch the booking previously synced from an external calendar event.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        external_uid (str): The iCal UID of the event.

    Returns:
        Optional[dict]: Booking columns, or None if the event was never synced.
    """
    return _one(conn, select(Booking.__table__).where(Booking.external_uid == external_uid))


def get_booking_by_verification_reference(
    conn: Connection, reference: str
) -> Optional[dict[str, Any]]:
    return _one(
        conn, select(Booking.__table__).where(Booking.verification_reference == reference)
    )


def find_active_overlap(
    conn: Connection,
    check_in: date,
    check_out: date,
    room_types: Optional[Sequence[str]] = None,
) -> Optional[dict[str, Any]]:
    """
    Return one active booking intersecting ``[check_in, check_out)``.

    Half-open overlap: ``existing.check_in < check_out AND existing.check_out > check_in``,
    so a stay ending on the day another begins is not a conflict.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        check_in (date): Requested first night.
        check_out (date): Requested checkout day (exclusive).
        room_types (Optional[Sequence[str]]): Restrict to these room types; None means any.

    Returns:
        Optional[dict]: The earliest conflicting booking, or None.
    """
    stmt = select(Booking.__table__).where(
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    )
    if room_types is not None:
        stmt = stmt.where(Booking.room_type.in_(list(room_types)))
    stmt = stmt.order_by(Booking.check_in).limit(1)
    return _one(conn, stmt)


def find_covering_booking(
    conn: Connection,
    room_type: str,
    check_in: date,
    check_out: date,
    exclude_source: str,
) -> Optional[dict[str, Any]]:
    """
    Find a confirmed booking with exactly these dates and room from another source.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        room_type (str): Room type to match.
        check_in (date): Exact check-in date to match.
        check_out (date): Exact check-out date to match.
        exclude_source (str): Source whose rows are ignored (the feed's own source).

    Returns:
        Optional[dict]: The matching booking, or None.
    """
    stmt = (
        select(Booking.__table__)
        .where(
            Booking.room_type == room_type,
            Booking.check_in == check_in,
            Booking.check_out == check_out,
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.source != exclude_source,
        )
        .limit(1)
    )
    return _one(conn, stmt)


def list_bookings(conn: Connection) -> list[dict[str, Any]]:
    """Every booking, newest first."""
    result = conn.execute(select(Booking.__table__).order_by(Booking.created_at.desc()))
    return [dict(row) for row in result.mappings()]


def list_active_bookings(
    conn: Connection, exclude_source: Optional[str] = None
) -> list[dict[str, Any]]:
    """
    Active (confirmed or blocked) bookings ordered by check-in.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        exclude_source (Optional[str]): Leave out rows from this source.

    Returns:
        list[dict]: Booking columns.
    """
    stmt = select(Booking.__table__).where(Booking.status.in_(ACTIVE_STATUSES))
    if exclude_source is not None:
        stmt = stmt.where(Booking.source != exclude_source)
    result = conn.execute(stmt.order_by(Booking.check_in))
    return [dict(row) for row in result.mappings()]
