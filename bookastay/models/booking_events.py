import uuid

from sqlalchemy import Column, DateTime, Index, String, Uuid
from sqlalchemy.sql import func

from bookastay.models.base import Base
from bookastay.models.bookings import JSONType


class BookingEvent(Base):
    """
    Append-only audit trail of booking state changes.

    ``booking_id`` is not a foreign key; the history of a
    deleted admin block or a cleaned-up Airbnb row stays readable.
    """

    __tablename__ = "booking_events"
    __table_args__ = (Index("ix_booking_events_booking_id", "booking_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, nullable=False)
    event = Column(String(50), nullable=False)
    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=True)
    details = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
