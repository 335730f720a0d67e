# models/bookings.py

import enum
import uuid

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from bookastay.models.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class BookingStatus(str, enum.Enum):
    BOOKED = "booked"
    CONFIRMED = "confirmed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class BookingSource(str, enum.Enum):
    WEBSITE = "website"
    AIRBNB = "airbnb"
    ADMIN = "admin"


# Only these statuses hold dates; booked rows are unpaid attempts.
ACTIVE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.BLOCKED.value)


class Booking(Base):
    """
    ORM model for a reservation of one room scope over a half-open date range.

    Rows come from three places: website guests (created ``booked`` and
    confirmed in place once Paystack verifies the payment), administrative
    blocks, and Airbnb iCal events merged in by the calendar reconciler
    (keyed by ``external_uid``).

    ``unit_lo``/``unit_hi`` encode the room scope as a span of physical units
    so PostgreSQL can enforce the entire-vs-room exclusion with a single
    ``EXCLUDE USING gist`` constraint (see the initial Alembic revision).
    """

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_dates", "room_type", "check_in", "check_out"),
        Index("ix_bookings_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_ref = Column(String(255), nullable=False, unique=True)
    payment_reference = Column(String(255), nullable=True, unique=True)

    room_type = Column(String(50), nullable=False)
    unit_lo = Column(Integer, nullable=False)
    unit_hi = Column(Integer, nullable=False)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.BOOKED.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    source = Column(String(20), nullable=False, default=BookingSource.WEBSITE.value)
    external_uid = Column(String(255), nullable=True, unique=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    id_type = Column(String(50), nullable=True)
    id_file_url = Column(String(1024), nullable=True)
    guests = Column(Integer, nullable=False, default=1)

    price = Column(Numeric(12, 2), nullable=False, default=0)
    paid_amount = Column(Numeric(12, 2), nullable=False, default=0)
    provider = Column(String(50), nullable=True)
    block_reason = Column(String(255), nullable=True)

    verification_reference = Column(String(255), nullable=True, unique=True)
    verification_url = Column(String(1024), nullable=True)
    verification_status = Column(String(20), nullable=True)
    verification_event = Column(String(100), nullable=True)
    verification_declined_reason = Column(String(1024), nullable=True)
    verification_data = Column(JSONType, nullable=True)
    verification_completed_at = Column(DateTime(timezone=True), nullable=True)

    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
