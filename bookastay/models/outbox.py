import enum
import uuid

from sqlalchemy import Column, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.sql import func

from bookastay.models.base import Base
from bookastay.models.bookings import JSONType


class OutboxTaskKind(str, enum.Enum):
    START_IDENTITY_VERIFICATION = "start_identity_verification"
    SEND_BOOKING_NOTIFICATIONS = "send_booking_notifications"


class OutboxTaskStatus(str, enum.Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class OutboxTask(Base):
    """
    ORM model for side effects queued after a booking commit.

    Tasks are written in the same transaction as the booking change they
    belong to, then picked up by the outbox processor once
    ``next_attempt_at`` has passed.
    """

    __tablename__ = "outbox_tasks"
    __table_args__ = (Index("ix_outbox_tasks_due", "status", "next_attempt_at"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, nullable=False, index=True)
    kind = Column(String(50), nullable=False)
    payload = Column(JSONType, nullable=True)
    status = Column(String(20), nullable=False, default=OutboxTaskStatus.PENDING.value)
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=5)
    last_error = Column(Text, nullable=True)
    next_attempt_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
