from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from bookastay.models.base import Base
from bookastay.models.bookings import JSONType


class VerificationSession(Base):
    """
    ORM model for identity checks started before a booking exists.

    The guest verifies first, then pays; the Shufti Pro callback updates the
    session row matched by ``reference``.
    """

    __tablename__ = "verification_sessions"

    reference = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    id_file_url = Column(String(1024), nullable=False)
    id_type = Column(String(50), nullable=True)
    verification_url = Column(String(1024), nullable=True)
    verification_status = Column(String(20), nullable=False, default="pending")
    verification_event = Column(String(100), nullable=True)
    verification_data = Column(JSONType, nullable=True)
    declined_reason = Column(String(1024), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
