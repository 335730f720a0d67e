from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class BookingCreatePayload(BaseModel):
    """
    Schema for a guest booking request. Fields are optional here so missing
    values reach the booking service and come back as a validation error.
    """

    room_type: Optional[str] = Field(None, description="'entire' or a sub-room such as 'room1'")
    check_in: Optional[str] = Field(None, description="First night (YYYY-MM-DD)")
    check_out: Optional[str] = Field(None, description="Checkout day, exclusive (YYYY-MM-DD)")
    name: Optional[str] = Field(None, description="Guest full name")
    email: Optional[str] = Field(None, description="Guest email")
    phone: Optional[str] = Field(None, description="Guest phone")
    guests: int = Field(1, ge=1, description="Number of guests")
    id_type: Optional[str] = Field(None, description="Identity document type")
    id_file_url: Optional[str] = Field(None, description="URL of an uploaded identity document")


class BlockCreatePayload(BaseModel):
    room_type: str = Field(..., description="Room scope to block")
    check_in: str = Field(..., description="First blocked night (YYYY-MM-DD)")
    check_out: str = Field(..., description="Day after the last blocked night (YYYY-MM-DD)")
    reason: Optional[str] = Field(None, description="Why the dates are held")


class PreBookingVerificationPayload(BaseModel):
    name: Optional[str] = Field(None, description="Guest full name")
    email: Optional[str] = Field(None, description="Guest email")
    id_file_url: Optional[str] = Field(None, description="URL of the uploaded identity document")
    id_type: Optional[str] = Field(None, description="Identity document type")


class BookingOut(BaseModel):
    """Booking as returned to guests and admins."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    transaction_ref: str
    room_type: str
    check_in: date
    check_out: date
    status: str
    payment_status: str
    source: str
    name: str
    email: str
    phone: Optional[str] = None
    guests: int
    price: Decimal
    paid_amount: Decimal
    id_type: Optional[str] = None
    id_file_url: Optional[str] = None
    payment_reference: Optional[str] = None
    block_reason: Optional[str] = None
    verification_reference: Optional[str] = None
    verification_url: Optional[str] = None
    verification_status: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_serializer("price", "paid_amount")
    def serialize_money(self, value: Decimal) -> float:
        return float(value)


def booking_out(booking: dict[str, Any]) -> dict[str, Any]:
    return BookingOut.model_validate(booking).model_dump(mode="json")
