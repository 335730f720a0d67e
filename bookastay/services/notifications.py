"""Guest confirmation and owner notification emails for confirmed bookings."""

from __future__ import annotations

from typing import Any

import structlog

from bookastay.config import OWNER_NOTIFICATION_EMAIL
from bookastay.network.mailer import Attachment, Mailer
from bookastay.services.receipts import format_naira, render_receipt_pdf

logger = structlog.get_logger(__name__)


def _guest_body(booking: dict[str, Any]) -> str:
    return (
        f"Hello {booking['name']},\n\n"
        "Your booking is confirmed.\n\n"
        f"Room: {booking['room_type']}\n"
        f"Check-in: {booking['check_in'].isoformat()}\n"
        f"Check-out: {booking['check_out'].isoformat()}\n"
        f"Amount paid: {format_naira(booking.get('paid_amount'))}\n"
        f"Reference: {booking['transaction_ref']}\n\n"
        "Your receipt is attached.\n"
    )


def _owner_body(booking: dict[str, Any]) -> str:
    return (
        "New confirmed booking.\n\n"
        f"Guest: {booking['name']} <{booking['email']}> {booking.get('phone') or ''}\n"
        f"Room: {booking['room_type']}\n"
        f"Dates: {booking['check_in'].isoformat()} to {booking['check_out'].isoformat()}\n"
        f"Guests: {booking.get('guests')}\n"
        f"Paid: {format_naira(booking.get('paid_amount'))}\n"
        f"Payment reference: {booking.get('payment_reference')}\n"
        f"ID document: {booking.get('id_file_url') or '-'}\n"
    )


def send_booking_notifications(mailer: Mailer, booking: dict[str, Any]) -> None:
    """
    Email the guest a confirmation with the PDF receipt, and notify the owner.

    Errors propagate to the caller (the outbox retries the task).
    """
    receipt = Attachment(
        filename=f"receipt-{booking['transaction_ref']}.pdf",
        content=render_receipt_pdf(booking),
    )

    mailer.send(
        to=booking["email"],
        subject="Your Book-A-Stay booking is confirmed",
        body=_guest_body(booking),
        attachments=[receipt],
    )
    mailer.send(
        to=OWNER_NOTIFICATION_EMAIL,
        subject=f"New booking: {booking['room_type']} {booking['check_in'].isoformat()}",
        body=_owner_body(booking),
        attachments=[receipt],
    )
    logger.info("booking_notifications_sent", booking_id=str(booking["id"]))
