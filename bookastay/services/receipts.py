"""PDF receipts for confirmed bookings."""

from __future__ import annotations

from decimal import Decimal
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from bookastay.utils.datetime import count_nights


def format_naira(amount: Any) -> str:
    return f"NGN {Decimal(amount or 0):,.2f}"


def render_receipt_pdf(booking: dict[str, Any]) -> bytes:
    """
    Render a one-page receipt for a confirmed booking.

    Args:
        booking: Booking columns as returned by the readers

    Returns:
        bytes: PDF document
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=f"Receipt {booking['transaction_ref']}",
        leftMargin=0.75 * inch,
        rightMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
    )
    styles = getSampleStyleSheet()
    nights = count_nights(booking["check_in"], booking["check_out"])

    elements: list[Any] = [
        Paragraph("Book-A-Stay Payment Receipt", styles["Title"]),
        Spacer(1, 0.2 * inch),
        Paragraph(f"<b>Reference:</b> {escape(booking['transaction_ref'])}", styles["Normal"]),
        Paragraph(
            f"<b>Payment reference:</b> {escape(booking.get('payment_reference') or '-')}",
            styles["Normal"],
        ),
        Paragraph(f"<b>Guest:</b> {escape(booking['name'])}", styles["Normal"]),
        Spacer(1, 0.3 * inch),
    ]

    rows = [
        ["Room", booking["room_type"]],
        ["Check-in", booking["check_in"].isoformat()],
        ["Check-out", booking["check_out"].isoformat()],
        ["Nights", str(nights)],
        ["Guests", str(booking.get("guests") or 1)],
        ["Total price", format_naira(booking.get("price"))],
        ["Amount paid", format_naira(booking.get("paid_amount"))],
    ]
    table = Table(rows, colWidths=[2.5 * inch, 3.5 * inch])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#f2f2f2")),
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    elements.append(table)
    elements.append(Spacer(1, 0.3 * inch))
    elements.append(Paragraph("Thank you for booking with us.", styles["Normal"]))

    doc.build(elements)
    return buffer.getvalue()
