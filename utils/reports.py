import io
from datetime import datetime

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

HEADERS = ["Booking ID", "Date", "Time", "Service", "Customer", "Email", "Phone", "Status"]


def render_bookings_report(bookings, title: str = "Bookings Report") -> bytes:
    """Render bookings as a landscape A4 PDF table and return the PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), title=title)
    styles = getSampleStyleSheet()

    rows = [HEADERS]
    for b in bookings:
        rows.append([
            b.booking_code,
            b.date,
            b.time,
            b.service.name if b.service else str(b.service_id),
            b.customer_name,
            b.customer_email,
            b.customer_phone,
            b.status,
        ])

    table = Table(rows, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2f6f4f")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f3f6f4")]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))

    story = [
        Paragraph(title, styles["Title"]),
        Paragraph(f"Generated {datetime.utcnow().strftime('%Y-%m-%d %H:%M')} UTC, {len(rows) - 1} booking(s)", styles["Normal"]),
        Spacer(1, 12),
        table,
    ]
    doc.build(story)
    return buffer.getvalue()
