from datetime import date
from html import escape
from urllib.parse import quote

from scheduling.clock import format_12_hour

BUSINESS_NAME = "AJ Insta Heal"


def _long_date(value: str) -> str:
    d = date.fromisoformat(value)
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def manage_link(app_url: str, booking_code: str, email: str) -> str:
    return f"{app_url.rstrip('/')}/manage-booking?id={quote(booking_code)}&email={quote(email)}"


def _wrap(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html><body style=\"font-family: Arial, sans-serif; color: #333;\">"
        f"<h2 style=\"color: #2f6f4f;\">{escape(title)}</h2>"
        f"{body}"
        f"<p>Thank you,<br>{BUSINESS_NAME}</p>"
        "</body></html>"
    )


def confirmation_email(booking, service_name: str, link: str) -> str:
    body = (
        f"<p>Hi {escape(booking.customer_name)},</p>"
        "<p>Your appointment is confirmed.</p>"
        "<table cellpadding=\"4\">"
        f"<tr><td><strong>Booking ID</strong></td><td>{escape(booking.booking_code)}</td></tr>"
        f"<tr><td><strong>Service</strong></td><td>{escape(service_name)}</td></tr>"
        f"<tr><td><strong>Date</strong></td><td>{_long_date(booking.date)}</td></tr>"
        f"<tr><td><strong>Time</strong></td><td>{format_12_hour(booking.time)}</td></tr>"
        "</table>"
        f"<p>Need to change plans? <a href=\"{escape(link)}\">Manage your booking</a>.</p>"
    )
    return _wrap("Booking Confirmation", body)


def doctor_new_booking_email(booking, service_name: str) -> str:
    body = (
        f"<p>New booking received for {escape(booking.customer_name)} "
        f"({escape(service_name)}) on {booking.date} at {format_12_hour(booking.time)}.</p>"
        f"<p>Email: {escape(booking.customer_email)}<br>Phone: {escape(booking.customer_phone)}</p>"
    )
    if booking.comments:
        body += f"<p>Comments: {escape(booking.comments)}</p>"
    return _wrap("New Booking", body)


def cancellation_email(booking) -> str:
    body = (
        f"<p>Hi {escape(booking.customer_name)},</p>"
        f"<p>Your booking {escape(booking.booking_code)} for {_long_date(booking.date)} "
        f"at {format_12_hour(booking.time)} has been cancelled.</p>"
    )
    return _wrap("Booking Cancelled", body)


def reschedule_email(booking, link: str) -> str:
    body = (
        f"<p>Hi {escape(booking.customer_name)},</p>"
        f"<p>Your booking {escape(booking.booking_code)} has been moved to "
        f"{_long_date(booking.date)} at {format_12_hour(booking.time)}.</p>"
        f"<p><a href=\"{escape(link)}\">Manage your booking</a></p>"
    )
    return _wrap("Booking Rescheduled", body)


def enquiry_email(enquiry) -> str:
    body = (
        f"<p>From: {escape(enquiry.name)} &lt;{escape(enquiry.email)}&gt;, {escape(enquiry.phone)}</p>"
        f"<p>{escape(enquiry.message)}</p>"
    )
    return _wrap("New Enquiry", body)
