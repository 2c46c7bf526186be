"""
Booking store and mutation operations.

Every write re-validates the target slot through the availability
calculator, and the partial unique index ``uq_bookings_confirmed_slot``
backs that check at commit time. Side effects (email, calendar) are
dispatched only after the commit succeeded.
"""
import logging
import re
import secrets
from datetime import date, datetime, time

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.service import Service
from scheduling.availability import blocks_on, has_full_day_block, slot_window, slots_for
from scheduling.clock import format_date, format_time, parse_date, parse_time
from scheduling.errors import ConflictError, NotFoundError, ValidationError
from utils import email_templates
from utils.collaborators import get_calendar, get_clock, get_dispatcher, get_notifier

logger = logging.getLogger(__name__)

_NOT_FOUND = "Booking not found"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_INSERT_ATTEMPTS = 3


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def is_valid_email(email) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(_EMAIL_RE.match(email.strip()))


def _code_prefix() -> str:
    return (current_app.config.get("BOOKING_CODE_PREFIX") or "AJIH").strip().upper()


def generate_booking_code(day: date) -> str:
    # PREFIX-YYYYMMDD-XXXX with 4 random hex chars
    return f"{_code_prefix()}-{day.strftime('%Y%m%d')}-{secrets.token_hex(2).upper()}"


def _unique_booking_code(day: date) -> str:
    for _ in range(10):
        code = generate_booking_code(day)
        if not Booking.query.filter_by(booking_code=code).first():
            return code
    raise ConflictError("Could not allocate a booking code for this date, try again")


def _get_service(service_id) -> Service:
    try:
        service_id = int(service_id)
    except (TypeError, ValueError):
        raise ValidationError("service_id is required")
    service = db.session.get(Service, service_id)
    if not service:
        raise ValidationError("Unknown service")
    return service


def _check_slot(day: date, at: time, duration: int, exclude_booking_id=None):
    """Raise unless ``at`` on ``day`` is an open slot for ``duration`` minutes."""
    if has_full_day_block(blocks_on(day)):
        raise ConflictError("This date is unavailable")

    slots = slots_for(day, duration, exclude_booking_id=exclude_booking_id)
    slot = next((s for s in slots if s.time == at), None)
    if slot is None:
        raise ValidationError("Selected time is not a bookable slot for this date")

    clock = get_clock()
    if clock.localize(day, at) <= clock.now():
        raise ValidationError("Cannot book past/started slots")

    if not slot.available:
        raise ConflictError("This time slot is already booked or unavailable")


def _validate_customer(data: dict) -> dict:
    name = (data.get("customer_name") or "").strip()
    email = (data.get("customer_email") or "").strip()
    phone = (data.get("customer_phone") or "").strip()
    comments = (data.get("comments") or "").strip() or None

    if len(name) < 2 or len(name) > 120:
        raise ValidationError("Name must be at least 2 characters")
    if not is_valid_email(email):
        raise ValidationError("Invalid email address")
    if len(re.sub(r"\D", "", phone)) < 10 or len(phone) > 30:
        raise ValidationError("Phone number must be at least 10 digits")
    return {
        "customer_name": name,
        "customer_email": email,
        "customer_phone": phone,
        "comments": comments,
    }


def _slot_taken(day: date, at: time) -> bool:
    return Booking.query.filter_by(date=format_date(day), time=format_time(at), status="confirmed").first() is not None


# ---------- lookups ----------
def find_booking(identifier, email) -> Booking:
    """
    Resolve a booking by public code or numeric id, owned by ``email``.

    A wrong email is indistinguishable from an unknown booking.
    """
    identifier = str(identifier or "").strip()
    booking = None
    if identifier.upper().startswith(f"{_code_prefix()}-"):
        booking = Booking.query.filter_by(booking_code=identifier.upper()).first()
    elif identifier.isdigit():
        booking = db.session.get(Booking, int(identifier))

    if not booking or normalize_email(booking.customer_email) != normalize_email(email):
        raise NotFoundError(_NOT_FOUND)
    return booking


def find_booking_by_token(token) -> Booking:
    booking = Booking.query.filter_by(token=str(token or "")).first() if token else None
    if not booking:
        raise NotFoundError(_NOT_FOUND)
    return booking


# ---------- mutations ----------
def create_booking(data: dict) -> Booking:
    service = _get_service(data.get("service_id"))
    day = parse_date(data.get("date"))
    at = parse_time(data.get("time"))
    customer = _validate_customer(data)

    _check_slot(day, at, service.duration)

    for attempt in range(1, _INSERT_ATTEMPTS + 1):
        booking = Booking(
            booking_code=_unique_booking_code(day),
            service_id=service.id,
            date=format_date(day),
            time=format_time(at),
            status="confirmed",
            token=secrets.token_hex(32),
            **customer,
        )
        db.session.add(booking)
        try:
            db.session.commit()
            break
        except IntegrityError:
            db.session.rollback()
            # uq_bookings_confirmed_slot, or a booking_code/token collision
            if _slot_taken(day, at):
                raise ConflictError("This time slot is already booked.")
            # slot is free, so the code or token collided
            logger.warning("Booking code collision on %s (attempt %d), retrying", format_date(day), attempt)
    else:
        raise ConflictError("Could not allocate a booking code for this date, try again")

    logger.info("Booking %s created for %s %s", booking.booking_code, booking.date, booking.time)

    dispatcher = get_dispatcher()
    dispatcher.dispatch("booking_emails", _send_booking_emails, booking.id)
    dispatcher.dispatch("calendar_add_booking", _mirror_booking, booking.id)
    return booking


def cancel_booking(identifier, email) -> Booking:
    booking = find_booking(identifier, email)
    if booking.status != "confirmed":
        raise ConflictError("Booking is already cancelled")

    booking.status = "cancelled"
    booking.cancelled_at = datetime.utcnow()
    db.session.commit()
    logger.info("Booking %s cancelled", booking.booking_code)

    dispatcher = get_dispatcher()
    if booking.google_event_id:
        dispatcher.dispatch("calendar_remove_booking", get_calendar().remove_event, booking.google_event_id)
    dispatcher.dispatch("cancellation_email", _send_cancellation_email, booking.id)
    return booking


def reschedule_booking(identifier, email, new_date, new_time) -> Booking:
    booking = find_booking(identifier, email)
    if booking.status != "confirmed":
        raise ConflictError("Cancelled bookings cannot be rescheduled")

    day = parse_date(new_date)
    at = parse_time(new_time)
    duration = booking.service.duration if booking.service else current_app.config.get("DEFAULT_SLOT_DURATION_MINUTES", 60)

    _check_slot(day, at, duration, exclude_booking_id=booking.id)

    booking.date = format_date(day)
    booking.time = format_time(at)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Time slot is already booked")

    logger.info("Booking %s moved to %s %s", booking.booking_code, booking.date, booking.time)

    dispatcher = get_dispatcher()
    if booking.google_event_id:
        dispatcher.dispatch("calendar_update_booking", _update_mirrored_booking, booking.id)
    dispatcher.dispatch("reschedule_email", _send_reschedule_email, booking.id)
    return booking


def list_bookings(status=None, day=None):
    q = Booking.query
    if status:
        q = q.filter(Booking.status == status)
    if day:
        q = q.filter(Booking.date == format_date(parse_date(day)))
    return q.order_by(Booking.date.asc(), Booking.time.asc(), Booking.created_at.asc()).all()


# ---------- side effects (run by the dispatcher) ----------
def _event_title(booking) -> str:
    service_name = booking.service.name if booking.service else "Consultation"
    return f"{booking.customer_name} - {service_name}"


def _event_window(booking):
    duration = booking.service.duration if booking.service else current_app.config.get("DEFAULT_SLOT_DURATION_MINUTES", 60)
    return slot_window(parse_date(booking.date), parse_time(booking.time), duration)


def _mirror_booking(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or booking.status != "confirmed":
        return
    start, end = _event_window(booking)
    event_id = get_calendar().add_event(
        _event_title(booking),
        start,
        end,
        description=(
            f"Customer: {booking.customer_name}\n"
            f"Email: {booking.customer_email}\n"
            f"Phone: {booking.customer_phone}\n"
            f"Booking ID: {booking.booking_code}"
        ),
    )
    if not event_id:
        return

    # only attach the event while the booking is still confirmed
    attached = (
        Booking.query
        .filter_by(id=booking_id, status="confirmed")
        .update({"google_event_id": event_id})
    )
    db.session.commit()
    if not attached:
        logger.info("Booking %s was cancelled while mirroring, removing event %s", booking.booking_code, event_id)
        get_calendar().remove_event(event_id)


def _update_mirrored_booking(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or not booking.google_event_id:
        return
    start, end = _event_window(booking)
    get_calendar().update_event(booking.google_event_id, _event_title(booking), start, end)


def _manage_link(booking) -> str:
    return email_templates.manage_link(current_app.config.get("APP_URL", ""), booking.booking_code, booking.customer_email)


def _send_booking_emails(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return
    notifier = get_notifier()
    service_name = booking.service.name if booking.service else "Consultation"
    notifier.send(
        booking.customer_email,
        f"Booking Confirmation - {email_templates.BUSINESS_NAME}",
        email_templates.confirmation_email(booking, service_name, _manage_link(booking)),
    )
    doctor_email = current_app.config.get("DOCTOR_EMAIL")
    if doctor_email:
        notifier.send(
            doctor_email,
            f"New Booking: {booking.customer_name}",
            email_templates.doctor_new_booking_email(booking, service_name),
        )


def _send_cancellation_email(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return
    get_notifier().send(
        booking.customer_email,
        f"Booking Cancelled - {email_templates.BUSINESS_NAME}",
        email_templates.cancellation_email(booking),
    )


def _send_reschedule_email(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return
    get_notifier().send(
        booking.customer_email,
        f"Booking Rescheduled - {email_templates.BUSINESS_NAME}",
        email_templates.reschedule_email(booking, _manage_link(booking)),
    )
