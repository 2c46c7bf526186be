from flask import Blueprint, request, jsonify, current_app

from models import db
from models.service import Service
from models.enquiry import Enquiry
from scheduling import bookings as booking_ops
from scheduling.availability import slots_for
from scheduling.clock import format_time, parse_date
from scheduling.errors import ConflictError, ValidationError
from utils import email_templates
from utils.audit import log_event
from utils.collaborators import get_dispatcher, get_notifier

booking_bp = Blueprint("booking", __name__, url_prefix="/api")


def _truthy(value) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


# ---------- PUBLIC: services ----------
@booking_bp.get("/services")
def list_services():
    services = Service.query.order_by(Service.id.asc()).all()
    return jsonify([s.to_dict() for s in services]), 200


@booking_bp.get("/services/<int:service_id>")
def get_service(service_id: int):
    service = db.session.get(Service, service_id)
    if not service:
        return jsonify(error="Service not found"), 404
    return jsonify(service.to_dict()), 200


# ---------- PUBLIC: availability ----------
@booking_bp.get("/availability")
def availability():
    date_str = request.args.get("date")
    if not date_str:
        return jsonify(error="date is required"), 400
    day = parse_date(date_str)

    duration = current_app.config.get("DEFAULT_SLOT_DURATION_MINUTES", 60)
    raw_service_id = (request.args.get("service_id") or "").strip()
    if raw_service_id:
        if not raw_service_id.isdigit():
            raise ValidationError("service_id must be an integer")
        service = db.session.get(Service, int(raw_service_id))
        if not service:
            return jsonify(error="Service not found"), 404
        duration = service.duration

    slots = slots_for(day, duration)
    if _truthy(request.args.get("include_unavailable")):
        return jsonify(date=day.isoformat(), slots=[s.to_dict() for s in slots]), 200
    return jsonify(date=day.isoformat(), slots=[format_time(s.time) for s in slots if s.available]), 200


# ---------- PUBLIC: bookings (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("/bookings")
def create_booking():
    data = request.get_json(silent=True) or {}
    try:
        booking = booking_ops.create_booking(data)
    except ConflictError:
        log_event("BOOKING_FAIL_SLOT_TAKEN", actor="customer", entity="slot",
                  entity_id=f"{data.get('date')} {data.get('time')}")
        raise

    log_event("BOOKING_CREATE", actor="customer", entity="booking", entity_id=booking.id,
              metadata={"date": booking.date, "time": booking.time, "service_id": booking.service_id})
    return jsonify(booking.to_dict(include_token=True)), 201


@booking_bp.get("/bookings/<identifier>")
def get_booking(identifier: str):
    email = request.args.get("email")
    if not email:
        return jsonify(error="Email required"), 400
    booking = booking_ops.find_booking(identifier, email)
    return jsonify(booking.to_dict()), 200


@booking_bp.get("/bookings/manage/<token>")
def get_booking_by_token(token: str):
    booking = booking_ops.find_booking_by_token(token)
    return jsonify(booking.to_dict()), 200


@booking_bp.patch("/bookings/<identifier>/cancel")
def cancel_booking(identifier: str):
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    if not email:
        return jsonify(error="Email required"), 400

    booking = booking_ops.cancel_booking(identifier, email)
    log_event("BOOKING_CANCEL", actor="customer", entity="booking", entity_id=booking.id)
    return jsonify(booking.to_dict()), 200


@booking_bp.patch("/bookings/<identifier>/reschedule")
def reschedule_booking(identifier: str):
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    new_date = data.get("new_date")
    new_time = data.get("new_time")
    if not email or not new_date or not new_time:
        return jsonify(error="email, new_date and new_time are required"), 400

    booking = booking_ops.reschedule_booking(identifier, email, new_date, new_time)
    log_event("BOOKING_RESCHEDULE", actor="customer", entity="booking", entity_id=booking.id,
              metadata={"date": booking.date, "time": booking.time})
    return jsonify(booking.to_dict()), 200


# ---------- PUBLIC: contact form ----------
@booking_bp.post("/enquiries")
def create_enquiry():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    email = (data.get("email") or "").strip()
    phone = (data.get("phone") or "").strip()
    message = (data.get("message") or "").strip()

    if not name or not phone or not message:
        raise ValidationError("name, phone and message are required")
    if not booking_ops.is_valid_email(email):
        raise ValidationError("Invalid email address")
    if len(name) > 120 or len(phone) > 30:
        raise ValidationError("name or phone too long")

    enquiry = Enquiry(name=name, email=email, phone=phone, message=message)
    db.session.add(enquiry)
    db.session.commit()

    doctor_email = current_app.config.get("DOCTOR_EMAIL")
    if doctor_email:
        get_dispatcher().dispatch(
            "enquiry_email",
            get_notifier().send,
            doctor_email,
            f"New Enquiry: {enquiry.name}",
            email_templates.enquiry_email(enquiry),
        )

    log_event("ENQUIRY_CREATE", actor="customer", entity="enquiry", entity_id=enquiry.id)
    return jsonify(enquiry.to_dict()), 201
