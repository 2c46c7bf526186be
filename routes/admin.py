from flask import Blueprint, jsonify, request, Response

from models.enquiry import Enquiry
from scheduling import blocks as block_ops
from scheduling.bookings import list_bookings
from utils.audit import log_event
from utils.auth_context import doctor_required
from utils.reports import render_bookings_report

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# ---------- DOCTOR: bookings ----------
@admin_bp.get("/bookings")
@doctor_required
def admin_bookings():
    status = (request.args.get("status") or "").strip().lower() or None
    rows = list_bookings(status=status, day=request.args.get("date"))
    return jsonify([b.to_dict() for b in rows]), 200


@admin_bp.get("/bookings/report.pdf")
@doctor_required
def admin_bookings_report():
    status = (request.args.get("status") or "").strip().lower() or None
    rows = list_bookings(status=status, day=request.args.get("date"))
    pdf = render_bookings_report(rows)

    log_event("ADMIN_BOOKINGS_REPORT", actor="doctor", metadata={"count": len(rows)})
    return Response(
        pdf,
        mimetype="application/pdf",
        headers={"Content-Disposition": "attachment; filename=bookings-report.pdf"},
    )


@admin_bp.get("/enquiries")
@doctor_required
def admin_enquiries():
    rows = Enquiry.query.order_by(Enquiry.created_at.desc()).limit(200).all()
    return jsonify([e.to_dict() for e in rows]), 200


# ---------- DOCTOR: blocked dates / times ----------
@admin_bp.get("/blocked-dates")
@doctor_required
def list_blocked_dates():
    rows = block_ops.list_blocks(day=request.args.get("date"))
    return jsonify([b.to_dict() for b in rows]), 200


@admin_bp.post("/blocked-dates")
@doctor_required
def create_blocked_date():
    data = request.get_json(silent=True) or {}
    if not data.get("date"):
        return jsonify(error="Date is required"), 400

    block, overlaps = block_ops.create_block(
        data.get("date"),
        start_time=data.get("start_time"),
        end_time=data.get("end_time"),
        reason=data.get("reason"),
    )

    log_event("BLOCK_CREATE", actor="doctor", entity="blocked_range", entity_id=block.id,
              metadata={"overlapping_bookings": [b.booking_code for b in overlaps]} if overlaps else None)
    out = block.to_dict()
    out["overlapping_bookings"] = [b.to_dict() for b in overlaps]
    return jsonify(out), 201


@admin_bp.delete("/blocked-dates/<int:block_id>")
@doctor_required
def delete_blocked_date(block_id: int):
    block_ops.delete_block(block_id)
    log_event("BLOCK_DELETE", actor="doctor", entity="blocked_range", entity_id=block_id)
    return jsonify(message="Blocked date deleted"), 200
