import logging

from flask import Blueprint, request, jsonify

from security.password import doctor_auth_configured, verify_doctor_password
from security.rate_limit import check_and_increment
from security.session import create_session, revoke_session, token_from_request
from utils.audit import log_event
from utils.auth_context import doctor_required

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/doctor")


@auth_bp.post("/verify")
def verify():
    data = request.get_json(silent=True) or {}
    password = data.get("password")

    if not doctor_auth_configured():
        logger.error("DOCTOR_PASSWORD / DOCTOR_PASSWORD_HASH is not configured")
        return jsonify(error="Server configuration error"), 500

    allowed, retry_after = check_and_increment("doctor_verify")
    if not allowed:
        log_event("DOCTOR_LOGIN_RATE_LIMIT", metadata={"retry_after": retry_after})
        return jsonify(error="Too many attempts. Slow down.", retry_after_seconds=retry_after), 429

    if not verify_doctor_password(password):
        log_event("DOCTOR_LOGIN_FAIL")
        return jsonify(error="Invalid password"), 401

    raw_token, expires_at = create_session()
    log_event("DOCTOR_LOGIN_SUCCESS", actor="doctor")
    return jsonify(token=raw_token, expires_at=expires_at.isoformat()), 200


@auth_bp.post("/logout")
@doctor_required
def logout():
    revoke_session(token_from_request())
    log_event("DOCTOR_LOGOUT", actor="doctor")
    return jsonify(message="Logged out"), 200
