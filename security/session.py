import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.doctor_session import DoctorSession

def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def sweep_expired_sessions() -> int:
    """
    Deletes expired doctor sessions. Called lazily on every create/check.
    """
    count = (
        DoctorSession.query
        .filter(DoctorSession.expires_at <= datetime.utcnow())
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return count

def create_session():
    """
    Creates a server-side doctor session and returns (RAW token, expires_at).
    Only the hash is stored in DB.
    """
    sweep_expired_sessions()

    raw_token = secrets.token_hex(32)
    lifetime = current_app.config.get("DOCTOR_SESSION_LIFETIME_SECONDS", 86400)
    expires_at = datetime.utcnow() + timedelta(seconds=lifetime)

    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = (request.headers.get("User-Agent") or "")[:255]

    row = DoctorSession(
        token_hash=_hash_token(raw_token),
        expires_at=expires_at,
        ip=ip,
        user_agent=user_agent,
    )
    db.session.add(row)
    db.session.commit()
    return raw_token, expires_at

def token_from_request():
    auth = request.headers.get("Authorization") or ""
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return (request.headers.get("X-Doctor-Token") or "").strip() or None

def get_session_from_request():
    raw_token = token_from_request()
    if not raw_token:
        return None

    sweep_expired_sessions()

    sess = DoctorSession.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not sess or sess.expires_at <= datetime.utcnow():
        return None
    return sess


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    deleted = DoctorSession.query.filter_by(token_hash=_hash_token(raw_token)).delete()
    db.session.commit()
    return deleted > 0
