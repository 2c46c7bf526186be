from datetime import datetime
from models.db import db

class DoctorSession(db.Model):
    __tablename__ = "doctor_sessions"

    id = db.Column(db.Integer, primary_key=True)

    # store only hashed token in DB (never store raw token)
    token_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
