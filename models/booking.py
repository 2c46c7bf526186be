from datetime import datetime
from models.db import db

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    booking_code = db.Column(db.String(32), unique=True, nullable=False, index=True)  # PREFIX-YYYYMMDD-XXXX

    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    time = db.Column(db.String(5), nullable=False)               # HH:mm

    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(30), nullable=False)
    comments = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(20), nullable=False, default="confirmed")
    # status values: confirmed, cancelled

    # opaque secret for manage-booking links
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    google_event_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    service = db.relationship("Service")

    __table_args__ = (
        # Hard business-rule: one confirmed booking per date+time (prevents double booking)
        db.Index(
            "uq_bookings_confirmed_slot",
            "date",
            "time",
            unique=True,
            sqlite_where=db.text("status = 'confirmed'"),
            postgresql_where=db.text("status = 'confirmed'"),
        ),
    )

    def to_dict(self, include_token=False):
        out = {
            "id": self.id,
            "booking_code": self.booking_code,
            "service_id": self.service_id,
            "service_name": self.service.name if self.service else None,
            "date": self.date,
            "time": self.time,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "comments": self.comments,
            "status": self.status,
            "google_event_id": self.google_event_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
        }
        if include_token:
            out["token"] = self.token
        return out
