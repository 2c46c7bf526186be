from datetime import datetime
from models.db import db

class BlockedRange(db.Model):
    __tablename__ = "blocked_ranges"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD

    # both null -> whole day blocked; both set -> [start_time, end_time)
    start_time = db.Column(db.String(5), nullable=True)
    end_time = db.Column(db.String(5), nullable=True)
    reason = db.Column(db.String(255), nullable=True)

    google_event_id = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def is_full_day(self):
        return not self.start_time and not self.end_time

    def to_dict(self):
        return {
            "id": self.id,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "reason": self.reason,
            "full_day": self.is_full_day,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
