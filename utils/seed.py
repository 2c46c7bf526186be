from models import db
from models.service import Service

DEFAULT_SERVICES = [
    {"name": "General Acupuncture", "duration": 60, "description": "Holistic acupuncture treatment for general wellness."},
    {"name": "Pain Management", "duration": 60, "description": "Targeted therapy for chronic and acute pain relief."},
    {"name": "Stress Relief Session", "duration": 30, "description": "Calming session focused on stress and anxiety reduction."},
    {"name": "Cupping Therapy", "duration": 30, "description": "Traditional suction cup therapy for blood flow and relaxation."},
]

def seed_services() -> int:
    """Inserts the default services when the table is empty. Returns rows added."""
    if Service.query.first() is not None:
        return 0
    for row in DEFAULT_SERVICES:
        db.session.add(Service(price="Contact for pricing", **row))
    db.session.commit()
    return len(DEFAULT_SERVICES)
