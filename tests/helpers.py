from datetime import datetime

from config import Config

# 2026-03-01 is a Sunday; the clock sits before Sunday's 08:00 opening.
FROZEN_NOW = datetime(2026, 3, 1, 7, 0)
SUNDAY = "2026-03-01"
MONDAY = "2026-03-02"
TUESDAY = "2026-03-03"
SATURDAY = "2026-03-07"
PAST_SATURDAY = "2026-02-28"


def booking_payload(service_id, date=MONDAY, time="16:00", email="asha@example.com", **extra):
    payload = {
        "service_id": service_id,
        "date": date,
        "time": time,
        "customer_name": "Asha Verma",
        "customer_email": email,
        "customer_phone": "+91 98765 43210",
    }
    payload.update(extra)
    return payload


class BookingTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SIDE_EFFECT_WORKERS = 0
    SEED_SERVICES = False
    DOCTOR_PASSWORD = "open-sesame"
    DOCTOR_PASSWORD_HASH = None
    DOCTOR_EMAIL = "doctor@example.com"
    APP_URL = "https://clinic.example"
    LOG_LEVEL = "WARNING"


class FakeCalendar:
    """Records every call; ``fail=True`` makes each call raise."""

    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []
        self._next = 0

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail:
            raise RuntimeError("calendar unreachable")

    def add_event(self, title, start, end, description=None):
        self._record("add_event", title, start, end)
        self._next += 1
        return f"evt-{self._next}"

    def update_event(self, event_id, title, start, end, description=None):
        self._record("update_event", event_id, start, end)
        return True

    def remove_event(self, event_id):
        self._record("remove_event", event_id)
        return True

    def archive_event(self, event_id):
        self._record("archive_event", event_id)
        return True

    def names(self):
        return [c[0] for c in self.calls]


class FakeNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, to_email, subject, html):
        self.sent.append((to_email, subject, html))
        if self.fail:
            raise RuntimeError("smtp down")
        return True
