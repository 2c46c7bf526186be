"""Shared fixtures: app with in-memory SQLite, frozen clock, recording collaborators."""


import pytest

from app import create_app
from models import db
from models.service import Service
from scheduling.clock import FixedClock
from utils.seed import seed_services

from tests.helpers import FROZEN_NOW, BookingTestConfig, FakeCalendar, FakeNotifier


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(calendar, notifier):
    app = create_app(
        BookingTestConfig,
        clock=FixedClock(FROZEN_NOW, BookingTestConfig.BUSINESS_TIMEZONE),
        calendar=calendar,
        notifier=notifier,
    )
    with app.app_context():
        db.create_all()
        seed_services()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    """Seeded services keyed by name."""
    return {s.name: s for s in Service.query.all()}


@pytest.fixture
def hour_service(services):
    return services["General Acupuncture"]


@pytest.fixture
def half_hour_service(services):
    return services["Stress Relief Session"]

