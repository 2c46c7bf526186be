import atexit
import logging

import click
from flask import Flask, jsonify
from flask_migrate import Migrate
from sqlalchemy import inspect

from config import Config
from routes import health_bp, auth_bp, admin_bp, booking_bp

from models import db
from models.booking import Booking
from scheduling.clock import Clock, parse_date
from scheduling.errors import BookingError
from scheduling.hours import WorkingHoursPolicy
from security.password import hash_password
from security.session import sweep_expired_sessions
from utils.calendar import CalendarMirror
from utils.emailer import Mailer
from utils.seed import seed_services
from utils.side_effects import SideEffectDispatcher


def configure_logging(level_name: str):
    logging.basicConfig(
        level=getattr(logging, (level_name or "INFO").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(config_object=Config, clock=None, calendar=None, notifier=None):
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app.config.get("LOG_LEVEL"))

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(booking_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Collaborators, owned by this app instance
    app.extensions["clock"] = clock or Clock(app.config.get("BUSINESS_TIMEZONE", "Asia/Kolkata"))
    app.extensions["working_hours"] = WorkingHoursPolicy(app.config.get("WORKING_HOURS"))
    app.extensions["notifier"] = notifier or Mailer.from_config(app.config)
    app.extensions["calendar"] = calendar or CalendarMirror.from_config(app.config)
    dispatcher = SideEffectDispatcher(app, max_workers=app.config.get("SIDE_EFFECT_WORKERS", 4))
    app.extensions["side_effects"] = dispatcher

    if not dispatcher.inline:
        atexit.register(dispatcher.shutdown)
    if calendar is None:
        atexit.register(app.extensions["calendar"].close)

    # Seed default services at startup (safe & idempotent)
    if app.config.get("SEED_SERVICES", True):
        with app.app_context():
            if inspect(db.engine).has_table("services"):
                seed_services()

    @app.errorhandler(BookingError)
    def _booking_error(err):
        return jsonify(error=err.message), err.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        # API only; the frontend is served separately
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------

def register_cli(app):
    @app.cli.command("seed-services")
    def seed_services_command():
        """Insert the default services if none exist."""
        added = seed_services()
        print(f"{added} service(s) added")

    @app.cli.command("hash-password")
    @click.argument("password")
    def hash_password_command(password):
        """Print a bcrypt hash to use as DOCTOR_PASSWORD_HASH."""
        print(hash_password(password))

    @app.cli.command("sweep-sessions")
    def sweep_sessions_command():
        """Delete expired doctor sessions."""
        print(f"{sweep_expired_sessions()} expired session(s) deleted")

    @app.cli.command("archive-calendar-events")
    @click.option("--before", "before", default=None, help="YYYY-MM-DD; defaults to today")
    def archive_calendar_events(before):
        """Mark mirrored calendar events of past bookings as archived."""
        cutoff = parse_date(before) if before else app.extensions["clock"].today()
        rows = (
            Booking.query
            .filter(Booking.date < cutoff.isoformat(), Booking.google_event_id.isnot(None))
            .order_by(Booking.date.asc())
            .all()
        )
        calendar = app.extensions["calendar"]
        archived = sum(1 for b in rows if calendar.archive_event(b.google_event_id))
        print(f"{archived}/{len(rows)} event(s) archived")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5000)
