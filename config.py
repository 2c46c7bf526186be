import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as clinicbook.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "clinicbook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Business calendar
    BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Asia/Kolkata")

    # weekday (Monday=0) -> (start_hour, end_hour), local time
    WORKING_HOURS = {
        0: (16, 18),
        1: (16, 18),
        2: (16, 18),
        3: (16, 18),
        4: (16, 18),
        5: (16, 18),
        6: (8, 10),
    }
    SLOT_STEP_MINUTES = 30
    DEFAULT_SLOT_DURATION_MINUTES = 60

    BOOKING_CODE_PREFIX = os.getenv("BOOKING_CODE_PREFIX", "AJIH")

    # Public URL used to build manage-booking links in emails
    APP_URL = os.getenv("APP_URL", "http://localhost:5000")

    # Doctor dashboard auth (set one of these)
    DOCTOR_PASSWORD = os.getenv("DOCTOR_PASSWORD")
    DOCTOR_PASSWORD_HASH = os.getenv("DOCTOR_PASSWORD_HASH")
    DOCTOR_EMAIL = os.getenv("DOCTOR_EMAIL")

    # 24 hours session lifetime
    DOCTOR_SESSION_LIFETIME_SECONDS = 24 * 60 * 60

    # Simple IP rate limit for the password check
    LOGIN_RATE_WINDOW_SECONDS = 60      # window size
    LOGIN_RATE_MAX_REQUESTS = 10        # max password checks per IP per window

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Google Calendar mirror (OAuth refresh-token flow)
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")
    GOOGLE_REFRESH_TOKEN = os.getenv("GOOGLE_REFRESH_TOKEN")
    GOOGLE_CALENDAR_ID = os.getenv("GOOGLE_CALENDAR_ID", "primary")

    # Post-commit side effects (emails, calendar); 0 runs them inline
    SIDE_EFFECT_WORKERS = int(os.getenv("SIDE_EFFECT_WORKERS", "4"))

    # Seed default services at startup when the table is empty
    SEED_SERVICES = os.getenv("SEED_SERVICES", "true").lower() == "true"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
