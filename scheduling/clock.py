import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from scheduling.errors import ValidationError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Clock:
    """Current local date/time in the business timezone."""

    def __init__(self, tz_name: str = "Asia/Kolkata"):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def localize(self, day: date, at: time) -> datetime:
        return datetime.combine(day, at, tzinfo=self.tz)


class FixedClock(Clock):
    """Clock frozen at a given local wall time (CLI dry runs and tests)."""

    def __init__(self, frozen: datetime, tz_name: str = "Asia/Kolkata"):
        super().__init__(tz_name)
        if frozen.tzinfo is None:
            frozen = frozen.replace(tzinfo=self.tz)
        self.frozen = frozen

    def now(self) -> datetime:
        return self.frozen


def parse_date(value) -> date:
    # Expect "YYYY-MM-DD"
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValidationError("Invalid date. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Invalid date. Use YYYY-MM-DD")


def parse_time(value) -> time:
    # Expect 24h "HH:mm"
    if not isinstance(value, str) or not _TIME_RE.match(value.strip()):
        raise ValidationError("Invalid time. Use HH:mm")
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


def format_date(value: date) -> str:
    return value.isoformat()


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


def format_12_hour(value: str) -> str:
    """'16:30' -> '4:30 PM'"""
    t = parse_time(value)
    period = "PM" if t.hour >= 12 else "AM"
    hour = t.hour % 12 or 12
    return f"{hour}:{t.minute:02d} {period}"
