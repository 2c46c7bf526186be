"""
Slot availability for a single date.

``compute_slots`` is a pure function over booking and blocked-range snapshots.
``slots_for`` loads those snapshots from the database and also hides slots
that have already started.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, NamedTuple, Optional

from flask import current_app

from models.blocked_range import BlockedRange
from models.booking import Booking
from scheduling.clock import format_time, parse_time
from scheduling.hours import WorkingHoursPolicy
from utils.collaborators import get_clock, get_working_hours

SLOT_STEP_MINUTES = 30


class Slot(NamedTuple):
    time: time
    available: bool

    def to_dict(self):
        return {"time": format_time(self.time), "available": self.available}


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def has_full_day_block(blocks: Iterable) -> bool:
    return any(not b.start_time and not b.end_time for b in blocks)


def _partial_ranges(blocks: Iterable):
    ranges = []
    for b in blocks:
        if b.start_time and b.end_time:
            ranges.append((_minutes(parse_time(b.start_time)), _minutes(parse_time(b.end_time))))
    return ranges


def compute_slots(
    day: date,
    duration_minutes: int,
    bookings: Iterable,
    blocks: Iterable,
    policy: WorkingHoursPolicy,
    step_minutes: int = SLOT_STEP_MINUTES,
) -> List[Slot]:
    """
    Tile the working window for ``day`` and mark each start time.

    ``bookings`` and ``blocks`` are snapshots for ``day`` only: anything with
    ``time``/``status`` and ``start_time``/``end_time`` attributes respectively.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")

    blocks = list(blocks)
    # Full-day block wins before any tiling
    if has_full_day_block(blocks):
        return []

    window = policy.window_for(day)
    if window is None:
        return []
    start, end = _minutes(window[0]), _minutes(window[1])

    taken = {_minutes(parse_time(b.time)) for b in bookings if b.status == "confirmed"}
    partial = _partial_ranges(blocks)

    slots = []
    t = start
    while t < end:
        # slot must fit entirely inside the window
        if t + duration_minutes > end:
            break
        blocked = any(block_start <= t < block_end for block_start, block_end in partial)
        slots.append(Slot(time(t // 60, t % 60), not (t in taken or blocked)))
        t += step_minutes
    return slots


def bookings_on(day: date, exclude_booking_id: Optional[int] = None) -> List[Booking]:
    q = Booking.query.filter(Booking.date == day.isoformat(), Booking.status == "confirmed")
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    return q.all()


def blocks_on(day: date) -> List[BlockedRange]:
    return BlockedRange.query.filter_by(date=day.isoformat()).all()


def slots_for(day: date, duration_minutes: int, exclude_booking_id: Optional[int] = None) -> List[Slot]:
    """Store-backed availability; slots that have already started are unavailable."""
    slots = compute_slots(
        day,
        duration_minutes,
        bookings_on(day, exclude_booking_id),
        blocks_on(day),
        get_working_hours(),
        current_app.config.get("SLOT_STEP_MINUTES", SLOT_STEP_MINUTES),
    )

    clock = get_clock()
    now = clock.now()
    return [
        s if clock.localize(day, s.time) > now else Slot(s.time, False)
        for s in slots
    ]


def slot_window(day: date, at: time, duration_minutes: int):
    """Naive local (start, end) datetimes for a booked slot."""
    start = datetime.combine(day, at)
    return start, start + timedelta(minutes=duration_minutes)
