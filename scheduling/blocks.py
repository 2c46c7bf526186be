import logging

from models import db
from models.blocked_range import BlockedRange
from models.booking import Booking
from scheduling.availability import slot_window
from scheduling.clock import format_date, format_time, parse_date, parse_time
from scheduling.errors import NotFoundError, ValidationError
from utils.calendar import all_day_span
from utils.collaborators import get_calendar, get_dispatcher

logger = logging.getLogger(__name__)


def list_blocks(day=None):
    q = BlockedRange.query
    if day:
        q = q.filter(BlockedRange.date == format_date(parse_date(day)))
    return q.order_by(BlockedRange.date.asc(), BlockedRange.start_time.asc()).all()


def overlapping_bookings(block: BlockedRange):
    """Confirmed bookings whose start falls inside ``block``."""
    q = Booking.query.filter(Booking.date == block.date, Booking.status == "confirmed")
    if not block.is_full_day:
        q = q.filter(Booking.time >= block.start_time, Booking.time < block.end_time)
    return q.order_by(Booking.time.asc()).all()


def create_block(date, start_time=None, end_time=None, reason=None):
    """
    Block a whole day (no times) or the range [start_time, end_time).

    Existing confirmed bookings inside the block are left untouched; they
    are returned alongside the new block so the caller can follow up.
    """
    day = parse_date(date)
    start_time = (start_time or "").strip() or None
    end_time = (end_time or "").strip() or None
    reason = (reason or "").strip() or None

    if bool(start_time) != bool(end_time):
        raise ValidationError("start_time and end_time must be given together")

    if start_time:
        start = parse_time(start_time)
        end = parse_time(end_time)
        if start >= end:
            raise ValidationError("start_time must be before end_time")
        start_time, end_time = format_time(start), format_time(end)

    if reason and len(reason) > 255:
        raise ValidationError("reason must be at most 255 characters")

    block = BlockedRange(date=format_date(day), start_time=start_time, end_time=end_time, reason=reason)
    db.session.add(block)
    db.session.commit()

    overlaps = overlapping_bookings(block)
    if overlaps:
        logger.warning(
            "Block %s on %s overlaps %d confirmed booking(s): %s",
            block.id,
            block.date,
            len(overlaps),
            ", ".join(b.booking_code for b in overlaps),
        )

    get_dispatcher().dispatch("calendar_add_block", _mirror_block, block.id)
    return block, overlaps


def delete_block(block_id: int):
    block = db.session.get(BlockedRange, block_id)
    if not block:
        raise NotFoundError("Blocked date not found")

    event_id = block.google_event_id
    db.session.delete(block)
    db.session.commit()

    if event_id:
        get_dispatcher().dispatch("calendar_remove_block", get_calendar().remove_event, event_id)


def _mirror_block(block_id: int):
    block = db.session.get(BlockedRange, block_id)
    if not block:
        return

    day = parse_date(block.date)
    if block.is_full_day:
        start, end = all_day_span(day)
        title = f"BLOCKED – {block.reason or 'Leave'}"
        description = block.reason or "Doctor on leave"
    else:
        start, _ = slot_window(day, parse_time(block.start_time), 0)
        end, _ = slot_window(day, parse_time(block.end_time), 0)
        title = f"BLOCKED – {block.reason or 'Unavailable'}"
        description = block.reason or "Doctor unavailable"

    event_id = get_calendar().add_event(title, start, end, description=description)
    if event_id:
        block.google_event_id = event_id
        db.session.commit()
