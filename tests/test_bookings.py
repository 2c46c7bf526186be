"""Tests for booking creation, lookup, cancellation and reschedule."""

import re
from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from models import db
from models.blocked_range import BlockedRange
from models.booking import Booking
from scheduling import bookings as ops
from scheduling.errors import ConflictError, NotFoundError, ValidationError
from tests.helpers import MONDAY, PAST_SATURDAY, SUNDAY, TUESDAY, booking_payload


def confirmed_at(date, time):
    return Booking.query.filter_by(date=date, time=time, status="confirmed").count()


class TestCreateBooking:
    def test_creates_confirmed_booking(self, app, hour_service):
        booking = ops.create_booking(booking_payload(hour_service.id))

        assert re.match(r"^AJIH-20260302-[0-9A-F]{4}$", booking.booking_code)
        assert re.match(r"^[0-9a-f]{64}$", booking.token)
        assert booking.status == "confirmed"
        assert (booking.date, booking.time) == (MONDAY, "16:00")

    def test_mirrors_calendar_event_and_stores_id(self, app, hour_service, calendar):
        booking = ops.create_booking(booking_payload(hour_service.id, time="16:30"))

        assert calendar.names() == ["add_event"]
        _, title, start, end = calendar.calls[0]
        assert title == "Asha Verma - General Acupuncture"
        assert start == datetime(2026, 3, 2, 16, 30)
        assert end == datetime(2026, 3, 2, 17, 30)
        assert db.session.get(Booking, booking.id).google_event_id == "evt-1"

    def test_notifies_customer_and_doctor(self, app, hour_service, notifier):
        booking = ops.create_booking(booking_payload(hour_service.id))

        recipients = [to for to, _, _ in notifier.sent]
        assert recipients == ["asha@example.com", "doctor@example.com"]
        confirmation = notifier.sent[0][2]
        assert booking.booking_code in confirmation
        assert "4:00 PM" in confirmation
        assert "https://clinic.example/manage-booking?id=" in confirmation

    def test_same_slot_twice_conflicts(self, app, hour_service):
        ops.create_booking(booking_payload(hour_service.id))
        with pytest.raises(ConflictError):
            ops.create_booking(booking_payload(hour_service.id, email="ravi@example.com"))
        assert confirmed_at(MONDAY, "16:00") == 1

    def test_conflicts_are_global_across_services(self, app, hour_service, half_hour_service):
        ops.create_booking(booking_payload(hour_service.id))
        with pytest.raises(ConflictError):
            ops.create_booking(booking_payload(half_hour_service.id, email="ravi@example.com"))

    def test_store_guard_catches_race_past_the_precheck(self, app, hour_service, monkeypatch):
        ops.create_booking(booking_payload(hour_service.id))
        # simulate a concurrent request that read availability before the first commit
        monkeypatch.setattr(ops, "_check_slot", lambda *args, **kwargs: None)

        with pytest.raises(ConflictError):
            ops.create_booking(booking_payload(hour_service.id, email="ravi@example.com"))
        assert confirmed_at(MONDAY, "16:00") == 1

    def test_unique_index_rejects_duplicate_confirmed_rows(self, app, hour_service):
        for code, token in (("AJIH-20260302-0001", "a" * 64), ("AJIH-20260302-0002", "b" * 64)):
            db.session.add(Booking(
                booking_code=code, service_id=hour_service.id, date=MONDAY, time="16:00",
                customer_name="X Y", customer_email="x@example.com", customer_phone="9876543210",
                status="confirmed", token=token,
            ))
        with pytest.raises(IntegrityError):
            db.session.commit()
        db.session.rollback()

    def test_cancelled_rows_do_not_hold_the_slot(self, app, hour_service):
        first = ops.create_booking(booking_payload(hour_service.id))
        ops.cancel_booking(first.booking_code, "asha@example.com")
        second = ops.create_booking(booking_payload(hour_service.id, email="ravi@example.com"))
        assert second.status == "confirmed"
        assert Booking.query.filter_by(date=MONDAY, time="16:00").count() == 2

    @pytest.mark.parametrize("time", ["19:00", "16:15", "17:30"])
    def test_time_must_be_an_offered_slot(self, app, hour_service, time):
        # 17:30 + 60 minutes would overrun the 18:00 close
        with pytest.raises(ValidationError):
            ops.create_booking(booking_payload(hour_service.id, time=time))

    def test_half_hour_service_may_take_last_slot(self, app, half_hour_service):
        assert ops.create_booking(booking_payload(half_hour_service.id, time="17:30")).time == "17:30"

    def test_full_day_block_conflicts(self, app, hour_service):
        db.session.add(BlockedRange(date=MONDAY, reason="Leave"))
        db.session.commit()
        with pytest.raises(ConflictError):
            ops.create_booking(booking_payload(hour_service.id))

    def test_partial_block_conflicts_only_inside_range(self, app, half_hour_service):
        db.session.add(BlockedRange(date=MONDAY, start_time="16:00", end_time="16:30"))
        db.session.commit()
        with pytest.raises(ConflictError):
            ops.create_booking(booking_payload(half_hour_service.id, time="16:00"))
        assert ops.create_booking(booking_payload(half_hour_service.id, time="16:30")).status == "confirmed"

    def test_past_slot_rejected(self, app, hour_service):
        with pytest.raises(ValidationError):
            ops.create_booking(booking_payload(hour_service.id, date=PAST_SATURDAY))

    def test_same_day_future_slot_allowed(self, app, hour_service):
        assert ops.create_booking(booking_payload(hour_service.id, date=SUNDAY, time="08:00")).date == SUNDAY

    @pytest.mark.parametrize("field,value", [
        ("customer_name", "A"),
        ("customer_email", "not-an-email"),
        ("customer_phone", "12345"),
        ("date", "02/03/2026"),
        ("time", "4pm"),
        ("service_id", None),
    ])
    def test_validation(self, app, hour_service, field, value):
        payload = booking_payload(hour_service.id)
        payload[field] = value
        with pytest.raises(ValidationError):
            ops.create_booking(payload)

    def test_unknown_service(self, app):
        with pytest.raises(ValidationError):
            ops.create_booking(booking_payload(999))

    def test_calendar_failure_keeps_booking(self, app, hour_service, calendar):
        calendar.fail = True
        booking = ops.create_booking(booking_payload(hour_service.id))

        stored = db.session.get(Booking, booking.id)
        assert stored.status == "confirmed"
        assert stored.google_event_id is None

    def test_email_failure_keeps_booking(self, app, hour_service, notifier, calendar):
        notifier.fail = True
        booking = ops.create_booking(booking_payload(hour_service.id))

        assert db.session.get(Booking, booking.id).status == "confirmed"
        # the calendar task still runs after the email task failed
        assert calendar.names() == ["add_event"]


class TestFindBooking:
    def test_by_code_and_by_id(self, app, hour_service):
        booking = ops.create_booking(booking_payload(hour_service.id))
        assert ops.find_booking(booking.booking_code, "asha@example.com").id == booking.id
        assert ops.find_booking(booking.booking_code.lower(), "asha@example.com").id == booking.id
        assert ops.find_booking(str(booking.id), "asha@example.com").id == booking.id

    def test_email_match_is_case_insensitive(self, app, hour_service):
        booking = ops.create_booking(booking_payload(hour_service.id))
        assert ops.find_booking(booking.booking_code, "  ASHA@Example.com ").id == booking.id

    def test_wrong_email_looks_like_missing_booking(self, app, hour_service):
        booking = ops.create_booking(booking_payload(hour_service.id))

        with pytest.raises(NotFoundError) as wrong_email:
            ops.find_booking(booking.booking_code, "someone@example.com")
        with pytest.raises(NotFoundError) as missing:
            ops.find_booking("AJIH-20990101-FFFF", "asha@example.com")
        with pytest.raises(NotFoundError) as missing_id:
            ops.find_booking("4242", "asha@example.com")

        assert str(wrong_email.value) == str(missing.value) == str(missing_id.value)

    def test_by_token(self, app, hour_service):
        booking = ops.create_booking(booking_payload(hour_service.id))
        assert ops.find_booking_by_token(booking.token).id == booking.id
        with pytest.raises(NotFoundError):
            ops.find_booking_by_token("nope")
        with pytest.raises(NotFoundError):
            ops.find_booking_by_token("")


class TestCancelBooking:
    def test_cancel(self, app, hour_service, notifier):
        booking = ops.create_booking(booking_payload(hour_service.id))
        cancelled = ops.cancel_booking(booking.booking_code, "ASHA@example.com")

        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_at is not None
        assert notifier.sent[-1][1].startswith("Booking Cancelled")

    def test_cancel_removes_mirrored_event_exactly_once(self, app, hour_service, calendar):
        booking = ops.create_booking(booking_payload(hour_service.id))
        ops.cancel_booking(booking.id, "asha@example.com")
        assert calendar.names() == ["add_event", "remove_event"]
        assert calendar.calls[1] == ("remove_event", "evt-1")

        with pytest.raises(ConflictError):
            ops.cancel_booking(booking.id, "asha@example.com")
        with pytest.raises(ConflictError):
            ops.reschedule_booking(booking.id, "asha@example.com", TUESDAY, "16:00")

        # nothing touched the calendar after the cancellation
        assert calendar.names() == ["add_event", "remove_event"]
        assert db.session.get(Booking, booking.id).date == MONDAY

    def test_cancel_without_mirror_skips_calendar(self, app, hour_service, calendar):
        calendar.fail = True
        booking = ops.create_booking(booking_payload(hour_service.id))
        calendar.fail = False
        ops.cancel_booking(booking.id, "asha@example.com")
        assert "remove_event" not in calendar.names()

    def test_cancel_wrong_email(self, app, hour_service):
        booking = ops.create_booking(booking_payload(hour_service.id))
        with pytest.raises(NotFoundError):
            ops.cancel_booking(booking.id, "ravi@example.com")
        assert db.session.get(Booking, booking.id).status == "confirmed"


class TestRescheduleBooking:
    def test_moves_booking_in_place(self, app, hour_service, calendar):
        booking = ops.create_booking(booking_payload(hour_service.id))
        code, token = booking.booking_code, booking.token

        moved = ops.reschedule_booking(code, "asha@example.com", TUESDAY, "17:00")

        assert (moved.date, moved.time) == (TUESDAY, "17:00")
        assert (moved.booking_code, moved.token, moved.status) == (code, token, "confirmed")
        assert calendar.calls[-1] == ("update_event", "evt-1", datetime(2026, 3, 3, 17, 0), datetime(2026, 3, 3, 18, 0))
        assert confirmed_at(MONDAY, "16:00") == 0

    def test_conflict_leaves_booking_unchanged(self, app, hour_service):
        a = ops.create_booking(booking_payload(hour_service.id, time="16:00"))
        ops.create_booking(booking_payload(hour_service.id, time="17:00", email="ravi@example.com"))

        with pytest.raises(ConflictError):
            ops.reschedule_booking(a.id, "asha@example.com", MONDAY, "17:00")

        db.session.expire_all()
        stored = db.session.get(Booking, a.id)
        assert (stored.date, stored.time, stored.status) == (MONDAY, "16:00", "confirmed")

    def test_store_guard_on_reschedule(self, app, hour_service, monkeypatch):
        a = ops.create_booking(booking_payload(hour_service.id, time="16:00"))
        ops.create_booking(booking_payload(hour_service.id, time="17:00", email="ravi@example.com"))
        monkeypatch.setattr(ops, "_check_slot", lambda *args, **kwargs: None)

        with pytest.raises(ConflictError):
            ops.reschedule_booking(a.id, "asha@example.com", MONDAY, "17:00")

        stored = db.session.get(Booking, a.id)
        assert (stored.date, stored.time) == (MONDAY, "16:00")

    def test_own_slot_is_not_a_conflict(self, app, hour_service):
        a = ops.create_booking(booking_payload(hour_service.id, time="16:00"))
        assert ops.reschedule_booking(a.id, "asha@example.com", MONDAY, "16:00").time == "16:00"

    def test_into_blocked_range(self, app, hour_service):
        a = ops.create_booking(booking_payload(hour_service.id))
        db.session.add(BlockedRange(date=TUESDAY, start_time="16:00", end_time="17:00"))
        db.session.commit()
        with pytest.raises(ConflictError):
            ops.reschedule_booking(a.id, "asha@example.com", TUESDAY, "16:30")

    def test_wrong_email(self, app, hour_service):
        a = ops.create_booking(booking_payload(hour_service.id))
        with pytest.raises(NotFoundError):
            ops.reschedule_booking(a.id, "ravi@example.com", TUESDAY, "16:00")


def test_list_bookings_filters(app, hour_service):
    a = ops.create_booking(booking_payload(hour_service.id, time="17:00"))
    ops.create_booking(booking_payload(hour_service.id, time="16:00", email="ravi@example.com"))
    ops.create_booking(booking_payload(hour_service.id, date=TUESDAY, email="mia@example.com"))
    ops.cancel_booking(a.id, "asha@example.com")

    assert [b.time for b in ops.list_bookings(day=MONDAY)] == ["16:00", "17:00"]
    assert [b.date for b in ops.list_bookings(status="confirmed")] == [MONDAY, TUESDAY]
    assert len(ops.list_bookings(status="cancelled")) == 1


def test_cancel_while_mirroring_removes_the_new_event(app, hour_service, calendar, monkeypatch):
    add_event = calendar.add_event

    def add_then_cancel(title, start, end, description=None):
        event_id = add_event(title, start, end, description=description)
        # the customer cancels before the event id is stored
        Booking.query.update({"status": "cancelled"})
        db.session.commit()
        return event_id

    monkeypatch.setattr(calendar, "add_event", add_then_cancel)
    booking = ops.create_booking(booking_payload(hour_service.id))

    assert calendar.calls == [
        ("add_event", "Asha Verma - General Acupuncture", datetime(2026, 3, 2, 16, 0), datetime(2026, 3, 2, 17, 0)),
        ("remove_event", "evt-1"),
    ]
    assert db.session.get(Booking, booking.id).google_event_id is None


def test_code_collision_retries_with_a_new_code(app, hour_service, monkeypatch):
    taken = ops.create_booking(booking_payload(hour_service.id, time="17:00"))
    codes = iter([taken.booking_code, "AJIH-20260302-BEEF"])
    monkeypatch.setattr(ops, "_unique_booking_code", lambda day: next(codes))

    booking = ops.create_booking(booking_payload(hour_service.id, time="16:00", email="ravi@example.com"))

    assert booking.booking_code == "AJIH-20260302-BEEF"
    assert confirmed_at(MONDAY, "16:00") == 1


def test_code_collision_gives_up_after_retries(app, hour_service, monkeypatch):
    taken = ops.create_booking(booking_payload(hour_service.id, time="17:00"))
    monkeypatch.setattr(ops, "_unique_booking_code", lambda day: taken.booking_code)

    with pytest.raises(ConflictError, match="booking code"):
        ops.create_booking(booking_payload(hour_service.id, time="16:00", email="ravi@example.com"))
    assert confirmed_at(MONDAY, "16:00") == 0


def test_lowercase_code_prefix_is_normalised(app, hour_service):
    app.config["BOOKING_CODE_PREFIX"] = "clinic"
    booking = ops.create_booking(booking_payload(hour_service.id))

    assert booking.booking_code.startswith("CLINIC-20260302-")
    assert ops.find_booking(booking.booking_code, "asha@example.com").id == booking.id
    assert ops.find_booking(booking.booking_code.lower(), "asha@example.com").id == booking.id
