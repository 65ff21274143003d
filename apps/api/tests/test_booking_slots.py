"""Tests for slot generation on the public booking page."""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from freelance_os.db.enums import BookingStatus
from freelance_os.db.models import AvailabilitySettings, Booking
from freelance_os.services import booking_service
from freelance_os.services.booking_service import DayWindow, build_day_slots


UTC = ZoneInfo("UTC")
DAY = date(2025, 3, 10)  # Monday
BEFORE_DAY = datetime(2025, 3, 1, tzinfo=timezone.utc)
NINE_TO_TWELVE = DayWindow(time(9, 0), time(12, 0))


def _booking(hour: int, minute: int = 0, duration: int | None = 30, status=BookingStatus.CONFIRMED):
    return Booking(
        id=uuid.uuid4(),
        client_name="Visitor",
        client_email="visitor@example.com",
        scheduled_at=datetime(2025, 3, 10, hour, minute, tzinfo=timezone.utc),
        duration_minutes=duration,
        status=status.value,
    )


# =============================================================================
# build_day_slots
# =============================================================================

def test_no_window_returns_no_slots():
    assert build_day_slots(DAY, None, 30, 15, [], UTC, BEFORE_DAY) == []


def test_slots_step_by_duration_plus_buffer():
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [], UTC, BEFORE_DAY)

    assert [s.time for s in slots] == ["09:00", "09:45", "10:30", "11:15"]
    assert all(s.available for s in slots)


def test_slot_may_start_close_to_window_end():
    window = DayWindow(time(9, 0), time(10, 0))
    slots = build_day_slots(DAY, window, 45, 0, [], UTC, BEFORE_DAY)

    # 09:45 still starts before the window closes
    assert [s.time for s in slots] == ["09:00", "09:45"]


def test_zero_buffer_packs_slots():
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 60, 0, [], UTC, BEFORE_DAY)
    assert [s.time for s in slots] == ["09:00", "10:00", "11:00"]


def test_booking_blocks_overlapping_slot():
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [_booking(9, 45)], UTC, BEFORE_DAY)
    availability = {s.time: s.available for s in slots}

    assert availability == {"09:00": True, "09:45": False, "10:30": True, "11:15": True}


def test_partial_overlap_blocks_slot():
    # 10:15-10:45 overlaps the 10:30 slot
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [_booking(10, 15)], UTC, BEFORE_DAY)
    availability = {s.time: s.available for s in slots}

    assert availability["09:45"] is True
    assert availability["10:30"] is False


def test_touching_booking_does_not_block():
    # 09:30-09:45 ends exactly when the 09:45 slot starts
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [_booking(9, 30, duration=15)], UTC, BEFORE_DAY)
    availability = {s.time: s.available for s in slots}

    assert availability["09:00"] is True
    assert availability["09:45"] is True


def test_booking_without_duration_counts_thirty_minutes():
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [_booking(9, 20, duration=None)], UTC, BEFORE_DAY)
    availability = {s.time: s.available for s in slots}

    assert availability["09:00"] is False
    assert availability["09:45"] is False
    assert availability["10:30"] is True


def test_cancelled_booking_does_not_block():
    cancelled = _booking(9, 0, status=BookingStatus.CANCELLED)
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [cancelled], UTC, BEFORE_DAY)
    assert slots[0].available is True


def test_past_slots_unavailable():
    now = datetime(2025, 3, 10, 10, 0, tzinfo=timezone.utc)
    slots = build_day_slots(DAY, NINE_TO_TWELVE, 30, 15, [], UTC, now)
    availability = {s.time: s.available for s in slots}

    assert availability == {"09:00": False, "09:45": False, "10:30": True, "11:15": True}


def test_slots_use_local_timezone():
    berlin = ZoneInfo("Europe/Berlin")
    slots = build_day_slots(DAY, DayWindow(time(9, 0), time(10, 0)), 30, 0, [], berlin, BEFORE_DAY)

    assert slots[0].time == "09:00"
    assert slots[0].start == datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)


def test_non_positive_step_rejected():
    with pytest.raises(ValueError):
        build_day_slots(DAY, NINE_TO_TWELVE, 0, 0, [], UTC, BEFORE_DAY)


# =============================================================================
# Settings Defaults
# =============================================================================

def test_slot_config_defaults():
    config = booking_service.slot_config(AvailabilitySettings(
        working_hours={},
        default_duration=None,
        buffer_minutes=None,
        timezone=None,
        blocked_dates=[],
    ))
    assert config.duration == 30
    assert config.buffer == 15
    assert config.tz.key == "UTC"


def test_slot_config_keeps_zero_buffer():
    config = booking_service.slot_config(AvailabilitySettings(
        working_hours={},
        default_duration=0,
        buffer_minutes=0,
        timezone="Europe/Berlin",
        blocked_dates=["2025-03-10", "not-a-date"],
    ))
    assert config.duration == 30
    assert config.buffer == 0
    assert config.blocked_dates == frozenset({DAY})


# =============================================================================
# Database-backed Slots
# =============================================================================

def _configure(db, user, **overrides):
    values = {
        "user_id": user.id,
        "working_hours": {"mon": {"start": "09:00", "end": "12:00"}},
        "default_duration": 30,
        "buffer_minutes": 15,
        "timezone": "UTC",
        "blocked_dates": [],
    }
    values.update(overrides)
    availability = AvailabilitySettings(**values)
    db.add(availability)
    db.commit()
    return availability


def test_unconfigured_user_has_no_slots(db, test_user):
    assert booking_service.get_available_slots(db, test_user.id, DAY, now=BEFORE_DAY) == []

    response = booking_service.get_day_slots(db, test_user.id, DAY, now=BEFORE_DAY)
    assert response.configured is False
    assert response.slots == []


def test_day_without_working_hours_has_no_slots(db, test_user):
    _configure(db, test_user)
    tuesday = DAY + timedelta(days=1)
    assert booking_service.get_available_slots(db, test_user.id, tuesday, now=BEFORE_DAY) == []


def test_blocked_date_has_no_slots(db, test_user):
    _configure(db, test_user, blocked_dates=[DAY.isoformat()])
    assert booking_service.get_available_slots(db, test_user.id, DAY, now=BEFORE_DAY) == []


def test_malformed_stored_window_has_no_slots(db, test_user):
    _configure(db, test_user, working_hours={"mon": {"start": "09:00", "end": "25:99"}})
    assert booking_service.get_available_slots(db, test_user.id, DAY, now=BEFORE_DAY) == []


@pytest.mark.parametrize("raw", [
    None,
    {"start": "09:00"},
    {"start": "24:00", "end": "25:00"},
    {"start": "12:00", "end": "09:00"},
])
def test_parse_window_rejects_unusable_windows(raw):
    assert booking_service.parse_window(raw) is None


def test_parse_window():
    assert booking_service.parse_window({"start": "09:00", "end": "17:30"}) == DayWindow(time(9), time(17, 30))


def test_stored_bookings_block_slots(db, test_user):
    _configure(db, test_user)
    booking = _booking(10, 30)
    booking.user_id = test_user.id
    db.add(booking)
    db.commit()

    slots = booking_service.get_available_slots(db, test_user.id, DAY, now=BEFORE_DAY)
    availability = {s.time: s.available for s in slots}
    assert availability["10:30"] is False
    assert availability["09:00"] is True


def test_public_booking_must_match_open_slot(db, test_user):
    from freelance_os.schemas.booking import PublicBookingCreate

    _configure(db, test_user)
    data = PublicBookingCreate(
        client_name=" Ada ",
        client_email="ada@example.com",
        scheduled_at=datetime(2025, 3, 10, 9, 45, tzinfo=timezone.utc),
    )
    booking = booking_service.create_public_booking(db, test_user.id, data, now=BEFORE_DAY)

    assert booking.status == BookingStatus.PENDING.value
    assert booking.client_name == "Ada"
    assert booking.meeting_type == "discovery"
    assert booking.duration_minutes == 30

    # Same slot again is taken
    with pytest.raises(ValueError, match="no longer available"):
        booking_service.create_public_booking(db, test_user.id, data, now=BEFORE_DAY)

    # Off-grid start
    off_grid = data.model_copy(update={"scheduled_at": datetime(2025, 3, 10, 9, 10, tzinfo=timezone.utc)})
    with pytest.raises(ValueError, match="no longer available"):
        booking_service.create_public_booking(db, test_user.id, off_grid, now=BEFORE_DAY)


def test_public_booking_in_past_rejected(db, test_user):
    from freelance_os.schemas.booking import PublicBookingCreate

    data = PublicBookingCreate(
        client_name="Ada",
        client_email="ada@example.com",
        scheduled_at=datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc),
    )
    with pytest.raises(ValueError, match="in the past"):
        booking_service.create_public_booking(
            db, test_user.id, data, now=datetime(2025, 3, 11, tzinfo=timezone.utc)
        )
