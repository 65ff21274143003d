"""Booking service - bookings, availability and slot calculation.

Handles:
- Availability settings (one row per user, missing row = not configured)
- Slot calculation with conflict detection
- Public booking requests (pending until confirmed)
- Status changes with calendar sync
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import NamedTuple
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from freelance_os.core.config import settings
from freelance_os.db.enums import BookingStatus
from freelance_os.db.models import AvailabilitySettings, Booking, User
from freelance_os.schemas.booking import (
    WEEKDAY_KEYS,
    AvailabilityUpsert,
    BookingCreate,
    DaySlotsResponse,
    PublicBookingCreate,
    PublicBookingPageRead,
    SlotRead,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_BOOKING_MINUTES = 30
PUBLIC_MEETING_TYPE = "discovery"


# =============================================================================
# Types
# =============================================================================

class TimeSlot(NamedTuple):
    """A bookable slot on the freelancer's calendar."""
    time: str  # HH:MM, local to the freelancer
    available: bool
    start: datetime  # Aware, UTC


class DayWindow(NamedTuple):
    start: time
    end: time


class SlotConfig(NamedTuple):
    """Effective slot parameters after defaults are applied."""
    duration: int
    buffer: int
    tz: ZoneInfo
    working_hours: dict
    blocked_dates: frozenset[date]


def _get_timezone(name: str | None) -> ZoneInfo:
    """Get a ZoneInfo timezone with safe fallback."""
    if not name:
        return ZoneInfo(settings.DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(name)
    except Exception:
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def parse_window(raw: dict | None) -> DayWindow | None:
    """Parse a stored {"start": "HH:MM", "end": "HH:MM"} window."""
    if not raw or not raw.get("start") or not raw.get("end"):
        return None
    try:
        window = DayWindow(time.fromisoformat(raw["start"]), time.fromisoformat(raw["end"]))
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed working-hours window %r", raw)
        return None
    if window.end <= window.start:
        return None
    return window


def weekday_key(day: date) -> str:
    """mon..sun key for a date (Monday=0)."""
    return WEEKDAY_KEYS[day.weekday()]


def slot_config(availability: AvailabilitySettings) -> SlotConfig:
    """
    Apply defaults to stored settings.

    A missing or zero duration falls back to 30 minutes. A missing buffer
    falls back to 15 minutes; an explicit 0 buffer is kept.
    """
    duration = availability.default_duration or DEFAULT_DURATION_MINUTES
    buffer = availability.buffer_minutes
    if buffer is None:
        buffer = DEFAULT_BUFFER_MINUTES
    blocked = set()
    for raw in availability.blocked_dates or []:
        try:
            blocked.add(date.fromisoformat(str(raw)))
        except ValueError:
            continue
    return SlotConfig(
        duration=duration,
        buffer=max(0, buffer),
        tz=_get_timezone(availability.timezone),
        working_hours=availability.working_hours or {},
        blocked_dates=frozenset(blocked),
    )


# =============================================================================
# Slot Calculation
# =============================================================================

def _booking_interval(booking: Booking) -> tuple[datetime, datetime]:
    start = booking.scheduled_at
    return start, start + timedelta(minutes=booking.duration_minutes or DEFAULT_BOOKING_MINUTES)


def build_day_slots(
    day: date,
    window: DayWindow | None,
    duration_minutes: int,
    buffer_minutes: int,
    bookings: list[Booking],
    tz: ZoneInfo,
    now: datetime,
) -> list[TimeSlot]:
    """
    Build the slot list for a single day.

    Walks from window start while the cursor is before window end, stepping
    by duration + buffer. A slot is unavailable if it overlaps a
    non-cancelled booking (half-open test) or starts before ``now``.
    """
    if window is None:
        return []

    step = timedelta(minutes=duration_minutes + buffer_minutes)
    if step <= timedelta(0):
        raise ValueError("Slot duration must be positive")

    intervals = [
        _booking_interval(b) for b in bookings
        if b.status != BookingStatus.CANCELLED.value
    ]

    slots: list[TimeSlot] = []
    current = datetime.combine(day, window.start, tzinfo=tz)
    day_end = datetime.combine(day, window.end, tzinfo=tz)

    while current < day_end:
        slot_start = current.astimezone(timezone.utc)
        slot_end = slot_start + timedelta(minutes=duration_minutes)

        is_booked = any(
            slot_start < booking_end and slot_end > booking_start
            for booking_start, booking_end in intervals
        )
        is_past = slot_start < now

        slots.append(TimeSlot(
            time=current.strftime("%H:%M"),
            available=not is_booked and not is_past,
            start=slot_start,
        ))
        current += step

    return slots


def _bookings_for_day(db: Session, user_id: UUID, day: date, tz: ZoneInfo) -> list[Booking]:
    """Non-cancelled bookings that could overlap the local day."""
    day_start = datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    day_end = day_start + timedelta(days=1)
    # Bookings can start before midnight and run into the day
    lookback = day_start - timedelta(days=1)
    return db.query(Booking).filter(
        Booking.user_id == user_id,
        Booking.status != BookingStatus.CANCELLED.value,
        Booking.scheduled_at >= lookback,
        Booking.scheduled_at < day_end,
    ).all()


def get_available_slots(
    db: Session,
    user_id: UUID,
    day: date,
    now: datetime | None = None,
) -> list[TimeSlot]:
    """
    Slots for a date on the user's booking page.

    Returns an empty list when availability is not configured, the date
    is blocked, or the weekday has no working window.
    """
    availability = get_availability(db, user_id)
    if availability is None:
        return []
    return _slots_for(db, user_id, slot_config(availability), day, now)


def _slots_for(
    db: Session,
    user_id: UUID,
    config: SlotConfig,
    day: date,
    now: datetime | None,
) -> list[TimeSlot]:
    if day in config.blocked_dates:
        return []

    window = parse_window(config.working_hours.get(weekday_key(day)))
    if window is None:
        return []

    return build_day_slots(
        day,
        window,
        config.duration,
        config.buffer,
        _bookings_for_day(db, user_id, day, config.tz),
        config.tz,
        now or datetime.now(timezone.utc),
    )


def get_day_slots(
    db: Session,
    user_id: UUID,
    day: date,
    now: datetime | None = None,
) -> DaySlotsResponse:
    """Slot listing for one date, with the settings it was computed from."""
    availability = get_availability(db, user_id)
    if availability is None:
        return DaySlotsResponse(
            date=day,
            timezone=settings.DEFAULT_TIMEZONE,
            duration_minutes=DEFAULT_DURATION_MINUTES,
            configured=False,
            slots=[],
        )

    config = slot_config(availability)
    slots = _slots_for(db, user_id, config, day, now)
    return DaySlotsResponse(
        date=day,
        timezone=config.tz.key,
        duration_minutes=config.duration,
        configured=True,
        slots=[SlotRead(time=s.time, available=s.available) for s in slots],
    )


def get_booking_page(db: Session, user: User) -> PublicBookingPageRead:
    availability = get_availability(db, user.id)
    if availability is None:
        return PublicBookingPageRead(
            user_id=user.id,
            display_name=user.display_name,
            duration_minutes=DEFAULT_DURATION_MINUTES,
            timezone=settings.DEFAULT_TIMEZONE,
            configured=False,
        )
    config = slot_config(availability)
    return PublicBookingPageRead(
        user_id=user.id,
        display_name=user.display_name,
        duration_minutes=config.duration,
        timezone=config.tz.key,
        configured=True,
    )


def get_timezone_name(db: Session, user_id: UUID) -> str:
    """Timezone used for the user's emails and day boundaries."""
    availability = get_availability(db, user_id)
    return _get_timezone(availability.timezone if availability else None).key


# =============================================================================
# Availability
# =============================================================================

def get_availability(db: Session, user_id: UUID) -> AvailabilitySettings | None:
    """Settings row, or None when the user has not configured availability."""
    return db.query(AvailabilitySettings).filter(
        AvailabilitySettings.user_id == user_id,
    ).first()


def save_availability(
    db: Session,
    user_id: UUID,
    data: AvailabilityUpsert,
) -> AvailabilitySettings:
    """Insert or replace the user's availability settings."""
    availability = get_availability(db, user_id)
    if availability is None:
        availability = AvailabilitySettings(user_id=user_id)
        db.add(availability)

    availability.working_hours = {
        key: (window.model_dump() if window else None)
        for key, window in data.working_hours.items()
    }
    availability.default_duration = data.default_duration
    availability.buffer_minutes = data.buffer_minutes
    availability.timezone = data.timezone
    availability.blocked_dates = sorted({d.isoformat() for d in data.blocked_dates})

    db.commit()
    db.refresh(availability)
    return availability


# =============================================================================
# Bookings
# =============================================================================

def list_bookings(
    db: Session,
    user_id: UUID,
    status: BookingStatus | None = None,
) -> list[Booking]:
    """List bookings by scheduled time."""
    query = db.query(Booking).filter(Booking.user_id == user_id)
    if status:
        query = query.filter(Booking.status == status.value)
    return query.order_by(Booking.scheduled_at.asc()).all()


def list_upcoming(
    db: Session,
    user_id: UUID,
    limit: int | None = None,
    now: datetime | None = None,
) -> list[Booking]:
    """Future bookings that are still pending or confirmed."""
    now = now or datetime.now(timezone.utc)
    query = db.query(Booking).filter(
        Booking.user_id == user_id,
        Booking.scheduled_at >= now,
        Booking.status.notin_([BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value]),
    ).order_by(Booking.scheduled_at.asc())
    if limit:
        query = query.limit(limit)
    return query.all()


def list_today(
    db: Session,
    user_id: UUID,
    now: datetime | None = None,
) -> list[Booking]:
    """Bookings on the current local day (the user's availability timezone)."""
    availability = get_availability(db, user_id)
    tz = _get_timezone(availability.timezone if availability else None)
    now = now or datetime.now(timezone.utc)
    day_start = datetime.combine(now.astimezone(tz).date(), time.min, tzinfo=tz)
    return db.query(Booking).filter(
        Booking.user_id == user_id,
        Booking.scheduled_at >= day_start.astimezone(timezone.utc),
        Booking.scheduled_at < (day_start + timedelta(days=1)).astimezone(timezone.utc),
    ).order_by(Booking.scheduled_at.asc()).all()


def get_booking(db: Session, user_id: UUID, booking_id: UUID) -> Booking | None:
    """Get a booking by ID (user-scoped)."""
    return db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.user_id == user_id,
    ).first()


def create_booking(db: Session, user_id: UUID, data: BookingCreate) -> Booking:
    """Create a booking from the freelancer's own calendar."""
    booking = Booking(
        user_id=user_id,
        client_name=data.client_name.strip(),
        client_email=str(data.client_email),
        client_phone=data.client_phone,
        scheduled_at=data.scheduled_at,
        duration_minutes=data.duration_minutes,
        meeting_type=data.meeting_type,
        notes=data.notes,
        status=data.status.value,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def _normalize_start(value: datetime, tz: ZoneInfo) -> datetime:
    """Treat naive input as local to the freelancer, then convert to UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc)


def create_public_booking(
    db: Session,
    user_id: UUID,
    data: PublicBookingCreate,
    now: datetime | None = None,
) -> Booking:
    """
    Create a pending booking from the public booking page.

    When the freelancer has configured availability, the requested start
    must match an open slot. Otherwise any future time is accepted.

    Raises:
        ValueError: If the requested time is not bookable
    """
    now = now or datetime.now(timezone.utc)
    availability = get_availability(db, user_id)
    tz = _get_timezone(availability.timezone if availability else None)
    scheduled_at = _normalize_start(data.scheduled_at, tz)
    duration = DEFAULT_BOOKING_MINUTES

    if scheduled_at < now:
        raise ValueError("Selected time is in the past")

    if availability is not None:
        duration = slot_config(availability).duration
        local_day = scheduled_at.astimezone(tz).date()
        slots = get_available_slots(db, user_id, local_day, now=now)
        if not any(s.start == scheduled_at and s.available for s in slots):
            raise ValueError("Selected time is no longer available")

    booking = Booking(
        user_id=user_id,
        client_name=data.client_name.strip(),
        client_email=str(data.client_email),
        client_phone=data.client_phone,
        scheduled_at=scheduled_at,
        duration_minutes=duration,
        meeting_type=PUBLIC_MEETING_TYPE,
        notes=data.notes,
        status=BookingStatus.PENDING.value,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info("Public booking %s requested for user %s", booking.id, user_id)
    return booking


def update_status(db: Session, booking: Booking, new_status: BookingStatus) -> Booking:
    """
    Move a booking to any status. Setting the current status again is a no-op.
    """
    new_status = BookingStatus(new_status)
    if booking.status == new_status.value:
        return booking

    booking.status = new_status.value
    db.commit()
    db.refresh(booking)
    return booking


def delete_booking(db: Session, booking: Booking) -> None:
    db.delete(booking)
    db.commit()
