"""Booking schemas - Pydantic models for bookings and availability."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from freelance_os.db.enums import BookingStatus
from freelance_os.utils.datetimes import UTCDatetime

# 00:00 through 23:59
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


# =============================================================================
# Availability
# =============================================================================

class WorkingWindow(BaseModel):
    """Working hours for one weekday, as HH:MM clock times."""
    start: str = Field(..., pattern=HHMM_PATTERN, description="HH:MM format")
    end: str = Field(..., pattern=HHMM_PATTERN, description="HH:MM format")

    @model_validator(mode="after")
    def end_after_start(self):
        if time.fromisoformat(self.end) <= time.fromisoformat(self.start):
            raise ValueError("end must be after start")
        return self


class AvailabilityUpsert(BaseModel):
    working_hours: dict[str, WorkingWindow | None] = Field(default_factory=dict)
    default_duration: int = Field(30, ge=5, le=480)
    buffer_minutes: int = Field(15, ge=0, le=240)
    timezone: str = Field("UTC", max_length=50)
    blocked_dates: list[date] = Field(default_factory=list)

    @field_validator("working_hours")
    @classmethod
    def known_weekdays(cls, v):
        unknown = set(v) - set(WEEKDAY_KEYS)
        if unknown:
            raise ValueError(f"Unknown weekday keys: {', '.join(sorted(unknown))}")
        return v

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v):
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v


class AvailabilityRead(BaseModel):
    working_hours: dict[str, WorkingWindow | None]
    default_duration: int | None
    buffer_minutes: int | None
    timezone: str | None
    blocked_dates: list[date]
    updated_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Slots
# =============================================================================

class SlotRead(BaseModel):
    time: str  # HH:MM in the freelancer's timezone
    available: bool


class DaySlotsResponse(BaseModel):
    date: date
    timezone: str
    duration_minutes: int
    configured: bool
    slots: list[SlotRead]


# =============================================================================
# Bookings
# =============================================================================

class BookingCreate(BaseModel):
    """Internal booking entry by the freelancer."""
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    client_phone: str | None = Field(None, max_length=50)
    scheduled_at: UTCDatetime
    duration_minutes: int = Field(30, ge=5, le=480)
    meeting_type: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=2000)
    status: BookingStatus = BookingStatus.PENDING


class PublicBookingCreate(BaseModel):
    """Booking request submitted from the public page."""
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    client_phone: str | None = Field(None, max_length=50)
    scheduled_at: datetime  # Naive values are local to the freelancer
    notes: str | None = Field(None, max_length=2000)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingRead(BaseModel):
    id: UUID
    client_name: str
    client_email: str
    client_phone: str | None
    scheduled_at: datetime
    duration_minutes: int | None
    meeting_type: str | None
    notes: str | None
    status: BookingStatus
    google_event_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PublicBookingRead(BaseModel):
    """Public-safe booking confirmation."""
    id: UUID
    client_name: str
    scheduled_at: datetime
    duration_minutes: int | None
    status: BookingStatus


class PublicBookingPageRead(BaseModel):
    user_id: UUID
    display_name: str
    duration_minutes: int
    timezone: str
    configured: bool
