"""Pydantic schemas for the Google Calendar proxy."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator

from freelance_os.utils.datetimes import UTCDatetime


class CalendarEventRead(BaseModel):
    id: str
    summary: str
    description: str | None = None
    start: datetime | None
    end: datetime | None
    html_link: str | None = None
    is_all_day: bool = False
    attendees: list[str] = Field(default_factory=list)


class CalendarEventCreate(BaseModel):
    summary: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    start: UTCDatetime
    end: UTCDatetime
    attendees: list[EmailStr] = Field(default_factory=list)
    timezone: str = "UTC"

    @model_validator(mode="after")
    def validate_range(self):
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class FreeBusyRequest(BaseModel):
    time_min: UTCDatetime
    time_max: UTCDatetime
    calendar_ids: list[str] = Field(default_factory=lambda: ["primary"])


class BusyBlockRead(BaseModel):
    start: datetime
    end: datetime


class FreeBusyResponse(BaseModel):
    calendars: dict[str, list[BusyBlockRead]]


class IntegrationStatus(BaseModel):
    """Status of the user's Google connection."""
    provider: str = "google"
    connected: bool
    account_email: str | None = None
    expires_at: datetime | None = None
