"""Pydantic schemas for time tracking."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from freelance_os.utils.datetimes import UTCDatetime


class TimerStart(BaseModel):
    description: str | None = Field(None, max_length=1000)
    client_id: UUID | None = None


class TimeEntryUpdate(BaseModel):
    """Edit a finished entry. Duration is recomputed from start/end."""
    description: str | None = Field(None, max_length=1000)
    client_id: UUID | None = None
    start_time: UTCDatetime | None = None
    end_time: UTCDatetime | None = None

    @model_validator(mode="after")
    def validate_range(self):
        if self.start_time and self.end_time and self.end_time < self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class TimeEntryRead(BaseModel):
    id: UUID
    client_id: UUID | None
    description: str | None
    start_time: datetime
    end_time: datetime | None
    duration_seconds: int | None
    is_running: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ActiveTimerRead(BaseModel):
    entry: TimeEntryRead | None
    elapsed_seconds: int = 0
    elapsed: str = "00:00:00"


class TimeStats(BaseModel):
    today_seconds: int
    week_seconds: int
    total_seconds: int
    today_entries: int
    week_entries: int
    total_entries: int
    today: str
    week: str
    total: str
