"""Pydantic schemas for notes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from freelance_os.db.enums import NoteType
from freelance_os.utils.datetimes import UTCDatetime


class NoteCreate(BaseModel):
    """Request to add a note. Content is rich-text HTML."""
    client_id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=255)
    content: str | None = Field(None, max_length=100_000)
    type: NoteType = NoteType.GENERAL
    tags: list[str] = Field(default_factory=list)
    meeting_date: UTCDatetime | None = None


class NoteUpdate(BaseModel):
    client_id: UUID | None = None
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, max_length=100_000)
    type: NoteType | None = None
    tags: list[str] | None = None
    meeting_date: UTCDatetime | None = None


class NoteRead(BaseModel):
    """Note response."""
    id: UUID
    client_id: UUID | None
    title: str
    content: str | None
    type: NoteType
    tags: list[str]
    meeting_date: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
