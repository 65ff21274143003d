"""Pydantic schemas for clients."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

ClientStatusValue = Literal["active", "inactive", "lead"]


class ClientCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company: str | None = Field(None, max_length=255)
    status: ClientStatusValue = "active"
    notes: str | None = None
    avatar_url: str | None = Field(None, max_length=500)


class ClientUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    company: str | None = Field(None, max_length=255)
    status: ClientStatusValue | None = None
    notes: str | None = None
    avatar_url: str | None = Field(None, max_length=500)


class ClientRead(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str | None
    phone: str | None
    company: str | None
    status: str
    notes: str | None
    avatar_url: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ClientSummary(BaseModel):
    """Embedded client reference on related rows."""
    id: UUID
    full_name: str
    company: str | None

    model_config = {"from_attributes": True}
