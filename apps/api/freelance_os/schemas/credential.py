"""Pydantic schemas for stored credentials."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from freelance_os.db.enums import CredentialType


class CredentialCreate(BaseModel):
    client_id: UUID | None = None
    service_name: str = Field(..., min_length=1, max_length=255)
    type: CredentialType = CredentialType.WEB
    url: str | None = Field(None, max_length=500)
    username: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=1000)
    notes: str | None = None


class CredentialUpdate(BaseModel):
    client_id: UUID | None = None
    service_name: str | None = Field(None, min_length=1, max_length=255)
    type: CredentialType | None = None
    url: str | None = Field(None, max_length=500)
    username: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=1000)
    notes: str | None = None


class CredentialRead(BaseModel):
    id: UUID
    client_id: UUID | None
    service_name: str
    type: CredentialType
    url: str | None
    username: str | None
    password: str | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
