"""Pydantic schemas for code snippets."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class SnippetCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1)
    description: str | None = None
    language: str = Field("plaintext", min_length=1, max_length=50)
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = False


class SnippetUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    code: str | None = Field(None, min_length=1)
    description: str | None = None
    language: str | None = Field(None, min_length=1, max_length=50)
    tags: list[str] | None = None
    is_favorite: bool | None = None


class SnippetRead(BaseModel):
    id: UUID
    title: str
    code: str
    description: str | None
    language: str
    tags: list[str]
    is_favorite: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
