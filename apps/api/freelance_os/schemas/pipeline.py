"""Pydantic schemas for the sales pipeline."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from freelance_os.db.enums import PipelineStage
from freelance_os.schemas.client import ClientSummary
from freelance_os.utils.money import Amount

PriorityValue = Literal["low", "medium", "high"]


class PipelineItemCreate(BaseModel):
    client_id: UUID | None = None
    stage: PipelineStage = PipelineStage.LEAD
    estimated_value: Amount | None = None
    follow_up_date: date | None = None
    priority: PriorityValue = "medium"
    notes: str | None = None


class PipelineItemUpdate(BaseModel):
    """Partial update. Stage changes go through /stage."""
    client_id: UUID | None = None
    estimated_value: Amount | None = None
    follow_up_date: date | None = None
    priority: PriorityValue | None = None
    notes: str | None = None


class StageUpdate(BaseModel):
    """Payload of a Kanban drag."""
    stage: PipelineStage


class PipelineItemRead(BaseModel):
    id: UUID
    client_id: UUID | None
    client: ClientSummary | None = None
    stage: PipelineStage
    estimated_value: Decimal | None
    follow_up_date: date | None
    priority: str
    notes: str | None
    total_paid: Decimal = Decimal("0")
    remaining: Decimal | None = None
    created_at: datetime
    updated_at: datetime


class StageUpdateResult(BaseModel):
    item: PipelineItemRead
    changed: bool
    invoice_id: UUID | None = None


class PipelineColumn(BaseModel):
    stage: PipelineStage
    items: list[PipelineItemRead]
    total_value: Decimal


class PipelineBoard(BaseModel):
    columns: list[PipelineColumn]
