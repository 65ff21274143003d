"""Pydantic schemas for proposals."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from freelance_os.utils.money import Amount

ProposalStatusValue = Literal["draft", "sent", "accepted", "rejected"]


class LineItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price: Amount


class ProposalCreate(BaseModel):
    client_id: UUID | None = None
    title: str = Field(..., min_length=1, max_length=255)
    content: str | None = None
    line_items: list[LineItem] = Field(default_factory=list)
    tax_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)
    amount: Amount | None = None
    currency: str = Field("EUR", min_length=3, max_length=3)
    status: ProposalStatusValue = "draft"
    valid_until: date | None = None


class ProposalUpdate(BaseModel):
    client_id: UUID | None = None
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    line_items: list[LineItem] | None = None
    tax_rate: Decimal | None = Field(None, ge=0, le=1)
    amount: Amount | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    status: ProposalStatusValue | None = None
    valid_until: date | None = None


class ProposalTotals(BaseModel):
    subtotal: Decimal
    tax: Decimal
    total: Decimal


class QuoteRequest(BaseModel):
    line_items: list[LineItem]
    tax_rate: Decimal = Field(Decimal("0.20"), ge=0, le=1)


class ProposalRead(BaseModel):
    id: UUID
    client_id: UUID | None
    title: str
    content: str | None
    line_items: list[LineItem]
    tax_rate: Decimal
    amount: Decimal | None
    currency: str
    status: str
    valid_until: date | None
    sent_at: datetime | None
    totals: ProposalTotals
    created_at: datetime
    updated_at: datetime
