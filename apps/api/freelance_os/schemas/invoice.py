"""Pydantic schemas for invoices and payments."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from freelance_os.db.enums import InvoiceStatus, PaymentMethod
from freelance_os.schemas.client import ClientSummary
from freelance_os.utils.money import Amount


# =============================================================================
# Payments
# =============================================================================

class PaymentCreate(BaseModel):
    amount: Amount
    payment_date: date | None = None  # Defaults to today
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    notes: str | None = None


class PaymentRead(BaseModel):
    id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Invoices
# =============================================================================

class InvoiceCreate(BaseModel):
    client_id: UUID | None = None
    pipeline_id: UUID | None = None
    invoice_number: str | None = Field(None, max_length=50)
    amount: Amount
    currency: str = Field("EUR", min_length=3, max_length=3)
    due_date: date | None = None
    notes: str | None = None


class InvoiceUpdate(BaseModel):
    client_id: UUID | None = None
    invoice_number: str | None = Field(None, max_length=50)
    amount: Amount | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    due_date: date | None = None
    notes: str | None = None


class InvoiceRead(BaseModel):
    id: UUID
    client_id: UUID | None
    client: ClientSummary | None = None
    pipeline_id: UUID | None
    invoice_number: str | None
    amount: Decimal
    currency: str
    due_date: date | None
    is_paid: bool
    paid_at: datetime | None
    notes: str | None
    status: InvoiceStatus
    total_paid: Decimal
    remaining: Decimal
    payments: list[PaymentRead]
    created_at: datetime
    updated_at: datetime


class InvoiceStats(BaseModel):
    total_receivable: Decimal
    total_overdue: Decimal
    total_paid: Decimal
    due_this_week: Decimal
    invoice_count: int
    overdue_count: int
    pending_count: int
    paid_count: int
