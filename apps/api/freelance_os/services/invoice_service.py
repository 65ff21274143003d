"""Invoice service - invoices, payments and receivables.

Handles:
- Status derivation from amount, due date and payments
- Payment recording with paid flag bookkeeping
- Receivable statistics for the dashboard
"""

import logging
import secrets
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from freelance_os.db.enums import InvoiceStatus
from freelance_os.db.models import Invoice, InvoicePayment, PipelineItem
from freelance_os.schemas.client import ClientSummary
from freelance_os.schemas.invoice import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceStats,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
)
from freelance_os.services import client_service

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DUE_SOON_DAYS = 7


class InvoiceBalance(NamedTuple):
    """Derived balance of an invoice."""
    status: InvoiceStatus
    total_paid: Decimal
    remaining: Decimal  # Clamped at zero


# =============================================================================
# Status Derivation
# =============================================================================

def calculate_invoice_status(
    amount: Decimal,
    due_date: date | None,
    total_paid: Decimal,
    now: datetime | None = None,
) -> InvoiceStatus:
    """
    Derive the status of an invoice.

    Rules, first match wins:
    1. remaining <= 0 → paid
    2. due date set and its start (00:00 UTC) before now → overdue
    3. any payment recorded → partial
    4. otherwise → unpaid
    """
    now = now or datetime.now(timezone.utc)
    remaining = Decimal(amount) - Decimal(total_paid)

    if remaining <= 0:
        return InvoiceStatus.PAID
    if due_date is not None and datetime.combine(due_date, time.min, tzinfo=timezone.utc) < now:
        return InvoiceStatus.OVERDUE
    if total_paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID


def sum_payments(payments: list[InvoicePayment]) -> Decimal:
    return sum((Decimal(p.amount) for p in payments), ZERO)


def get_balance(invoice: Invoice, now: datetime | None = None) -> InvoiceBalance:
    total_paid = sum_payments(invoice.payments)
    remaining = max(ZERO, Decimal(invoice.amount) - total_paid)
    status = calculate_invoice_status(invoice.amount, invoice.due_date, total_paid, now)
    return InvoiceBalance(status=status, total_paid=total_paid, remaining=remaining)


def generate_invoice_number() -> str:
    """Random human-friendly invoice number (INV-XXXXXX)."""
    return f"INV-{secrets.token_hex(3).upper()}"


# =============================================================================
# Queries
# =============================================================================

def list_invoices(
    db: Session,
    user_id: UUID,
    status: InvoiceStatus | None = None,
    client_id: UUID | None = None,
    now: datetime | None = None,
) -> list[Invoice]:
    """List invoices by due date (undated last). Status filter uses the derived status."""
    query = db.query(Invoice).options(
        selectinload(Invoice.payments),
        selectinload(Invoice.client),
    ).filter(Invoice.user_id == user_id)
    if client_id:
        query = query.filter(Invoice.client_id == client_id)

    invoices = query.order_by(Invoice.created_at.desc()).all()
    invoices.sort(key=lambda i: (i.due_date is None, i.due_date or date.max))

    if status is not None:
        invoices = [i for i in invoices if get_balance(i, now).status == status]
    return invoices


def get_invoice(db: Session, user_id: UUID, invoice_id: UUID) -> Invoice | None:
    """Get an invoice by ID (user-scoped)."""
    return db.query(Invoice).options(selectinload(Invoice.payments)).filter(
        Invoice.id == invoice_id,
        Invoice.user_id == user_id,
    ).first()


def to_invoice_read(invoice: Invoice, now: datetime | None = None) -> InvoiceRead:
    balance = get_balance(invoice, now)
    return InvoiceRead(
        id=invoice.id,
        client_id=invoice.client_id,
        client=ClientSummary.model_validate(invoice.client) if invoice.client else None,
        pipeline_id=invoice.pipeline_id,
        invoice_number=invoice.invoice_number,
        amount=invoice.amount,
        currency=invoice.currency,
        due_date=invoice.due_date,
        is_paid=invoice.is_paid,
        paid_at=invoice.paid_at,
        notes=invoice.notes,
        status=balance.status,
        total_paid=balance.total_paid,
        remaining=balance.remaining,
        payments=[PaymentRead.model_validate(p) for p in invoice.payments],
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


# =============================================================================
# Mutations
# =============================================================================

def create_invoice(db: Session, user_id: UUID, data: InvoiceCreate) -> Invoice:
    """
    Create an invoice.

    Raises:
        ValueError: If the referenced client or pipeline item is not in this workspace
    """
    client_service.ensure_client(db, user_id, data.client_id)
    if data.pipeline_id is not None:
        owned = db.query(PipelineItem.id).filter(
            PipelineItem.id == data.pipeline_id,
            PipelineItem.user_id == user_id,
        ).first()
        if not owned:
            raise ValueError("Pipeline item not found")
    invoice = Invoice(
        user_id=user_id,
        client_id=data.client_id,
        pipeline_id=data.pipeline_id,
        invoice_number=data.invoice_number or generate_invoice_number(),
        amount=data.amount,
        currency=data.currency.upper(),
        due_date=data.due_date,
        notes=data.notes,
    )
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


def update_invoice(db: Session, user_id: UUID, invoice: Invoice, data: InvoiceUpdate) -> Invoice:
    """Apply a partial update, then re-sync the paid flag against the new amount."""
    values = data.model_dump(exclude_unset=True)
    if "client_id" in values:
        client_service.ensure_client(db, user_id, values["client_id"])
    for field, value in values.items():
        if field in ("amount", "currency") and value is None:
            continue
        if field == "currency":
            value = value.upper()
        setattr(invoice, field, value)
    _sync_paid_flag(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    """Delete an invoice and its payments."""
    db.delete(invoice)
    db.commit()


def add_payment(db: Session, invoice: Invoice, data: PaymentCreate) -> InvoicePayment:
    """
    Record a payment against an invoice.

    When the payment settles the balance, the invoice is flagged paid.

    Raises:
        ValueError: If the amount is not positive
    """
    if data.amount <= 0:
        raise ValueError("Payment amount must be greater than zero")

    payment = InvoicePayment(
        invoice_id=invoice.id,
        amount=data.amount,
        payment_date=data.payment_date or datetime.now(timezone.utc).date(),
        payment_method=data.payment_method.value,
        notes=data.notes,
    )
    invoice.payments.append(payment)
    _sync_paid_flag(invoice)
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s recorded on invoice %s", payment.id, invoice.id)
    return payment


def delete_payment(db: Session, invoice: Invoice, payment_id: UUID) -> bool:
    """Remove a payment. Re-opens the invoice if the balance is no longer settled."""
    payment = next((p for p in invoice.payments if p.id == payment_id), None)
    if not payment:
        return False
    invoice.payments.remove(payment)
    _sync_paid_flag(invoice)
    db.commit()
    return True


def _sync_paid_flag(invoice: Invoice) -> None:
    settled = Decimal(invoice.amount) - sum_payments(invoice.payments) <= 0
    if settled and not invoice.is_paid:
        invoice.is_paid = True
        invoice.paid_at = datetime.now(timezone.utc)
    elif not settled and invoice.is_paid:
        invoice.is_paid = False
        invoice.paid_at = None


# =============================================================================
# Stats
# =============================================================================

def get_stats(db: Session, user_id: UUID, now: datetime | None = None) -> InvoiceStats:
    """Receivable totals across all of the user's invoices."""
    now = now or datetime.now(timezone.utc)
    today = now.date()
    week_end = today + timedelta(days=DUE_SOON_DAYS)

    total_receivable = total_overdue = total_paid = due_this_week = ZERO
    overdue_count = pending_count = paid_count = 0

    invoices = list_invoices(db, user_id, now=now)
    for invoice in invoices:
        balance = get_balance(invoice, now)
        total_paid += balance.total_paid
        if balance.status == InvoiceStatus.PAID:
            paid_count += 1
            continue

        total_receivable += balance.remaining
        if balance.status == InvoiceStatus.OVERDUE:
            overdue_count += 1
            total_overdue += balance.remaining
        else:
            pending_count += 1
            if invoice.due_date and today <= invoice.due_date <= week_end:
                due_this_week += balance.remaining

    return InvoiceStats(
        total_receivable=total_receivable,
        total_overdue=total_overdue,
        total_paid=total_paid,
        due_this_week=due_this_week,
        invoice_count=len(invoices),
        overdue_count=overdue_count,
        pending_count=pending_count,
        paid_count=paid_count,
    )
