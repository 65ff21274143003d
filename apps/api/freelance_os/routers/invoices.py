"""Invoices router - invoices, partial payments and receivable stats.

Invoice status is derived on every read from amount, due date and payments.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.db.enums import InvoiceStatus
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.invoice import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceStats,
    InvoiceUpdate,
    PaymentCreate,
)
from freelance_os.services import invoice_service

router = APIRouter()


def _get_invoice_or_404(db: Session, session: UserSession, invoice_id: UUID):
    invoice = invoice_service.get_invoice(db, session.user_id, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get("", response_model=list[InvoiceRead])
def list_invoices(
    status: InvoiceStatus | None = None,
    client_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List invoices by due date. ``status`` filters on the derived status."""
    invoices = invoice_service.list_invoices(
        db, session.user_id, status=status, client_id=client_id
    )
    return [invoice_service.to_invoice_read(i) for i in invoices]


@router.get("/stats", response_model=InvoiceStats)
def get_stats(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return invoice_service.get_stats(db, session.user_id)


@router.post(
    "",
    response_model=InvoiceRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_invoice(
    data: InvoiceCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        invoice = invoice_service.create_invoice(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return invoice_service.to_invoice_read(invoice)


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    invoice_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice_or_404(db, session, invoice_id)
    return invoice_service.to_invoice_read(invoice)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice_or_404(db, session, invoice_id)
    try:
        invoice = invoice_service.update_invoice(db, session.user_id, invoice, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return invoice_service.to_invoice_read(invoice)


@router.delete(
    "/{invoice_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_invoice(
    invoice_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice_or_404(db, session, invoice_id)
    invoice_service.delete_invoice(db, invoice)
    return None


# =============================================================================
# Payments
# =============================================================================

@router.post(
    "/{invoice_id}/payments",
    response_model=InvoiceRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def add_payment(
    invoice_id: UUID,
    data: PaymentCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Record a payment. Returns the invoice with its new balance."""
    invoice = _get_invoice_or_404(db, session, invoice_id)
    try:
        invoice_service.add_payment(db, invoice, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return invoice_service.to_invoice_read(invoice)


@router.delete(
    "/{invoice_id}/payments/{payment_id}",
    response_model=InvoiceRead,
    dependencies=[Depends(require_csrf_header)],
)
def delete_payment(
    invoice_id: UUID,
    payment_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    invoice = _get_invoice_or_404(db, session, invoice_id)
    if not invoice_service.delete_payment(db, invoice, payment_id):
        raise HTTPException(status_code=404, detail="Payment not found")
    return invoice_service.to_invoice_read(invoice)
