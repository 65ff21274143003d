"""Proposal service - quotes with line items sent to clients."""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from freelance_os.db.enums import ProposalStatus
from freelance_os.db.models import Proposal
from freelance_os.schemas.proposal import (
    LineItem,
    ProposalCreate,
    ProposalRead,
    ProposalTotals,
    ProposalUpdate,
)
from freelance_os.services import client_service
from freelance_os.services.html_sanitizer import sanitize_html
from freelance_os.utils.money import quantize

ZERO = Decimal("0")


def calculate_totals(line_items: list[LineItem], tax_rate: Decimal) -> ProposalTotals:
    """Subtotal of quantity x unit price, tax on top, all rounded to cents."""
    subtotal = quantize(sum((i.quantity * i.unit_price for i in line_items), ZERO))
    tax = quantize(subtotal * Decimal(tax_rate))
    return ProposalTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def _line_items(proposal: Proposal) -> list[LineItem]:
    return [LineItem.model_validate(i) for i in proposal.line_items or []]


def _dump_line_items(items: list[LineItem]) -> list[dict]:
    return [
        i.model_copy(update={"unit_price": quantize(i.unit_price)}).model_dump(mode="json")
        for i in items
    ]


def to_proposal_read(proposal: Proposal) -> ProposalRead:
    items = _line_items(proposal)
    if items:
        totals = calculate_totals(items, proposal.tax_rate)
    else:
        amount = Decimal(proposal.amount or 0)
        totals = ProposalTotals(subtotal=amount, tax=ZERO, total=amount)
    return ProposalRead(
        id=proposal.id,
        client_id=proposal.client_id,
        title=proposal.title,
        content=proposal.content,
        line_items=items,
        tax_rate=proposal.tax_rate,
        amount=proposal.amount,
        currency=proposal.currency,
        status=proposal.status,
        valid_until=proposal.valid_until,
        sent_at=proposal.sent_at,
        totals=totals,
        created_at=proposal.created_at,
        updated_at=proposal.updated_at,
    )


def list_proposals(
    db: Session,
    user_id: UUID,
    status: ProposalStatus | None = None,
    client_id: UUID | None = None,
) -> list[Proposal]:
    """List proposals, newest first."""
    query = db.query(Proposal).filter(Proposal.user_id == user_id)
    if status:
        query = query.filter(Proposal.status == status.value)
    if client_id:
        query = query.filter(Proposal.client_id == client_id)
    return query.order_by(Proposal.created_at.desc()).all()


def get_proposal(db: Session, user_id: UUID, proposal_id: UUID) -> Proposal | None:
    """Get a proposal by ID (user-scoped)."""
    return db.query(Proposal).filter(
        Proposal.id == proposal_id,
        Proposal.user_id == user_id,
    ).first()


def create_proposal(db: Session, user_id: UUID, data: ProposalCreate) -> Proposal:
    """
    Create a proposal.

    With line items the amount is the computed grand total. Without them
    the given amount is stored as-is.
    """
    client_service.ensure_client(db, user_id, data.client_id)
    amount = data.amount
    if data.line_items:
        amount = calculate_totals(data.line_items, data.tax_rate).total

    proposal = Proposal(
        user_id=user_id,
        client_id=data.client_id,
        title=data.title,
        content=sanitize_html(data.content),
        line_items=_dump_line_items(data.line_items),
        tax_rate=data.tax_rate,
        amount=amount,
        currency=data.currency.upper(),
        status=data.status,
        valid_until=data.valid_until,
    )
    if data.status == ProposalStatus.SENT.value:
        proposal.sent_at = datetime.now(timezone.utc)
    db.add(proposal)
    db.commit()
    db.refresh(proposal)
    return proposal


def update_proposal(
    db: Session,
    user_id: UUID,
    proposal: Proposal,
    data: ProposalUpdate,
) -> Proposal:
    values = data.model_dump(exclude_unset=True)
    if "client_id" in values:
        client_service.ensure_client(db, user_id, values["client_id"])

    for field in ("client_id", "valid_until"):
        if field in values:
            setattr(proposal, field, values[field])
    for field in ("title", "tax_rate", "status"):
        if values.get(field) is not None:
            setattr(proposal, field, values[field])
    if values.get("currency"):
        proposal.currency = values["currency"].upper()
    if "content" in values:
        proposal.content = sanitize_html(values["content"])
    if "amount" in values:
        proposal.amount = values["amount"]
    if data.line_items is not None:
        proposal.line_items = _dump_line_items(data.line_items)

    items = _line_items(proposal)
    if items:
        proposal.amount = calculate_totals(items, proposal.tax_rate).total

    if values.get("status") == ProposalStatus.SENT.value and not proposal.sent_at:
        proposal.sent_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(proposal)
    return proposal


def mark_sent(db: Session, proposal: Proposal) -> Proposal:
    """Mark a proposal as sent to the client."""
    proposal.status = ProposalStatus.SENT.value
    proposal.sent_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(proposal)
    return proposal


def delete_proposal(db: Session, proposal: Proposal) -> None:
    db.delete(proposal)
    db.commit()
