"""Pipeline service - sales pipeline items and Kanban stage moves.

Handles:
- CRUD on pipeline items
- Stage transitions (drag between columns)
- Invoice creation when a deal is won
- Board grouping with paid/remaining totals
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from freelance_os.core.structured_logging import build_log_context
from freelance_os.db.enums import PipelineStage
from freelance_os.db.models import Invoice, PipelineItem
from freelance_os.schemas.client import ClientSummary
from freelance_os.schemas.pipeline import (
    PipelineBoard,
    PipelineColumn,
    PipelineItemCreate,
    PipelineItemRead,
    PipelineItemUpdate,
)
from freelance_os.services import client_service, invoice_service

logger = logging.getLogger(__name__)

WON_INVOICE_DUE_DAYS = 30
ZERO = Decimal("0")


class StageChange(NamedTuple):
    """Outcome of a stage move."""
    item: PipelineItem
    changed: bool
    invoice: Invoice | None = None


# =============================================================================
# Queries
# =============================================================================

def list_items(
    db: Session,
    user_id: UUID,
    stage: PipelineStage | None = None,
    client_id: UUID | None = None,
) -> list[PipelineItem]:
    """List pipeline items, newest first."""
    query = db.query(PipelineItem).options(
        selectinload(PipelineItem.client),
        selectinload(PipelineItem.invoices).selectinload(Invoice.payments),
    ).filter(PipelineItem.user_id == user_id)
    if stage:
        query = query.filter(PipelineItem.stage == stage.value)
    if client_id:
        query = query.filter(PipelineItem.client_id == client_id)
    return query.order_by(PipelineItem.created_at.desc()).all()


def get_item(db: Session, user_id: UUID, item_id: UUID) -> PipelineItem | None:
    """Get a pipeline item by ID (user-scoped)."""
    return db.query(PipelineItem).filter(
        PipelineItem.id == item_id,
        PipelineItem.user_id == user_id,
    ).first()


def get_paid_totals(item: PipelineItem) -> tuple[Decimal, Decimal | None]:
    """Return (total paid across linked invoices, estimated value minus that)."""
    total_paid = sum(
        (invoice_service.sum_payments(inv.payments) for inv in item.invoices), ZERO
    )
    if item.estimated_value is None:
        return total_paid, None
    return total_paid, Decimal(item.estimated_value) - total_paid


def to_item_read(item: PipelineItem) -> PipelineItemRead:
    total_paid, remaining = get_paid_totals(item)
    return PipelineItemRead(
        id=item.id,
        client_id=item.client_id,
        client=ClientSummary.model_validate(item.client) if item.client else None,
        stage=item.stage,
        estimated_value=item.estimated_value,
        follow_up_date=item.follow_up_date,
        priority=item.priority,
        notes=item.notes,
        total_paid=total_paid,
        remaining=remaining,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def get_board(db: Session, user_id: UUID) -> PipelineBoard:
    """Group items into Kanban columns in nominal stage order."""
    by_stage: dict[str, list[PipelineItemRead]] = {s.value: [] for s in PipelineStage}
    for item in list_items(db, user_id):
        by_stage.setdefault(item.stage, []).append(to_item_read(item))

    columns = []
    for stage in PipelineStage:
        items = by_stage[stage.value]
        total_value = sum((i.estimated_value or ZERO for i in items), ZERO)
        columns.append(PipelineColumn(stage=stage, items=items, total_value=total_value))
    return PipelineBoard(columns=columns)


# =============================================================================
# Mutations
# =============================================================================

def create_item(db: Session, user_id: UUID, data: PipelineItemCreate) -> StageChange:
    """
    Create a pipeline item.

    Items created directly in the won stage get their invoice right away.

    Raises:
        ValueError: If the referenced client is not in this workspace
    """
    client_service.ensure_client(db, user_id, data.client_id)
    item = PipelineItem(
        user_id=user_id,
        client_id=data.client_id,
        stage=data.stage.value,
        estimated_value=data.estimated_value,
        follow_up_date=data.follow_up_date,
        priority=data.priority,
        notes=data.notes,
    )
    db.add(item)
    db.flush()

    invoice = None
    if item.stage == PipelineStage.WON.value:
        invoice = _create_won_invoice(db, item)

    db.commit()
    db.refresh(item)
    return StageChange(item=item, changed=True, invoice=invoice)


def update_item(
    db: Session,
    user_id: UUID,
    item: PipelineItem,
    data: PipelineItemUpdate,
) -> PipelineItem:
    """Apply a partial update. Does not touch the stage."""
    values = data.model_dump(exclude_unset=True)
    if "client_id" in values:
        client_service.ensure_client(db, user_id, values["client_id"])
    for field, value in values.items():
        if field == "priority" and value is None:
            continue
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return item


def update_stage(
    db: Session,
    item: PipelineItem,
    new_stage: PipelineStage | str,
) -> StageChange:
    """
    Move an item to another stage (Kanban drag).

    Only the stage column is written. Dropping onto the current stage is a
    no-op and issues no update. Moving into won creates an invoice for the
    estimated value unless one already exists for this item.
    """
    stage = PipelineStage(new_stage)
    if item.stage == stage.value:
        return StageChange(item=item, changed=False)

    previous = item.stage
    item.stage = stage.value
    db.flush()

    invoice = None
    if stage == PipelineStage.WON:
        invoice = _create_won_invoice(db, item)

    db.commit()
    db.refresh(item)
    logger.info(
        "Pipeline item %s moved %s -> %s",
        item.id,
        previous,
        stage.value,
        extra=build_log_context(user_id=str(item.user_id)),
    )
    return StageChange(item=item, changed=True, invoice=invoice)


def delete_item(db: Session, item: PipelineItem) -> None:
    """Delete a pipeline item. Linked invoices are kept."""
    db.delete(item)
    db.commit()


def _create_won_invoice(db: Session, item: PipelineItem) -> Invoice | None:
    if not item.estimated_value or Decimal(item.estimated_value) <= 0:
        return None

    existing = db.query(Invoice.id).filter(Invoice.pipeline_id == item.id).first()
    if existing:
        return None

    due_date = (datetime.now(timezone.utc) + timedelta(days=WON_INVOICE_DUE_DAYS)).date()
    invoice = Invoice(
        user_id=item.user_id,
        client_id=item.client_id,
        pipeline_id=item.id,
        invoice_number=invoice_service.generate_invoice_number(),
        amount=item.estimated_value,
        due_date=due_date,
        notes=item.notes,
    )
    db.add(invoice)
    db.flush()
    logger.info("Created invoice %s for won pipeline item %s", invoice.id, item.id)
    return invoice
