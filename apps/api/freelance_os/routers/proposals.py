"""Proposals router - quotes with line items and tax."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.db.enums import ProposalStatus
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.proposal import (
    ProposalCreate,
    ProposalRead,
    ProposalTotals,
    ProposalUpdate,
    QuoteRequest,
)
from freelance_os.services import proposal_service

router = APIRouter()


def _get_proposal_or_404(db: Session, session: UserSession, proposal_id: UUID):
    proposal = proposal_service.get_proposal(db, session.user_id, proposal_id)
    if not proposal:
        raise HTTPException(status_code=404, detail="Proposal not found")
    return proposal


@router.get("", response_model=list[ProposalRead])
def list_proposals(
    status: ProposalStatus | None = None,
    client_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    proposals = proposal_service.list_proposals(
        db, session.user_id, status=status, client_id=client_id
    )
    return [proposal_service.to_proposal_read(p) for p in proposals]


@router.post("/quote", response_model=ProposalTotals)
def quote(
    data: QuoteRequest,
    session: UserSession = Depends(get_current_session),
):
    """Compute subtotal, tax and total without saving anything."""
    return proposal_service.calculate_totals(data.line_items, data.tax_rate)


@router.post(
    "",
    response_model=ProposalRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_proposal(
    data: ProposalCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        proposal = proposal_service.create_proposal(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return proposal_service.to_proposal_read(proposal)


@router.get("/{proposal_id}", response_model=ProposalRead)
def get_proposal(
    proposal_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    proposal = _get_proposal_or_404(db, session, proposal_id)
    return proposal_service.to_proposal_read(proposal)


@router.patch(
    "/{proposal_id}",
    response_model=ProposalRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_proposal(
    proposal_id: UUID,
    data: ProposalUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    proposal = _get_proposal_or_404(db, session, proposal_id)
    try:
        proposal = proposal_service.update_proposal(db, session.user_id, proposal, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return proposal_service.to_proposal_read(proposal)


@router.post(
    "/{proposal_id}/send",
    response_model=ProposalRead,
    dependencies=[Depends(require_csrf_header)],
)
def send_proposal(
    proposal_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Mark a proposal as sent."""
    proposal = _get_proposal_or_404(db, session, proposal_id)
    proposal = proposal_service.mark_sent(db, proposal)
    return proposal_service.to_proposal_read(proposal)


@router.delete(
    "/{proposal_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_proposal(
    proposal_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    proposal = _get_proposal_or_404(db, session, proposal_id)
    proposal_service.delete_proposal(db, proposal)
    return None
