"""Clients router - the freelancer's client list."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.client import ClientCreate, ClientRead, ClientStatusValue, ClientUpdate
from freelance_os.services import client_service

router = APIRouter()


def _get_client_or_404(db: Session, session: UserSession, client_id: UUID):
    client = client_service.get_client(db, session.user_id, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("", response_model=list[ClientRead])
def list_clients(
    search: str | None = Query(None, max_length=100),
    status: ClientStatusValue | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List clients. Search matches name, company or email."""
    return client_service.list_clients(db, session.user_id, search=search, status=status)


@router.post(
    "",
    response_model=ClientRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_client(
    data: ClientCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return client_service.create_client(db, session.user_id, data)


@router.get("/{client_id}", response_model=ClientRead)
def get_client(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _get_client_or_404(db, session, client_id)


@router.patch(
    "/{client_id}",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_client(
    client_id: UUID,
    data: ClientUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    client = _get_client_or_404(db, session, client_id)
    return client_service.update_client(db, client, data)


@router.delete(
    "/{client_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_client(
    client_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Delete a client.

    Linked pipeline items, notes, credentials, invoices and time entries
    stay, with their client reference cleared.
    """
    client = _get_client_or_404(db, session, client_id)
    client_service.delete_client(db, client)
    return None
