"""Credentials router - per-client logins, encrypted at rest."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.db.enums import CredentialType
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.credential import CredentialCreate, CredentialRead, CredentialUpdate
from freelance_os.services import credential_service

router = APIRouter()


def _get_credential_or_404(db: Session, session: UserSession, credential_id: UUID):
    credential = credential_service.get_credential(db, session.user_id, credential_id)
    if not credential:
        raise HTTPException(status_code=404, detail="Credential not found")
    return credential


@router.get("", response_model=list[CredentialRead])
def list_credentials(
    client_id: UUID | None = None,
    credential_type: CredentialType | None = Query(None, alias="type"),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    credentials = credential_service.list_credentials(
        db, session.user_id, client_id=client_id, credential_type=credential_type
    )
    return [credential_service.to_credential_read(c) for c in credentials]


@router.post(
    "",
    response_model=CredentialRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_credential(
    data: CredentialCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        credential = credential_service.create_credential(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return credential_service.to_credential_read(credential)


@router.get("/{credential_id}", response_model=CredentialRead)
def get_credential(
    credential_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get a credential with its password decrypted."""
    credential = _get_credential_or_404(db, session, credential_id)
    return credential_service.to_credential_read(credential)


@router.patch(
    "/{credential_id}",
    response_model=CredentialRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_credential(
    credential_id: UUID,
    data: CredentialUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    credential = _get_credential_or_404(db, session, credential_id)
    try:
        credential = credential_service.update_credential(db, session.user_id, credential, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return credential_service.to_credential_read(credential)


@router.delete(
    "/{credential_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_credential(
    credential_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    credential = _get_credential_or_404(db, session, credential_id)
    credential_service.delete_credential(db, credential)
    return None
