"""Credential service - client logins, encrypted at rest."""

from uuid import UUID

from sqlalchemy.orm import Session

from freelance_os.db.enums import CredentialType
from freelance_os.db.models import Credential
from freelance_os.schemas.credential import (
    CredentialCreate,
    CredentialRead,
    CredentialUpdate,
)
from freelance_os.services import client_service


def to_credential_read(credential: Credential) -> CredentialRead:
    return CredentialRead(
        id=credential.id,
        client_id=credential.client_id,
        service_name=credential.service_name,
        type=credential.category,
        url=credential.url,
        username=credential.username,
        password=credential.password,
        notes=credential.notes,
        created_at=credential.created_at,
        updated_at=credential.updated_at,
    )


def list_credentials(
    db: Session,
    user_id: UUID,
    client_id: UUID | None = None,
    credential_type: CredentialType | None = None,
) -> list[Credential]:
    """List credentials, newest first."""
    query = db.query(Credential).filter(Credential.user_id == user_id)
    if client_id:
        query = query.filter(Credential.client_id == client_id)
    if credential_type:
        query = query.filter(Credential.category == credential_type.value)
    return query.order_by(Credential.created_at.desc()).all()


def get_credential(db: Session, user_id: UUID, credential_id: UUID) -> Credential | None:
    """Get a credential by ID (user-scoped)."""
    return db.query(Credential).filter(
        Credential.id == credential_id,
        Credential.user_id == user_id,
    ).first()


def create_credential(db: Session, user_id: UUID, data: CredentialCreate) -> Credential:
    client_service.ensure_client(db, user_id, data.client_id)
    credential = Credential(
        user_id=user_id,
        client_id=data.client_id,
        service_name=data.service_name,
        category=data.type.value,
        url=data.url,
        username=data.username,
        password=data.password,
        notes=data.notes,
    )
    db.add(credential)
    db.commit()
    db.refresh(credential)
    return credential


def update_credential(
    db: Session,
    user_id: UUID,
    credential: Credential,
    data: CredentialUpdate,
) -> Credential:
    values = data.model_dump(exclude_unset=True)
    if "client_id" in values:
        client_service.ensure_client(db, user_id, values["client_id"])
    if "type" in values:
        credential_type = values.pop("type")
        if credential_type is not None:
            credential.category = CredentialType(credential_type).value
    for field, value in values.items():
        if field == "service_name" and value is None:
            continue
        setattr(credential, field, value)
    db.commit()
    db.refresh(credential)
    return credential


def delete_credential(db: Session, credential: Credential) -> None:
    db.delete(credential)
    db.commit()
