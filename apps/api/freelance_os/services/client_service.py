"""Client service - CRUD for the freelancer's clients."""

from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from freelance_os.db.models import Client
from freelance_os.schemas.client import ClientCreate, ClientUpdate


def list_clients(
    db: Session,
    user_id: UUID,
    search: str | None = None,
    status: str | None = None,
) -> list[Client]:
    """List clients, newest first. Search matches name, company or email."""
    query = db.query(Client).filter(Client.user_id == user_id)
    if status:
        query = query.filter(Client.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Client.first_name.ilike(pattern),
                Client.last_name.ilike(pattern),
                Client.company.ilike(pattern),
                Client.email.ilike(pattern),
            )
        )
    return query.order_by(Client.created_at.desc()).all()


def get_client(db: Session, user_id: UUID, client_id: UUID) -> Client | None:
    """Get a client by ID (user-scoped)."""
    return db.query(Client).filter(
        Client.id == client_id,
        Client.user_id == user_id,
    ).first()


def ensure_client(db: Session, user_id: UUID, client_id: UUID | None) -> None:
    """
    Check that a referenced client belongs to the user.

    Raises:
        ValueError: If the client does not exist in this workspace
    """
    if client_id is not None and not get_client(db, user_id, client_id):
        raise ValueError("Client not found")


def create_client(db: Session, user_id: UUID, data: ClientCreate) -> Client:
    client = Client(user_id=user_id, **data.model_dump())
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


def update_client(db: Session, client: Client, data: ClientUpdate) -> Client:
    """Apply a partial update (only fields present in the request)."""
    for field, value in data.model_dump(exclude_unset=True).items():
        if field in ("first_name", "status") and value is None:
            continue
        if field == "last_name" and value is None:
            value = ""
        setattr(client, field, value)
    db.commit()
    db.refresh(client)
    return client


def delete_client(db: Session, client: Client) -> None:
    """Delete a client. Linked rows keep existing with client_id cleared."""
    db.delete(client)
    db.commit()
