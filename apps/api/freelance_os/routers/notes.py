"""Notes router - meeting, technical and general notes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.db.enums import NoteType
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.note import NoteCreate, NoteRead, NoteUpdate
from freelance_os.services import note_service

router = APIRouter()


def _get_note_or_404(db: Session, session: UserSession, note_id: UUID):
    note = note_service.get_note(db, session.user_id, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


@router.get("", response_model=list[NoteRead])
def list_notes(
    note_type: NoteType | None = Query(None, alias="type"),
    client_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List notes, newest first, optionally by type or client."""
    return note_service.list_notes(db, session.user_id, note_type=note_type, client_id=client_id)


@router.post(
    "",
    response_model=NoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_note(
    data: NoteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Add a note. Content HTML is sanitized."""
    try:
        return note_service.create_note(db, session.user_id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{note_id}", response_model=NoteRead)
def get_note(
    note_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _get_note_or_404(db, session, note_id)


@router.patch(
    "/{note_id}",
    response_model=NoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_note(
    note_id: UUID,
    data: NoteUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    note = _get_note_or_404(db, session, note_id)
    try:
        return note_service.update_note(db, session.user_id, note, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete(
    "/{note_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_note(
    note_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    note = _get_note_or_404(db, session, note_id)
    note_service.delete_note(db, note)
    return None
