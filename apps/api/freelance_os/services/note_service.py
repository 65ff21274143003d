"""Note service - meeting, technical and general notes."""

from uuid import UUID

from sqlalchemy.orm import Session

from freelance_os.db.enums import NoteType
from freelance_os.db.models import Note
from freelance_os.schemas.note import NoteCreate, NoteUpdate
from freelance_os.services import client_service
from freelance_os.services.html_sanitizer import sanitize_html


def _clean_tags(tags: list[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def create_note(db: Session, user_id: UUID, data: NoteCreate) -> Note:
    """Create a note. Content HTML is sanitized before storage."""
    client_service.ensure_client(db, user_id, data.client_id)
    note = Note(
        user_id=user_id,
        client_id=data.client_id,
        title=data.title,
        content=sanitize_html(data.content),
        type=data.type.value,
        tags=_clean_tags(data.tags),
        meeting_date=data.meeting_date,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def list_notes(
    db: Session,
    user_id: UUID,
    note_type: NoteType | None = None,
    client_id: UUID | None = None,
) -> list[Note]:
    """List notes, newest first."""
    query = db.query(Note).filter(Note.user_id == user_id)
    if note_type:
        query = query.filter(Note.type == note_type.value)
    if client_id:
        query = query.filter(Note.client_id == client_id)
    return query.order_by(Note.created_at.desc()).all()


def get_note(db: Session, user_id: UUID, note_id: UUID) -> Note | None:
    """Get a note by ID (user-scoped)."""
    return db.query(Note).filter(
        Note.id == note_id,
        Note.user_id == user_id,
    ).first()


def update_note(db: Session, user_id: UUID, note: Note, data: NoteUpdate) -> Note:
    values = data.model_dump(exclude_unset=True)
    if "client_id" in values:
        client_service.ensure_client(db, user_id, values["client_id"])
        note.client_id = values["client_id"]
    if values.get("title") is not None:
        note.title = values["title"]
    if "content" in values:
        note.content = sanitize_html(values["content"])
    if values.get("type") is not None:
        note.type = NoteType(values["type"]).value
    if values.get("tags") is not None:
        note.tags = _clean_tags(values["tags"])
    if "meeting_date" in values:
        note.meeting_date = values["meeting_date"]
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, note: Note) -> None:
    """Delete a note."""
    db.delete(note)
    db.commit()
