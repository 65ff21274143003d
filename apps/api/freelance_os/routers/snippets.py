"""Snippets router - the personal code snippet library."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.snippet import SnippetCreate, SnippetRead, SnippetUpdate
from freelance_os.services import snippet_service

router = APIRouter()


def _get_snippet_or_404(db: Session, session: UserSession, snippet_id: UUID):
    snippet = snippet_service.get_snippet(db, session.user_id, snippet_id)
    if not snippet:
        raise HTTPException(status_code=404, detail="Snippet not found")
    return snippet


@router.get("", response_model=list[SnippetRead])
def list_snippets(
    language: str | None = Query(None, max_length=50),
    tag: str | None = Query(None, max_length=100),
    favorites: bool = False,
    search: str | None = Query(None, max_length=100),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List snippets, favorites first."""
    return snippet_service.list_snippets(
        db,
        session.user_id,
        language=language.lower() if language else None,
        tag=tag,
        favorites_only=favorites,
        search=search,
    )


@router.get("/languages", response_model=list[str])
def list_languages(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Distinct languages in use, for the filter dropdown."""
    return snippet_service.list_languages(db, session.user_id)


@router.post(
    "",
    response_model=SnippetRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_snippet(
    data: SnippetCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return snippet_service.create_snippet(db, session.user_id, data)


@router.get("/{snippet_id}", response_model=SnippetRead)
def get_snippet(
    snippet_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _get_snippet_or_404(db, session, snippet_id)


@router.patch(
    "/{snippet_id}",
    response_model=SnippetRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_snippet(
    snippet_id: UUID,
    data: SnippetUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    snippet = _get_snippet_or_404(db, session, snippet_id)
    return snippet_service.update_snippet(db, snippet, data)


@router.post(
    "/{snippet_id}/favorite",
    response_model=SnippetRead,
    dependencies=[Depends(require_csrf_header)],
)
def toggle_favorite(
    snippet_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    snippet = _get_snippet_or_404(db, session, snippet_id)
    return snippet_service.toggle_favorite(db, snippet)


@router.delete(
    "/{snippet_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_snippet(
    snippet_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    snippet = _get_snippet_or_404(db, session, snippet_id)
    snippet_service.delete_snippet(db, snippet)
    return None
