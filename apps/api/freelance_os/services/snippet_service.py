"""Snippet service - reusable code snippets."""

from uuid import UUID

from sqlalchemy.orm import Session

from freelance_os.db.models import CodeSnippet
from freelance_os.schemas.snippet import SnippetCreate, SnippetUpdate


def list_snippets(
    db: Session,
    user_id: UUID,
    language: str | None = None,
    tag: str | None = None,
    favorites_only: bool = False,
    search: str | None = None,
) -> list[CodeSnippet]:
    """List snippets, favorites first, then newest."""
    query = db.query(CodeSnippet).filter(CodeSnippet.user_id == user_id)
    if language:
        query = query.filter(CodeSnippet.language == language)
    if favorites_only:
        query = query.filter(CodeSnippet.is_favorite.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            CodeSnippet.title.ilike(pattern) | CodeSnippet.description.ilike(pattern)
        )
    snippets = query.order_by(
        CodeSnippet.is_favorite.desc(),
        CodeSnippet.created_at.desc(),
    ).all()
    # JSON tags are filtered in Python to stay portable across backends
    if tag:
        snippets = [s for s in snippets if tag in (s.tags or [])]
    return snippets


def list_languages(db: Session, user_id: UUID) -> list[str]:
    rows = db.query(CodeSnippet.language).filter(
        CodeSnippet.user_id == user_id,
    ).distinct().all()
    return sorted(r[0] for r in rows)


def get_snippet(db: Session, user_id: UUID, snippet_id: UUID) -> CodeSnippet | None:
    """Get a snippet by ID (user-scoped)."""
    return db.query(CodeSnippet).filter(
        CodeSnippet.id == snippet_id,
        CodeSnippet.user_id == user_id,
    ).first()


def create_snippet(db: Session, user_id: UUID, data: SnippetCreate) -> CodeSnippet:
    snippet = CodeSnippet(user_id=user_id, **data.model_dump())
    snippet.language = snippet.language.lower()
    db.add(snippet)
    db.commit()
    db.refresh(snippet)
    return snippet


def update_snippet(db: Session, snippet: CodeSnippet, data: SnippetUpdate) -> CodeSnippet:
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        if field == "language":
            value = value.lower()
        setattr(snippet, field, value)
    db.commit()
    db.refresh(snippet)
    return snippet


def toggle_favorite(db: Session, snippet: CodeSnippet) -> CodeSnippet:
    snippet.is_favorite = not snippet.is_favorite
    db.commit()
    db.refresh(snippet)
    return snippet


def delete_snippet(db: Session, snippet: CodeSnippet) -> None:
    db.delete(snippet)
    db.commit()
