"""FastAPI dependencies: database session, signed-in freelancer, CSRF guard."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from freelance_os.core.security import decode_session_token
from freelance_os.db.models import User
from freelance_os.db.session import SessionLocal
from freelance_os.schemas.auth import UserSession


COOKIE_NAME = "fos_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _user_from_cookie(request: Request, db: Session) -> User:
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
        user_id = UUID(str(payload.get("sub")))
    except (jwt.PyJWTError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")

    # Sign-out bumps token_version, which revokes every earlier cookie
    if user.token_version != payload.get("token_version"):
        raise HTTPException(status_code=401, detail="Session revoked")

    return user


def get_current_session(
    request: Request,
    db: Session = Depends(get_db),
) -> UserSession:
    """
    Resolve the session cookie to the signed-in freelancer.

    Every list/detail query downstream filters by ``session.user_id``.
    The user id is also stashed on ``request.state`` for request logging.

    Raises:
        HTTPException 401: missing, invalid, expired or revoked session
    """
    user = _user_from_cookie(request, db)
    request.state.user_id = str(user.id)
    return UserSession(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
    )


def require_csrf_header(request: Request) -> None:
    """Reject mutations without the ``X-Requested-With`` header (403)."""
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'",
        )
