"""Authentication router - email/password sign-in and session management."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from freelance_os.core.config import settings
from freelance_os.core.deps import COOKIE_NAME, get_current_session, get_db, require_csrf_header
from freelance_os.core.rate_limit import AUTH_LIMIT, limiter
from freelance_os.core.security import create_session_token
from freelance_os.core.structured_logging import build_log_context
from freelance_os.db.models import User
from freelance_os.schemas.auth import MeResponse, SignInRequest, SignUpRequest, UserSession
from freelance_os.services import calendar_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_session_token(user.id, user.token_version),
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def _me(db: Session, user: User) -> MeResponse:
    return MeResponse(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        google_connected=calendar_service.get_integration(db, user.id) is not None,
    )


# =============================================================================
# Sign Up / Sign In
# =============================================================================

@router.post(
    "/signup",
    response_model=MeResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(AUTH_LIMIT)
def sign_up(
    request: Request,
    response: Response,
    data: SignUpRequest,
    db: Session = Depends(get_db),
):
    """Create an account and start a session."""
    try:
        user = user_service.create_user(db, data.email, data.password, data.display_name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    _set_session_cookie(response, user)
    return _me(db, user)


@router.post(
    "/signin",
    response_model=MeResponse,
    dependencies=[Depends(require_csrf_header)],
)
@limiter.limit(AUTH_LIMIT)
def sign_in(
    request: Request,
    response: Response,
    data: SignInRequest,
    db: Session = Depends(get_db),
):
    """
    Sign in with email and password.

    The error does not reveal whether the email exists.
    """
    user = user_service.authenticate(db, data.email, data.password)
    if not user:
        logger.info("signin_failed", extra=build_log_context(route="/auth/signin"))
        raise HTTPException(status_code=401, detail="Invalid email or password")

    _set_session_cookie(response, user)
    return _me(db, user)


# =============================================================================
# Session Endpoints
# =============================================================================

@router.get("/me", response_model=MeResponse)
def get_me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Get current authenticated user info.

    Used by the frontend to bootstrap auth state on page load.
    """
    user = db.get(User, session.user_id)
    return _me(db, user)


@router.post("/signout", status_code=204, dependencies=[Depends(require_csrf_header)])
def sign_out(
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Sign out of every session.

    Bumps token_version so outstanding cookies stop validating.
    """
    user_service.revoke_all_sessions(db, session.user_id)
    response.delete_cookie(COOKIE_NAME, path="/")
    return None
