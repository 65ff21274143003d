"""User integrations router.

Handles the Google Calendar OAuth flow. The freelancer connects their own
Google account; tokens are stored encrypted.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from freelance_os.core.config import settings
from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.core.security import (
    create_oauth_state_payload,
    generate_oauth_state,
    parse_oauth_state_payload,
    verify_oauth_state,
)
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.calendar import IntegrationStatus
from freelance_os.services import calendar_service, google_oauth

router = APIRouter()
logger = logging.getLogger(__name__)

OAUTH_STATE_MAX_AGE = 300  # 5 minutes
OAUTH_STATE_COOKIE = "integration_oauth_state_google"
OAUTH_STATE_COOKIE_PATH = "/integrations"


def _settings_redirect(query: str) -> RedirectResponse:
    response = RedirectResponse(
        f"{settings.FRONTEND_URL}/settings/integrations?{query}",
        status_code=302,
    )
    response.delete_cookie(OAUTH_STATE_COOKIE, path=OAUTH_STATE_COOKIE_PATH)
    return response


# ============================================================================
# Google Calendar OAuth
# ============================================================================

@router.get("/google/connect")
def google_connect(
    request: Request,
    response: Response,
    session: UserSession = Depends(get_current_session),
) -> dict[str, str]:
    """Get the Google OAuth authorization URL.

    Frontend should redirect the user to this URL.
    """
    if not settings.GOOGLE_CLIENT_ID:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Calendar integration not configured. Set GOOGLE_CLIENT_ID.",
        )

    state = generate_oauth_state()
    user_agent = request.headers.get("user-agent", "")
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=create_oauth_state_payload(state, user_agent),
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path=OAUTH_STATE_COOKIE_PATH,
    )
    return {"auth_url": google_oauth.get_auth_url(state)}


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
) -> RedirectResponse:
    """Handle the Google OAuth callback and store the tokens."""
    if error:
        return _settings_redirect(f"error=google_{error}")
    if not code or not state:
        return _settings_redirect("error=missing_params")

    state_cookie = request.cookies.get(OAUTH_STATE_COOKIE)
    if not state_cookie:
        return _settings_redirect("error=state_expired")

    try:
        stored_payload = parse_oauth_state_payload(state_cookie)
    except ValueError:
        return _settings_redirect("error=invalid_state")

    user_agent = request.headers.get("user-agent", "")
    valid, _ = verify_oauth_state(stored_payload, state, user_agent)
    if not valid:
        return _settings_redirect("error=invalid_state")

    try:
        tokens = await google_oauth.exchange_code_for_tokens(code)
    except httpx.HTTPError as e:
        logger.warning("Google token exchange failed: %s", e.__class__.__name__)
        return _settings_redirect("error=google_failed")

    access_token = tokens.get("access_token")
    if not access_token:
        return _settings_redirect("error=google_failed")

    account_email = await google_oauth.get_account_email(access_token)
    google_oauth.save_integration(
        db,
        session.user_id,
        access_token=access_token,
        refresh_token=tokens.get("refresh_token"),
        expires_in=tokens.get("expires_in"),
        account_email=account_email,
    )
    return _settings_redirect("success=google")


@router.get("/google/status", response_model=IntegrationStatus)
def google_status(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Check if current user has Google Calendar connected."""
    integration = calendar_service.get_integration(db, session.user_id)
    return IntegrationStatus(
        connected=integration is not None,
        account_email=integration.account_email if integration else None,
        expires_at=integration.token_expires_at if integration else None,
    )


@router.delete("/google", status_code=204, dependencies=[Depends(require_csrf_header)])
def google_disconnect(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Disconnect Google Calendar."""
    if not google_oauth.disconnect(db, session.user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Google Calendar is not connected",
        )
    return None
