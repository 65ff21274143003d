"""Google OAuth service - Calendar connection for a user."""

import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from freelance_os.core.config import settings
from freelance_os.db.enums import IntegrationProvider
from freelance_os.db.models import UserIntegration
from freelance_os.services import calendar_service

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
CALENDAR_SCOPES = [
    "openid",
    "email",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.readonly",
]


def get_auth_url(state: str) -> str:
    """Consent URL requesting offline access to the user's calendar."""
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": settings.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": " ".join(CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "include_granted_scopes": "true",
        "state": state,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def exchange_code_for_tokens(code: str) -> dict:
    """
    Exchange authorization code for tokens.

    Raises:
        httpx.HTTPStatusError: If token exchange fails
    """
    async with calendar_service._http_client() as client:
        response = await client.post(
            calendar_service.GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": settings.GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )
        response.raise_for_status()
        return response.json()


async def get_account_email(access_token: str) -> str | None:
    """Email of the Google account that granted access."""
    try:
        async with calendar_service._http_client() as client:
            response = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
    except httpx.HTTPError:
        return None
    if response.status_code != 200:
        return None
    return response.json().get("email")


def save_integration(
    db: Session,
    user_id: UUID,
    access_token: str,
    refresh_token: str | None,
    expires_in: int | None,
    account_email: str | None,
) -> UserIntegration:
    """Create or update the user's Google integration. Tokens are encrypted by the column type."""
    integration = calendar_service.get_integration(db, user_id)
    if not integration:
        integration = UserIntegration(
            user_id=user_id,
            provider=IntegrationProvider.GOOGLE.value,
        )
        db.add(integration)

    integration.access_token = access_token
    # Google only returns a refresh token on first consent
    if refresh_token:
        integration.refresh_token = refresh_token
    integration.token_expires_at = (
        datetime.now(timezone.utc) + timedelta(seconds=expires_in) if expires_in else None
    )
    if account_email:
        integration.account_email = account_email

    db.commit()
    db.refresh(integration)
    logger.info("Google Calendar connected for user %s", user_id)
    return integration


def disconnect(db: Session, user_id: UUID) -> bool:
    integration = calendar_service.get_integration(db, user_id)
    if not integration:
        return False
    db.delete(integration)
    db.commit()
    return True
