"""Calendar service - Google Calendar v3 integration.

Handles:
- Access token lookup and refresh
- Event listing, creation and deletion
- Freebusy queries
- Mirroring confirmed bookings as calendar events

Note: Requires the calendar.events scope.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import TypedDict
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from freelance_os.core.config import settings
from freelance_os.db.enums import IntegrationProvider
from freelance_os.db.models import Booking, UserIntegration

logger = logging.getLogger(__name__)

CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
REQUEST_TIMEOUT_SECONDS = 15.0
TOKEN_EXPIRY_SKEW = timedelta(seconds=60)


class CalendarError(Exception):
    """Google Calendar request failed."""


class CalendarNotConnected(CalendarError):
    """The user has not connected Google Calendar."""


# =============================================================================
# Types
# =============================================================================

class BusyBlock(TypedDict):
    """A blocked time period from Google Calendar."""
    start: datetime
    end: datetime


class CalendarEvent(TypedDict):
    """A calendar event."""
    id: str
    summary: str
    description: str | None
    start: datetime | None
    end: datetime | None
    html_link: str | None
    is_all_day: bool
    attendees: list[str]


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SECONDS)


# =============================================================================
# Token Management
# =============================================================================

def get_integration(db: Session, user_id: UUID) -> UserIntegration | None:
    return db.query(UserIntegration).filter(
        UserIntegration.user_id == user_id,
        UserIntegration.provider == IntegrationProvider.GOOGLE.value,
    ).first()


async def get_google_access_token(db: Session, user_id: UUID) -> str | None:
    """
    Get a valid Google access token for a user.

    Refreshes the token if expired.
    Returns None if no integration exists or the refresh fails.
    """
    integration = get_integration(db, user_id)
    if not integration or not integration.access_token:
        return None

    expires_at = integration.token_expires_at
    if expires_at and expires_at - TOKEN_EXPIRY_SKEW < datetime.now(timezone.utc):
        if not integration.refresh_token:
            return None
        tokens = await _refresh_google_token(integration.refresh_token)
        if not tokens:
            return None
        integration.access_token = tokens["access_token"]
        integration.token_expires_at = datetime.now(timezone.utc) + timedelta(
            seconds=tokens.get("expires_in", 3600)
        )
        db.commit()
        return tokens["access_token"]

    return integration.access_token


async def _refresh_google_token(refresh_token: str) -> dict | None:
    """Refresh a Google OAuth token."""
    try:
        async with _http_client() as client:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": settings.GOOGLE_CLIENT_ID,
                    "client_secret": settings.GOOGLE_CLIENT_SECRET,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                },
            )
    except httpx.HTTPError as e:
        logger.warning("Google token refresh failed: %s", e.__class__.__name__)
        return None
    if response.status_code != 200:
        logger.warning("Google token refresh rejected with status %s", response.status_code)
        return None
    return response.json()


async def require_access_token(db: Session, user_id: UUID) -> str:
    """
    Like get_google_access_token, but raises when unavailable.

    Raises:
        CalendarNotConnected: If Google Calendar is not connected
    """
    token = await get_google_access_token(db, user_id)
    if not token:
        raise CalendarNotConnected("Google Calendar is not connected")
    return token


# =============================================================================
# Low-level API
# =============================================================================

async def _request(
    method: str,
    path: str,
    access_token: str,
    *,
    params: dict | None = None,
    json: dict | None = None,
) -> httpx.Response:
    try:
        async with _http_client() as client:
            response = await client.request(
                method,
                f"{CALENDAR_API_BASE}{path}",
                headers={"Authorization": f"Bearer {access_token}"},
                params=params,
                json=json,
            )
    except httpx.HTTPError as e:
        raise CalendarError(f"Calendar request failed: {e.__class__.__name__}") from e
    return response


def _raise_for_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    message = f"Google Calendar returned {response.status_code}"
    try:
        error = response.json().get("error")
        if isinstance(error, dict) and error.get("message"):
            message = error["message"]
    except ValueError:
        pass
    raise CalendarError(message)


def _parse_when(value: dict | None) -> tuple[datetime | None, bool]:
    """Parse a Google start/end object into (datetime, is_all_day)."""
    if not value:
        return None, False
    if value.get("dateTime"):
        return datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00")), False
    if value.get("date"):
        day = datetime.fromisoformat(value["date"]).date()
        return datetime.combine(day, time.min, tzinfo=timezone.utc), True
    return None, False


def _parse_event(item: dict) -> CalendarEvent:
    start, is_all_day = _parse_when(item.get("start"))
    end, _ = _parse_when(item.get("end"))
    return CalendarEvent(
        id=item["id"],
        summary=item.get("summary") or "(No title)",
        description=item.get("description"),
        start=start,
        end=end,
        html_link=item.get("htmlLink"),
        is_all_day=is_all_day,
        attendees=[a["email"] for a in item.get("attendees", []) if a.get("email")],
    )


# =============================================================================
# Events
# =============================================================================

async def fetch_events(
    access_token: str,
    time_min: datetime,
    time_max: datetime,
    calendar_id: str = "primary",
    max_results: int = 250,
) -> list[CalendarEvent]:
    """List events in a window, recurring events expanded, by start time."""
    response = await _request(
        "GET",
        f"/calendars/{calendar_id}/events",
        access_token,
        params={
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": max_results,
        },
    )
    _raise_for_error(response)
    items = response.json().get("items", [])
    return [_parse_event(item) for item in items if item.get("status") != "cancelled"]


async def get_today_events(access_token: str, now: datetime | None = None) -> list[CalendarEvent]:
    now = now or datetime.now(timezone.utc)
    start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    return await fetch_events(access_token, start, start + timedelta(days=1))


async def get_week_events(access_token: str, now: datetime | None = None) -> list[CalendarEvent]:
    """Events for the next 7 days starting today."""
    now = now or datetime.now(timezone.utc)
    start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    return await fetch_events(access_token, start, start + timedelta(days=7))


async def create_event(
    access_token: str,
    summary: str,
    start: datetime,
    end: datetime,
    description: str | None = None,
    attendees: list[str] | None = None,
    timezone_name: str = "UTC",
    calendar_id: str = "primary",
) -> CalendarEvent:
    """Create a timed event and return it as stored by Google."""
    body: dict = {
        "summary": summary,
        "start": {"dateTime": start.isoformat(), "timeZone": timezone_name},
        "end": {"dateTime": end.isoformat(), "timeZone": timezone_name},
    }
    if description:
        body["description"] = description
    if attendees:
        body["attendees"] = [{"email": email} for email in attendees]

    response = await _request("POST", f"/calendars/{calendar_id}/events", access_token, json=body)
    _raise_for_error(response)
    return _parse_event(response.json())


async def delete_event(
    access_token: str,
    event_id: str,
    calendar_id: str = "primary",
) -> None:
    """Delete an event. An event that is already gone counts as deleted."""
    response = await _request("DELETE", f"/calendars/{calendar_id}/events/{event_id}", access_token)
    if response.status_code in (404, 410):
        return
    _raise_for_error(response)


# =============================================================================
# Freebusy Queries
# =============================================================================

async def get_free_busy(
    access_token: str,
    time_min: datetime,
    time_max: datetime,
    calendar_ids: list[str] | None = None,
) -> dict[str, list[BusyBlock]]:
    """Busy blocks per calendar for the window."""
    calendar_ids = calendar_ids or ["primary"]
    response = await _request(
        "POST",
        "/freeBusy",
        access_token,
        json={
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "items": [{"id": cid} for cid in calendar_ids],
        },
    )
    _raise_for_error(response)

    calendars = response.json().get("calendars", {})
    result: dict[str, list[BusyBlock]] = {}
    for calendar_id in calendar_ids:
        busy = calendars.get(calendar_id, {}).get("busy", [])
        result[calendar_id] = [
            BusyBlock(
                start=datetime.fromisoformat(b["start"].replace("Z", "+00:00")),
                end=datetime.fromisoformat(b["end"].replace("Z", "+00:00")),
            )
            for b in busy
        ]
    return result


# =============================================================================
# Bookings
# =============================================================================

async def create_event_from_booking(access_token: str, booking: Booking) -> CalendarEvent:
    """Create the calendar event for a booking, inviting the client."""
    start = booking.scheduled_at
    end = start + timedelta(minutes=booking.duration_minutes or 30)
    lines = [f"Client: {booking.client_name}", f"Email: {booking.client_email}"]
    if booking.client_phone:
        lines.append(f"Phone: {booking.client_phone}")
    if booking.meeting_type:
        lines.append(f"Type: {booking.meeting_type}")
    if booking.notes:
        lines.append("")
        lines.append(booking.notes)

    return await create_event(
        access_token,
        summary=f"Meeting: {booking.client_name}",
        start=start,
        end=end,
        description="\n".join(lines),
        attendees=[booking.client_email],
    )


async def sync_booking_event(db: Session, booking: Booking) -> str | None:
    """
    Mirror a confirmed booking to Google Calendar.

    Skipped when the user has no connection or the event already exists.
    Calendar failures are logged and never propagate.
    """
    if booking.google_event_id:
        return booking.google_event_id
    token = await get_google_access_token(db, booking.user_id)
    if not token:
        return None
    try:
        event = await create_event_from_booking(token, booking)
    except CalendarError as e:
        logger.warning("Calendar event for booking %s failed: %s", booking.id, e)
        return None
    booking.google_event_id = event["id"]
    db.commit()
    return event["id"]


async def remove_booking_event(db: Session, booking: Booking) -> bool:
    """Delete the mirrored event of a booking. Failures are logged."""
    if not booking.google_event_id:
        return False
    token = await get_google_access_token(db, booking.user_id)
    if not token:
        return False
    try:
        await delete_event(token, booking.google_event_id)
    except CalendarError as e:
        logger.warning("Calendar event removal for booking %s failed: %s", booking.id, e)
        return False
    booking.google_event_id = None
    db.commit()
    return True
