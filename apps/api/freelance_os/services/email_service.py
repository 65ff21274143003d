"""Email service - transactional email via the Resend API.

Sends booking and follow-up notifications. Failures are logged and returned
as ``(success, error)``; they never raise.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

from freelance_os.core.config import settings
from freelance_os.db.enums import EmailType
from freelance_os.db.models import Booking, PipelineItem

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 20.0

DEFAULT_SUBJECTS = {
    EmailType.BOOKING_CONFIRMATION: "Booking received - {scheduled_at}",
    EmailType.BOOKING_REMINDER: "Reminder: meeting on {scheduled_at}",
    EmailType.BOOKING_CANCELLED: "Your booking has been cancelled",
    EmailType.FOLLOWUP_REMINDER: "Follow-up reminder",
}

_BODIES = {
    EmailType.BOOKING_CONFIRMATION: (
        "<p>Hi {client_name},</p>"
        "<p>Your {meeting_type} request for <strong>{scheduled_at}</strong> has been received.</p>"
        "{notes_block}"
        "<p>{freelancer_name}</p>"
    ),
    EmailType.BOOKING_REMINDER: (
        "<p>Hi {client_name},</p>"
        "<p>This is a reminder of our meeting on <strong>{scheduled_at}</strong>.</p>"
        "<p>{freelancer_name}</p>"
    ),
    EmailType.BOOKING_CANCELLED: (
        "<p>Hi {client_name},</p>"
        "<p>Your booking on <strong>{scheduled_at}</strong> has been cancelled.</p>"
        "<p>{freelancer_name}</p>"
    ),
    EmailType.FOLLOWUP_REMINDER: (
        "<p>Follow up with <strong>{client_name}</strong> today.</p>"
        "{notes_block}"
    ),
}


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS)


def _html_to_text(content: str) -> str:
    """Convert HTML into readable text for the plain-text part."""
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", "", content, flags=re.DOTALL | re.I)
    text = re.sub(r"</p>|<br\s*/?>", "\n", text, flags=re.I)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text).strip()
    return html.unescape(text)


def format_when(value: datetime, timezone_name: str | None = None) -> str:
    """Human date for emails, e.g. 'Monday, 3 March 2025 at 14:30 (UTC)'."""
    tz_name = timezone_name or settings.DEFAULT_TIMEZONE
    try:
        local = value.astimezone(ZoneInfo(tz_name))
    except Exception:
        tz_name = "UTC"
        local = value.astimezone(ZoneInfo("UTC"))
    return f"{local:%A}, {local.day} {local:%B %Y} at {local:%H:%M} ({tz_name})"


def render(email_type: EmailType, data: dict) -> str:
    """Render the HTML body. All values are escaped."""
    values = {key: html.escape(str(value)) for key, value in data.items() if value is not None}
    values.setdefault("client_name", "there")
    values.setdefault("scheduled_at", "")
    values.setdefault("meeting_type", "meeting")
    values.setdefault("freelancer_name", "")
    notes = values.pop("notes", None)
    values["notes_block"] = f"<p>{notes}</p>" if notes else ""
    return _BODIES[email_type].format(**values)


def default_subject(email_type: EmailType, data: dict) -> str:
    return DEFAULT_SUBJECTS[email_type].format(scheduled_at=data.get("scheduled_at", ""))


async def send_email(
    email_type: EmailType | str,
    to: str,
    data: dict,
    subject: str | None = None,
) -> tuple[bool, str | None]:
    """
    Send a transactional email.

    Returns:
        (success, error_message)
    """
    email_type = EmailType(email_type)
    if not settings.email_configured:
        logger.info("Email %s to recipient skipped: not configured", email_type.value)
        return False, "Email not configured"

    body = render(email_type, data)
    payload: dict[str, object] = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject or default_subject(email_type, data),
        "html": body,
        "text": _html_to_text(body),
        "tags": [{"name": "type", "value": email_type.value}],
    }
    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    try:
        async with _http_client() as client:
            response = await client.post(RESEND_SEND_URL, headers=headers, json=payload)
    except httpx.TimeoutException:
        logger.warning("Resend timeout sending %s", email_type.value)
        return False, "Connection timeout"
    except httpx.HTTPError as e:
        logger.exception("Resend connection error sending %s", email_type.value)
        return False, f"Connection error: {e.__class__.__name__}"

    if 200 <= response.status_code < 300:
        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            pass
        logger.info("Email %s sent, message_id=%s", email_type.value, message_id)
        return True, None

    error = f"Resend returned {response.status_code}"
    try:
        detail = response.json().get("message")
        if detail:
            error = f"{error}: {detail}"
    except ValueError:
        pass
    logger.warning("Email %s failed: %s", email_type.value, error)
    return False, error


# =============================================================================
# Booking / Pipeline Notifications
# =============================================================================

def _booking_data(booking: Booking, freelancer_name: str | None, timezone_name: str | None) -> dict:
    return {
        "client_name": booking.client_name,
        "scheduled_at": format_when(booking.scheduled_at, timezone_name),
        "meeting_type": booking.meeting_type or "meeting",
        "notes": booking.notes,
        "freelancer_name": freelancer_name,
    }


async def send_booking_confirmation(
    booking: Booking,
    freelancer_name: str | None = None,
    timezone_name: str | None = None,
) -> tuple[bool, str | None]:
    return await send_email(
        EmailType.BOOKING_CONFIRMATION,
        booking.client_email,
        _booking_data(booking, freelancer_name, timezone_name),
    )


async def send_booking_reminder(
    booking: Booking,
    freelancer_name: str | None = None,
    timezone_name: str | None = None,
) -> tuple[bool, str | None]:
    data = _booking_data(booking, freelancer_name, timezone_name)
    data.pop("notes")
    return await send_email(EmailType.BOOKING_REMINDER, booking.client_email, data)


async def send_booking_cancellation(
    booking: Booking,
    freelancer_name: str | None = None,
    timezone_name: str | None = None,
) -> tuple[bool, str | None]:
    data = _booking_data(booking, freelancer_name, timezone_name)
    data.pop("notes")
    return await send_email(EmailType.BOOKING_CANCELLED, booking.client_email, data)


async def send_followup_reminder(to: str, item: PipelineItem) -> tuple[bool, str | None]:
    """Remind the freelancer to follow up on a pipeline item."""
    client_name = item.client.full_name if item.client else "your lead"
    return await send_email(
        EmailType.FOLLOWUP_REMINDER,
        to,
        {"client_name": client_name, "notes": item.notes},
    )
