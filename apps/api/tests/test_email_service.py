"""Tests for transactional email rendering and delivery."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from freelance_os.core.config import settings
from freelance_os.db.enums import EmailType
from freelance_os.db.models import Booking
from freelance_os.services import email_service


def _booking() -> Booking:
    return Booking(
        client_name="Ada <script>",
        client_email="ada@example.com",
        scheduled_at=datetime(2025, 3, 10, 14, 30, tzinfo=timezone.utc),
        duration_minutes=30,
        meeting_type="discovery",
        notes="Bring the brief",
        status="pending",
    )


def test_format_when_uses_timezone():
    when = datetime(2025, 3, 10, 14, 30, tzinfo=timezone.utc)
    assert email_service.format_when(when, "Europe/Berlin") == "Monday, 10 March 2025 at 15:30 (Europe/Berlin)"
    assert email_service.format_when(when, "Not/AZone") == "Monday, 10 March 2025 at 14:30 (UTC)"


def test_render_escapes_values():
    html = email_service.render(EmailType.BOOKING_CONFIRMATION, {"client_name": "<b>x</b>"})
    assert "&lt;b&gt;x&lt;/b&gt;" in html
    assert "<b>x</b>" not in html


@pytest.mark.asyncio
async def test_send_skipped_when_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "")

    success, error = await email_service.send_booking_confirmation(_booking(), "Test User")

    assert success is False
    assert error == "Email not configured"


@pytest.mark.asyncio
async def test_send_posts_to_resend(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_1"})

    monkeypatch.setattr(
        email_service,
        "_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    success, error = await email_service.send_booking_confirmation(_booking(), "Test User", "UTC")

    assert (success, error) == (True, None)
    assert captured["auth"] == "Bearer re_test"
    payload = captured["payload"]
    assert payload["to"] == ["ada@example.com"]
    assert payload["subject"].startswith("Booking received - Monday, 10 March 2025")
    assert "Ada &lt;script&gt;" in payload["html"]
    assert "Bring the brief" in payload["text"]
    assert payload["tags"] == [{"name": "type", "value": "booking_confirmation"}]


@pytest.mark.asyncio
async def test_send_reports_provider_error(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(
        email_service,
        "_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(
            lambda request: httpx.Response(422, json={"message": "Invalid `to` field"})
        )),
    )

    success, error = await email_service.send_booking_reminder(_booking())

    assert success is False
    assert error == "Resend returned 422: Invalid `to` field"


@pytest.mark.asyncio
async def test_send_handles_timeout(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    monkeypatch.setattr(
        email_service,
        "_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    assert await email_service.send_booking_cancellation(_booking()) == (False, "Connection timeout")
