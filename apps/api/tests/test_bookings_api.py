"""API tests for availability, public booking and booking status changes."""

from datetime import date, datetime, time, timedelta, timezone

import httpx
import pytest

from freelance_os.db.models import Booking, UserIntegration
from freelance_os.services import calendar_service


ALL_WEEK = {day: {"start": "09:00", "end": "17:00"} for day in ("mon", "tue", "wed", "thu", "fri", "sat", "sun")}


def _future_day() -> date:
    return (datetime.now(timezone.utc) + timedelta(days=7)).date()


async def _save_availability(authed_client, **overrides):
    payload = {
        "working_hours": ALL_WEEK,
        "default_duration": 30,
        "buffer_minutes": 0,
        "timezone": "UTC",
    }
    payload.update(overrides)
    response = await authed_client.put("/bookings/availability", json=payload)
    assert response.status_code == 200
    return response.json()


def _mock_calendar(monkeypatch, calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.method == "POST":
            return httpx.Response(200, json={
                "id": "evt-1",
                "summary": "Meeting",
                "start": {"dateTime": "2030-01-01T10:00:00+00:00"},
                "end": {"dateTime": "2030-01-01T10:30:00+00:00"},
            })
        return httpx.Response(204)

    monkeypatch.setattr(
        calendar_service,
        "_http_client",
        lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _connect_google(db, user):
    db.add(UserIntegration(
        user_id=user.id,
        provider="google",
        access_token="access-token",
        refresh_token="refresh-token",
        token_expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    ))
    db.commit()


# =============================================================================
# Availability
# =============================================================================

@pytest.mark.asyncio
async def test_availability_not_configured_is_null(authed_client):
    response = await authed_client.get("/bookings/availability")
    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_availability_upsert(authed_client):
    blocked = ["2030-01-02", "2030-01-01"]
    saved = await _save_availability(authed_client, blocked_dates=blocked)
    assert saved["blocked_dates"] == ["2030-01-01", "2030-01-02"]

    saved = await _save_availability(authed_client, buffer_minutes=10, working_hours={"mon": None})
    assert saved["buffer_minutes"] == 10
    assert saved["working_hours"] == {"mon": None}

    fetched = (await authed_client.get("/bookings/availability")).json()
    assert fetched["buffer_minutes"] == 10


@pytest.mark.asyncio
async def test_availability_rejects_bad_window(authed_client):
    response = await authed_client.put(
        "/bookings/availability",
        json={"working_hours": {"mon": {"start": "17:00", "end": "09:00"}}},
    )
    assert response.status_code == 422

    response = await authed_client.put(
        "/bookings/availability",
        json={"working_hours": {"funday": {"start": "09:00", "end": "17:00"}}},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("window", [
    {"start": "09:00", "end": "25:99"},
    {"start": "09:00", "end": "24:00"},
    {"start": "09:60", "end": "17:00"},
    {"start": "9:00", "end": "17:00"},
])
async def test_availability_rejects_impossible_clock_times(authed_client, client, test_user, window):
    response = await authed_client.put(
        "/bookings/availability",
        json={"working_hours": {"mon": window}},
    )
    assert response.status_code == 422

    # Nothing was stored, so the public slots stay unconfigured
    response = await client.get(f"/book/{test_user.id}/slots", params={"date": _future_day().isoformat()})
    assert response.status_code == 200
    assert response.json()["configured"] is False


@pytest.mark.asyncio
async def test_availability_accepts_last_minute_of_day(authed_client):
    saved = await _save_availability(authed_client, working_hours={"mon": {"start": "00:00", "end": "23:59"}})
    assert saved["working_hours"]["mon"] == {"start": "00:00", "end": "23:59"}


# =============================================================================
# Public Booking
# =============================================================================

@pytest.mark.asyncio
async def test_public_page_and_slots(authed_client, client, test_user):
    response = await client.get(f"/book/{test_user.id}")
    assert response.status_code == 200
    assert response.json()["configured"] is False
    assert response.json()["display_name"] == "Test User"

    await _save_availability(authed_client)
    day = _future_day()
    response = await client.get(f"/book/{test_user.id}/slots", params={"date": day.isoformat()})
    assert response.status_code == 200
    data = response.json()
    assert data["configured"] is True
    assert data["slots"][0] == {"time": "09:00", "available": True}
    assert len(data["slots"]) == 16


@pytest.mark.asyncio
async def test_public_page_unknown_user(client):
    response = await client.get("/book/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_public_booking_flow(authed_client, client, test_user):
    await _save_availability(authed_client)
    day = _future_day()
    start = datetime.combine(day, time(10, 0), tzinfo=timezone.utc)

    response = await client.post(
        f"/book/{test_user.id}",
        json={"client_name": "Ada", "client_email": "ada@example.com", "scheduled_at": start.isoformat()},
    )
    assert response.status_code == 201
    booking = response.json()
    assert booking["status"] == "pending"
    assert set(booking) == {"id", "client_name", "scheduled_at", "duration_minutes", "status"}

    slots = (await client.get(f"/book/{test_user.id}/slots", params={"date": day.isoformat()})).json()
    taken = {s["time"]: s["available"] for s in slots["slots"]}
    assert taken["10:00"] is False
    assert taken["10:30"] is True

    response = await client.post(
        f"/book/{test_user.id}",
        json={"client_name": "Bob", "client_email": "bob@example.com", "scheduled_at": start.isoformat()},
    )
    assert response.status_code == 400

    listed = (await authed_client.get("/bookings", params={"status": "pending"})).json()
    assert [b["client_name"] for b in listed] == ["Ada"]


@pytest.mark.asyncio
async def test_public_booking_in_past_rejected(client, test_user):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    response = await client.post(
        f"/book/{test_user.id}",
        json={"client_name": "Ada", "client_email": "ada@example.com", "scheduled_at": past.isoformat()},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Selected time is in the past"


# =============================================================================
# Status Changes
# =============================================================================

def _pending_booking(db, user, hours_ahead: int = 48) -> Booking:
    booking = Booking(
        user_id=user.id,
        client_name="Ada",
        client_email="ada@example.com",
        scheduled_at=datetime.now(timezone.utc) + timedelta(hours=hours_ahead),
        duration_minutes=30,
        status="pending",
    )
    db.add(booking)
    db.commit()
    return booking


@pytest.mark.asyncio
async def test_confirm_creates_calendar_event_and_cancel_removes_it(
    authed_client, db, test_user, monkeypatch
):
    calls: list = []
    _mock_calendar(monkeypatch, calls)
    _connect_google(db, test_user)
    booking = _pending_booking(db, test_user)

    response = await authed_client.post(f"/bookings/{booking.id}/confirm")
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["google_event_id"] == "evt-1"
    assert calls == [("POST", "/calendar/v3/calendars/primary/events")]

    response = await authed_client.post(f"/bookings/{booking.id}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["google_event_id"] is None
    assert calls[-1] == ("DELETE", "/calendar/v3/calendars/primary/events/evt-1")


@pytest.mark.asyncio
async def test_confirm_without_calendar_still_succeeds(authed_client, db, test_user):
    booking = _pending_booking(db, test_user)

    response = await authed_client.patch(f"/bookings/{booking.id}/status", json={"status": "confirmed"})
    assert response.status_code == 200
    assert response.json()["google_event_id"] is None


@pytest.mark.asyncio
async def test_any_status_can_be_set(authed_client, db, test_user):
    booking = _pending_booking(db, test_user)

    response = await authed_client.post(f"/bookings/{booking.id}/complete")
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = await authed_client.patch(f"/bookings/{booking.id}/status", json={"status": "pending"})
    assert response.status_code == 200
    assert response.json()["status"] == "pending"


@pytest.mark.asyncio
async def test_cancelled_booking_can_be_confirmed_again(authed_client, db, test_user, monkeypatch):
    calls: list = []
    _mock_calendar(monkeypatch, calls)
    _connect_google(db, test_user)
    booking = _pending_booking(db, test_user)

    await authed_client.post(f"/bookings/{booking.id}/confirm")
    await authed_client.post(f"/bookings/{booking.id}/cancel")
    response = await authed_client.post(f"/bookings/{booking.id}/confirm")

    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["google_event_id"] == "evt-1"
    assert [method for method, _ in calls] == ["POST", "DELETE", "POST"]


@pytest.mark.asyncio
async def test_same_status_is_noop(authed_client, db, test_user, monkeypatch):
    calls: list = []
    _mock_calendar(monkeypatch, calls)
    _connect_google(db, test_user)
    booking = _pending_booking(db, test_user)

    await authed_client.post(f"/bookings/{booking.id}/confirm")
    response = await authed_client.post(f"/bookings/{booking.id}/confirm")

    assert response.status_code == 200
    assert calls == [("POST", "/calendar/v3/calendars/primary/events")]


@pytest.mark.asyncio
async def test_upcoming_excludes_past_and_cancelled(authed_client, db, test_user):
    soon = _pending_booking(db, test_user, hours_ahead=2)
    _pending_booking(db, test_user, hours_ahead=-2)
    cancelled = _pending_booking(db, test_user, hours_ahead=3)
    cancelled.status = "cancelled"
    db.commit()

    upcoming = (await authed_client.get("/bookings/upcoming")).json()
    assert [b["id"] for b in upcoming] == [str(soon.id)]


@pytest.mark.asyncio
async def test_internal_booking_created_confirmed(authed_client):
    start = datetime.now(timezone.utc) + timedelta(days=2)
    response = await authed_client.post(
        "/bookings",
        json={
            "client_name": "Grace",
            "client_email": "grace@example.com",
            "scheduled_at": start.isoformat(),
            "status": "confirmed",
            "meeting_type": "review",
        },
    )
    assert response.status_code == 201
    assert response.json()["status"] == "confirmed"

    response = await authed_client.delete(f"/bookings/{response.json()['id']}")
    assert response.status_code == 204
