"""Tests for the timer and time statistics."""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from freelance_os.db.models import TimeEntry
from freelance_os.services import time_tracking_service
from freelance_os.services.time_tracking_service import (
    format_duration,
    format_duration_detailed,
    week_start,
)


T0 = datetime(2025, 3, 12, 9, 0, tzinfo=timezone.utc)  # Wednesday


def test_format_duration():
    assert format_duration(0) == "0s"
    assert format_duration(59) == "59s"
    assert format_duration(303) == "5m 3s"
    assert format_duration(3900) == "1h 5m"
    assert format_duration(-5) == "0s"


def test_format_duration_detailed():
    assert format_duration_detailed(3723) == "01:02:03"
    assert format_duration_detailed(0) == "00:00:00"


def test_week_starts_on_sunday():
    assert week_start(date(2025, 3, 12)) == date(2025, 3, 9)
    assert week_start(date(2025, 3, 9)) == date(2025, 3, 9)
    assert week_start(date(2025, 3, 8)) == date(2025, 3, 2)


# =============================================================================
# Timer
# =============================================================================

def test_start_stops_running_entry(db, test_user):
    first = time_tracking_service.start_timer(db, test_user.id, "Design", now=T0)
    second = time_tracking_service.start_timer(
        db, test_user.id, "Build", now=T0 + timedelta(minutes=25, seconds=30)
    )

    db.refresh(first)
    assert first.is_running is False
    assert first.end_time == T0 + timedelta(minutes=25, seconds=30)
    assert first.duration_seconds == 1530

    assert second.is_running is True
    assert time_tracking_service.get_active_entry(db, test_user.id).id == second.id


def test_stop_without_running_timer(db, test_user):
    assert time_tracking_service.stop_timer(db, test_user.id, now=T0) is None


def test_stop_records_floored_duration(db, test_user):
    time_tracking_service.start_timer(db, test_user.id, now=T0)
    entry = time_tracking_service.stop_timer(
        db, test_user.id, now=T0 + timedelta(seconds=90, milliseconds=900)
    )
    assert entry.duration_seconds == 90
    assert entry.is_running is False


def test_second_running_entry_violates_unique_index(db, test_user):
    db.add(TimeEntry(user_id=test_user.id, start_time=T0, is_running=True))
    db.flush()
    db.add(TimeEntry(user_id=test_user.id, start_time=T0, is_running=True))
    with pytest.raises(IntegrityError):
        db.flush()
    db.rollback()


def test_stats_buckets(db, test_user):
    now = T0 + timedelta(hours=3)
    db.add_all([
        # Today
        TimeEntry(user_id=test_user.id, start_time=T0, end_time=T0 + timedelta(hours=1),
                  duration_seconds=3600, is_running=False),
        # Monday, same week
        TimeEntry(user_id=test_user.id, start_time=T0 - timedelta(days=2),
                  end_time=T0 - timedelta(days=2) + timedelta(minutes=30),
                  duration_seconds=1800, is_running=False),
        # Previous week
        TimeEntry(user_id=test_user.id, start_time=T0 - timedelta(days=10),
                  end_time=T0 - timedelta(days=10) + timedelta(minutes=10),
                  duration_seconds=600, is_running=False),
        # Running since an hour ago
        TimeEntry(user_id=test_user.id, start_time=now - timedelta(hours=1), is_running=True),
    ])
    db.commit()

    stats = time_tracking_service.get_stats(db, test_user.id, now=now)

    assert stats.today_seconds == 7200
    assert stats.week_seconds == 9000
    assert stats.total_seconds == 9600
    assert stats.today_entries == 2
    assert stats.week_entries == 3
    assert stats.total_entries == 4
    assert stats.today == "2h 0m"


# =============================================================================
# API
# =============================================================================

@pytest.mark.asyncio
async def test_timer_endpoints(authed_client):
    response = await authed_client.get("/time-entries/active")
    assert response.status_code == 200
    assert response.json()["entry"] is None

    response = await authed_client.post("/time-entries/start", json={"description": "Call"})
    assert response.status_code == 201
    entry_id = response.json()["id"]

    active = (await authed_client.get("/time-entries/active")).json()
    assert active["entry"]["id"] == entry_id

    response = await authed_client.post("/time-entries/stop")
    assert response.status_code == 200
    assert response.json()["is_running"] is False

    response = await authed_client.post("/time-entries/stop")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_edit_entry_recomputes_duration(authed_client):
    await authed_client.post("/time-entries/start", json={})
    entry = (await authed_client.post("/time-entries/stop")).json()

    start = T0.isoformat()
    end = (T0 + timedelta(minutes=45)).isoformat()
    response = await authed_client.patch(
        f"/time-entries/{entry['id']}",
        json={"start_time": start, "end_time": end},
    )
    assert response.status_code == 200
    assert response.json()["duration_seconds"] == 2700


@pytest.mark.asyncio
async def test_edit_running_entry_end_time_rejected(authed_client):
    entry = (await authed_client.post("/time-entries/start", json={})).json()
    response = await authed_client.patch(
        f"/time-entries/{entry['id']}",
        json={"end_time": datetime.now(timezone.utc).isoformat()},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_edit_entry_with_naive_start_time_is_read_as_utc(authed_client):
    await authed_client.post("/time-entries/start", json={})
    entry = (await authed_client.post("/time-entries/stop")).json()

    response = await authed_client.patch(
        f"/time-entries/{entry['id']}",
        json={"start_time": "2020-01-01T09:00:00"},
    )
    assert response.status_code == 200
    data = response.json()
    assert datetime.fromisoformat(data["start_time"]) == datetime(2020, 1, 1, 9, 0, tzinfo=timezone.utc)
    assert data["duration_seconds"] > 0


@pytest.mark.asyncio
async def test_edit_entry_with_mixed_naive_and_aware_range(authed_client):
    await authed_client.post("/time-entries/start", json={})
    entry = (await authed_client.post("/time-entries/stop")).json()

    response = await authed_client.patch(
        f"/time-entries/{entry['id']}",
        json={"start_time": "2020-01-01T09:00:00", "end_time": "2020-01-01T10:30:00+01:00"},
    )
    assert response.status_code == 200
    assert response.json()["duration_seconds"] == 1800

    response = await authed_client.patch(
        f"/time-entries/{entry['id']}",
        json={"start_time": "2020-01-01T09:00:00", "end_time": "2020-01-01T09:30:00+01:00"},
    )
    assert response.status_code == 422
