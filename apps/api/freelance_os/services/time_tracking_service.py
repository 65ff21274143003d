"""Time tracking service - timers and time entries.

A user has at most one running entry. Starting a timer stops whatever is
running first; a partial unique index on running entries backs this up
when two starts race.
"""

import logging
import math
from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from freelance_os.db.models import TimeEntry
from freelance_os.schemas.time_entry import TimeEntryUpdate, TimeStats
from freelance_os.services import client_service

logger = logging.getLogger(__name__)


# =============================================================================
# Formatting
# =============================================================================

def format_duration(seconds: int) -> str:
    """Short form: "1h 5m", "5m 3s" or "3s"."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_duration_detailed(seconds: int) -> str:
    """Clock form: HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two instants, floored, never negative."""
    return max(0, math.floor((end - start).total_seconds()))


# =============================================================================
# Queries
# =============================================================================

def list_entries(
    db: Session,
    user_id: UUID,
    client_id: UUID | None = None,
) -> list[TimeEntry]:
    """List entries, most recent start first."""
    query = db.query(TimeEntry).filter(TimeEntry.user_id == user_id)
    if client_id:
        query = query.filter(TimeEntry.client_id == client_id)
    return query.order_by(TimeEntry.start_time.desc()).all()


def get_entry(db: Session, user_id: UUID, entry_id: UUID) -> TimeEntry | None:
    return db.query(TimeEntry).filter(
        TimeEntry.id == entry_id,
        TimeEntry.user_id == user_id,
    ).first()


def get_active_entry(db: Session, user_id: UUID) -> TimeEntry | None:
    """Return the running entry, if any (latest start wins)."""
    return db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.is_running.is_(True),
    ).order_by(TimeEntry.start_time.desc()).first()


# =============================================================================
# Timer
# =============================================================================

def _stop(entry: TimeEntry, now: datetime) -> None:
    entry.end_time = now
    entry.duration_seconds = elapsed_seconds(entry.start_time, now)
    entry.is_running = False


def start_timer(
    db: Session,
    user_id: UUID,
    description: str | None = None,
    client_id: UUID | None = None,
    now: datetime | None = None,
) -> TimeEntry:
    """
    Start a new running entry.

    Every running entry of the user is stopped first, with its duration
    recorded. Both changes are committed together.
    """
    client_service.ensure_client(db, user_id, client_id)
    now = now or datetime.now(timezone.utc)

    running = db.query(TimeEntry).filter(
        TimeEntry.user_id == user_id,
        TimeEntry.is_running.is_(True),
    ).all()
    for entry in running:
        _stop(entry, now)
        logger.info("Stopped running entry %s before starting a new timer", entry.id)
    db.flush()

    entry = TimeEntry(
        user_id=user_id,
        client_id=client_id,
        description=description,
        start_time=now,
        is_running=True,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def stop_timer(
    db: Session,
    user_id: UUID,
    now: datetime | None = None,
) -> TimeEntry | None:
    """Stop the running entry. Returns None when nothing is running."""
    entry = get_active_entry(db, user_id)
    if not entry:
        return None
    _stop(entry, now or datetime.now(timezone.utc))
    db.commit()
    db.refresh(entry)
    return entry


def update_entry(
    db: Session,
    user_id: UUID,
    entry: TimeEntry,
    data: TimeEntryUpdate,
) -> TimeEntry:
    """
    Edit an entry. Duration is recomputed when a stopped entry's range changes.

    Raises:
        ValueError: If the resulting range is inverted
    """
    values = data.model_dump(exclude_unset=True)
    if "client_id" in values:
        client_service.ensure_client(db, user_id, values["client_id"])
        entry.client_id = values["client_id"]
    if "description" in values:
        entry.description = values["description"]
    if values.get("start_time") is not None:
        entry.start_time = values["start_time"]
    if values.get("end_time") is not None:
        if entry.is_running:
            raise ValueError("Stop the timer before setting an end time")
        entry.end_time = values["end_time"]

    if entry.end_time is not None:
        if entry.end_time < entry.start_time:
            raise ValueError("end_time must be after start_time")
        entry.duration_seconds = elapsed_seconds(entry.start_time, entry.end_time)

    db.commit()
    db.refresh(entry)
    return entry


def delete_entry(db: Session, entry: TimeEntry) -> None:
    db.delete(entry)
    db.commit()


# =============================================================================
# Stats
# =============================================================================

def _entry_seconds(entry: TimeEntry, now: datetime) -> int:
    if entry.is_running:
        return elapsed_seconds(entry.start_time, now)
    return entry.duration_seconds or 0


def week_start(day: date) -> date:
    """Sunday that opens the week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def get_stats(
    db: Session,
    user_id: UUID,
    now: datetime | None = None,
) -> TimeStats:
    """
    Totals for today, this week (from Sunday) and all time.

    Buckets go by the entry start time in UTC. A running entry
    contributes its elapsed time so far.
    """
    now = now or datetime.now(timezone.utc)
    today_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    week_begin = datetime.combine(week_start(now.date()), time.min, tzinfo=timezone.utc)

    today_seconds = week_seconds = total_seconds = 0
    today_entries = week_entries = total_entries = 0

    for entry in list_entries(db, user_id):
        seconds = _entry_seconds(entry, now)
        total_seconds += seconds
        total_entries += 1
        if entry.start_time >= week_begin:
            week_seconds += seconds
            week_entries += 1
        if entry.start_time >= today_start:
            today_seconds += seconds
            today_entries += 1

    return TimeStats(
        today_seconds=today_seconds,
        week_seconds=week_seconds,
        total_seconds=total_seconds,
        today_entries=today_entries,
        week_entries=week_entries,
        total_entries=total_entries,
        today=format_duration(today_seconds),
        week=format_duration(week_seconds),
        total=format_duration(total_seconds),
    )
