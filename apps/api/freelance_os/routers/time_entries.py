"""Time entries router - the start/stop timer and tracked time."""

from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.time_entry import (
    ActiveTimerRead,
    TimeEntryRead,
    TimeEntryUpdate,
    TimerStart,
    TimeStats,
)
from freelance_os.services import time_tracking_service

router = APIRouter()


def _get_entry_or_404(db: Session, session: UserSession, entry_id: UUID):
    entry = time_tracking_service.get_entry(db, session.user_id, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Time entry not found")
    return entry


@router.get("", response_model=list[TimeEntryRead])
def list_entries(
    client_id: UUID | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return time_tracking_service.list_entries(db, session.user_id, client_id=client_id)


@router.get("/active", response_model=ActiveTimerRead)
def get_active(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """The running entry with its elapsed time, or ``entry: null``."""
    entry = time_tracking_service.get_active_entry(db, session.user_id)
    if not entry:
        return ActiveTimerRead(entry=None)
    seconds = time_tracking_service.elapsed_seconds(entry.start_time, datetime.now(timezone.utc))
    return ActiveTimerRead(
        entry=TimeEntryRead.model_validate(entry),
        elapsed_seconds=seconds,
        elapsed=time_tracking_service.format_duration_detailed(seconds),
    )


@router.get("/stats", response_model=TimeStats)
def get_stats(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return time_tracking_service.get_stats(db, session.user_id)


@router.post(
    "/start",
    response_model=TimeEntryRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def start_timer(
    data: TimerStart,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Start a timer. A timer that is already running is stopped first."""
    try:
        return time_tracking_service.start_timer(
            db, session.user_id, description=data.description, client_id=data.client_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post(
    "/stop",
    response_model=TimeEntryRead,
    dependencies=[Depends(require_csrf_header)],
)
def stop_timer(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    entry = time_tracking_service.stop_timer(db, session.user_id)
    if not entry:
        raise HTTPException(status_code=404, detail="No timer is running")
    return entry


@router.patch(
    "/{entry_id}",
    response_model=TimeEntryRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_entry(
    entry_id: UUID,
    data: TimeEntryUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    entry = _get_entry_or_404(db, session, entry_id)
    try:
        return time_tracking_service.update_entry(db, session.user_id, entry, data)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.delete(
    "/{entry_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_entry(
    entry_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    entry = _get_entry_or_404(db, session, entry_id)
    time_tracking_service.delete_entry(db, entry)
    return None
