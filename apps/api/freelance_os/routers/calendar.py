"""Calendar router - proxy to the user's Google Calendar.

A missing connection answers 409; a Google API failure answers 502 with
Google's message.
"""

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.calendar import (
    CalendarEventCreate,
    CalendarEventRead,
    FreeBusyRequest,
    FreeBusyResponse,
)
from freelance_os.services import calendar_service
from freelance_os.services.calendar_service import CalendarError, CalendarNotConnected
from freelance_os.utils.datetimes import UTCDatetime

router = APIRouter()

MAX_WINDOW = timedelta(days=92)


def _to_http(e: CalendarError) -> HTTPException:
    if isinstance(e, CalendarNotConnected):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


def _check_window(time_min: datetime, time_max: datetime) -> None:
    if time_max <= time_min:
        raise HTTPException(status_code=400, detail="time_max must be after time_min")
    if time_max - time_min > MAX_WINDOW:
        raise HTTPException(status_code=400, detail="Window is limited to 92 days")


@router.get("/events", response_model=list[CalendarEventRead])
async def list_events(
    time_min: UTCDatetime = Query(...),
    time_max: UTCDatetime = Query(...),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Events between time_min and time_max, by start time."""
    _check_window(time_min, time_max)
    try:
        token = await calendar_service.require_access_token(db, session.user_id)
        return await calendar_service.fetch_events(token, time_min, time_max)
    except CalendarError as e:
        raise _to_http(e)


@router.get("/today", response_model=list[CalendarEventRead])
async def list_today(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        token = await calendar_service.require_access_token(db, session.user_id)
        return await calendar_service.get_today_events(token)
    except CalendarError as e:
        raise _to_http(e)


@router.get("/week", response_model=list[CalendarEventRead])
async def list_week(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Events for the next 7 days."""
    try:
        token = await calendar_service.require_access_token(db, session.user_id)
        return await calendar_service.get_week_events(token)
    except CalendarError as e:
        raise _to_http(e)


@router.post(
    "/events",
    response_model=CalendarEventRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def create_event(
    data: CalendarEventCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        token = await calendar_service.require_access_token(db, session.user_id)
        return await calendar_service.create_event(
            token,
            summary=data.summary,
            start=data.start,
            end=data.end,
            description=data.description,
            attendees=[str(a) for a in data.attendees],
            timezone_name=data.timezone,
        )
    except CalendarError as e:
        raise _to_http(e)


@router.delete(
    "/events/{event_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
async def delete_event(
    event_id: str,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        token = await calendar_service.require_access_token(db, session.user_id)
        await calendar_service.delete_event(token, event_id)
    except CalendarError as e:
        raise _to_http(e)
    return None


@router.post("/freebusy", response_model=FreeBusyResponse)
async def free_busy(
    data: FreeBusyRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Busy blocks per calendar for a window."""
    _check_window(data.time_min, data.time_max)
    try:
        token = await calendar_service.require_access_token(db, session.user_id)
        calendars = await calendar_service.get_free_busy(
            token, data.time_min, data.time_max, data.calendar_ids
        )
    except CalendarError as e:
        raise _to_http(e)
    return FreeBusyResponse(calendars=calendars)
