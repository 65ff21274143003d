"""Bookings router - the freelancer's meetings and availability settings.

Status changes mirror to Google Calendar when it is connected: confirming
creates the event, cancelling or deleting removes it. Calendar failures are
logged and never block the change.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_current_session, get_db, require_csrf_header
from freelance_os.db.enums import BookingStatus
from freelance_os.db.models import Booking
from freelance_os.schemas.auth import UserSession
from freelance_os.schemas.booking import (
    AvailabilityRead,
    AvailabilityUpsert,
    BookingCreate,
    BookingRead,
    BookingStatusUpdate,
)
from freelance_os.services import booking_service, calendar_service, email_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_booking_or_404(db: Session, session: UserSession, booking_id: UUID) -> Booking:
    booking = booking_service.get_booking(db, session.user_id, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


async def _change_status(
    db: Session,
    session: UserSession,
    booking: Booking,
    new_status: BookingStatus,
) -> Booking:
    previous = booking.status
    booking = booking_service.update_status(db, booking, new_status)
    if booking.status == previous:
        return booking

    if new_status == BookingStatus.CONFIRMED:
        await calendar_service.sync_booking_event(db, booking)
    elif new_status == BookingStatus.CANCELLED:
        await calendar_service.remove_booking_event(db, booking)
        await email_service.send_booking_cancellation(
            booking,
            freelancer_name=session.display_name,
            timezone_name=booking_service.get_timezone_name(db, session.user_id),
        )

    logger.info("Booking %s moved %s -> %s", booking.id, previous, booking.status)
    db.refresh(booking)
    return booking


# =============================================================================
# Availability
# =============================================================================

@router.get("/availability", response_model=AvailabilityRead | None)
def get_availability(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Availability settings, or null when not configured yet."""
    return booking_service.get_availability(db, session.user_id)


@router.put(
    "/availability",
    response_model=AvailabilityRead,
    dependencies=[Depends(require_csrf_header)],
)
def save_availability(
    data: AvailabilityUpsert,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return booking_service.save_availability(db, session.user_id, data)


# =============================================================================
# Bookings
# =============================================================================

@router.get("", response_model=list[BookingRead])
def list_bookings(
    status: BookingStatus | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """All bookings by scheduled time, optionally by status."""
    return booking_service.list_bookings(db, session.user_id, status=status)


@router.get("/upcoming", response_model=list[BookingRead])
def list_upcoming(
    limit: int | None = Query(None, ge=1, le=100),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return booking_service.list_upcoming(db, session.user_id, limit=limit)


@router.get("/today", response_model=list[BookingRead])
def list_today(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return booking_service.list_today(db, session.user_id)


@router.post(
    "",
    response_model=BookingRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def create_booking(
    data: BookingCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Add a booking. One created as confirmed is mirrored to the calendar."""
    booking = booking_service.create_booking(db, session.user_id, data)
    if booking.status == BookingStatus.CONFIRMED.value:
        await calendar_service.sync_booking_event(db, booking)
        db.refresh(booking)
    return booking


@router.get("/{booking_id}", response_model=BookingRead)
def get_booking(
    booking_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    return _get_booking_or_404(db, session, booking_id)


@router.patch(
    "/{booking_id}/status",
    response_model=BookingRead,
    dependencies=[Depends(require_csrf_header)],
)
async def update_status(
    booking_id: UUID,
    data: BookingStatusUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, session, booking_id)
    return await _change_status(db, session, booking, data.status)


@router.post(
    "/{booking_id}/confirm",
    response_model=BookingRead,
    dependencies=[Depends(require_csrf_header)],
)
async def confirm_booking(
    booking_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, session, booking_id)
    return await _change_status(db, session, booking, BookingStatus.CONFIRMED)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingRead,
    dependencies=[Depends(require_csrf_header)],
)
async def cancel_booking(
    booking_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, session, booking_id)
    return await _change_status(db, session, booking, BookingStatus.CANCELLED)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingRead,
    dependencies=[Depends(require_csrf_header)],
)
async def complete_booking(
    booking_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, session, booking_id)
    return await _change_status(db, session, booking, BookingStatus.COMPLETED)


@router.delete(
    "/{booking_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
async def delete_booking(
    booking_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, session, booking_id)
    await calendar_service.remove_booking_event(db, booking)
    booking_service.delete_booking(db, booking)
    return None
