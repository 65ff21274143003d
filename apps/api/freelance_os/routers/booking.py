"""Public booking router - the unauthenticated booking page.

Endpoints for a prospective client to:
- View the freelancer's booking page
- View available time slots for a date
- Submit a booking request (pending until the freelancer confirms)
"""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from freelance_os.core.deps import get_db
from freelance_os.core.rate_limit import BOOKING_LIMIT, limiter
from freelance_os.db.models import User
from freelance_os.schemas.booking import (
    DaySlotsResponse,
    PublicBookingCreate,
    PublicBookingPageRead,
    PublicBookingRead,
)
from freelance_os.services import booking_service, email_service, user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_freelancer_or_404(db: Session, user_id: UUID) -> User:
    user = user_service.get_user_by_id(db, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=404, detail="Booking page not found")
    return user


# =============================================================================
# Public Booking Page
# =============================================================================

@router.get("/{user_id}", response_model=PublicBookingPageRead)
def get_booking_page(
    user_id: UUID,
    db: Session = Depends(get_db),
):
    """Freelancer name and meeting length for the booking page header."""
    user = _get_freelancer_or_404(db, user_id)
    return booking_service.get_booking_page(db, user)


@router.get("/{user_id}/slots", response_model=DaySlotsResponse)
def get_available_slots(
    user_id: UUID,
    day: date = Query(..., alias="date", description="Date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
):
    """
    Get time slots for a date.

    ``configured`` is false when the freelancer has not set availability;
    the slot list is then empty.
    """
    _get_freelancer_or_404(db, user_id)
    return booking_service.get_day_slots(db, user_id, day)


@router.post("/{user_id}", response_model=PublicBookingRead, status_code=201)
@limiter.limit(BOOKING_LIMIT)
async def create_booking(
    user_id: UUID,
    data: PublicBookingCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Submit a booking request.

    Creates a pending booking that the freelancer confirms later.
    Rate limited to prevent spam.
    """
    user = _get_freelancer_or_404(db, user_id)

    try:
        booking = booking_service.create_public_booking(db, user.id, data)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Email failures never fail the booking
    await email_service.send_booking_confirmation(
        booking,
        freelancer_name=user.display_name,
        timezone_name=booking_service.get_timezone_name(db, user.id),
    )

    return PublicBookingRead(
        id=booking.id,
        client_name=booking.client_name,
        scheduled_at=booking.scheduled_at,
        duration_minutes=booking.duration_minutes,
        status=booking.status,
    )
