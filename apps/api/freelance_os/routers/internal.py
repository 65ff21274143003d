"""Internal endpoints for scheduled jobs.

Called by an external scheduler (cron). Protected by the X-Internal-Secret
header.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from freelance_os.core.config import settings
from freelance_os.core.deps import get_db
from freelance_os.core.security import verify_secret
from freelance_os.services import reminder_service

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_internal_secret(
    x_internal_secret: str | None = Header(default=None),
) -> None:
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if not verify_secret(x_internal_secret, expected):
        raise HTTPException(status_code=403, detail="Invalid internal secret")


@router.post("/scheduled/booking-reminders", dependencies=[Depends(verify_internal_secret)])
async def booking_reminders(db: Session = Depends(get_db)) -> dict:
    """Send reminders for confirmed bookings in the next 24 hours."""
    result = await reminder_service.send_booking_reminders(db)
    logger.info("Booking reminder sweep: %s", result)
    return result


@router.post("/scheduled/followup-reminders", dependencies=[Depends(verify_internal_secret)])
async def followup_reminders(db: Session = Depends(get_db)) -> dict:
    """Remind owners of pipeline items due for a follow-up."""
    result = await reminder_service.send_followup_reminders(db)
    logger.info("Follow-up reminder sweep: %s", result)
    return result
