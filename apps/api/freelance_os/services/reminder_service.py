"""Service layer for scheduled booking and follow-up reminders."""

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from freelance_os.db.enums import CLOSED_STAGES, BookingStatus
from freelance_os.db.models import AvailabilitySettings, Booking, PipelineItem, User
from freelance_os.services import email_service

logger = logging.getLogger(__name__)

BOOKING_REMINDER_WINDOW = timedelta(hours=24)


def get_bookings_needing_reminder(db: Session, now: datetime) -> list[Booking]:
    """Confirmed bookings starting within the next 24 hours, not yet reminded."""
    return db.query(Booking).filter(
        Booking.status == BookingStatus.CONFIRMED.value,
        Booking.reminder_sent_at.is_(None),
        Booking.scheduled_at > now,
        Booking.scheduled_at <= now + BOOKING_REMINDER_WINDOW,
    ).order_by(Booking.scheduled_at.asc()).all()


def get_items_needing_followup(db: Session, today: date) -> list[PipelineItem]:
    """Open pipeline items whose follow-up date has come, not reminded today."""
    return db.query(PipelineItem).options(
        joinedload(PipelineItem.client),
    ).filter(
        PipelineItem.follow_up_date.is_not(None),
        PipelineItem.follow_up_date <= today,
        PipelineItem.stage.notin_([s.value for s in CLOSED_STAGES]),
        or_(
            PipelineItem.follow_up_reminded_on.is_(None),
            PipelineItem.follow_up_reminded_on < today,
        ),
    ).all()


async def send_booking_reminders(db: Session, now: datetime | None = None) -> dict:
    """
    Email reminders for upcoming confirmed bookings.

    reminder_sent_at is only set when the email goes out, so a failed send
    is retried on the next sweep.

    Returns stats: {bookings_checked, reminders_sent}
    """
    now = now or datetime.now(timezone.utc)
    bookings = get_bookings_needing_reminder(db, now)

    users: dict = {}
    sent = 0
    for booking in bookings:
        if booking.user_id not in users:
            user = db.get(User, booking.user_id)
            availability = db.query(AvailabilitySettings).filter(
                AvailabilitySettings.user_id == booking.user_id,
            ).first()
            users[booking.user_id] = (
                user.display_name if user else None,
                availability.timezone if availability else None,
            )
        freelancer_name, tz_name = users[booking.user_id]

        success, error = await email_service.send_booking_reminder(
            booking, freelancer_name, tz_name
        )
        if not success:
            logger.warning("Booking reminder for %s not sent: %s", booking.id, error)
            continue

        booking.reminder_sent_at = now
        db.commit()
        sent += 1

    return {"bookings_checked": len(bookings), "reminders_sent": sent}


async def send_followup_reminders(db: Session, today: date | None = None) -> dict:
    """
    Email the owner of each pipeline item due for a follow-up.

    Returns stats: {items_checked, reminders_sent}
    """
    today = today or datetime.now(timezone.utc).date()
    items = get_items_needing_followup(db, today)

    sent = 0
    for item in items:
        owner = db.get(User, item.user_id)
        if not owner or not owner.is_active:
            continue

        success, error = await email_service.send_followup_reminder(owner.email, item)
        if not success:
            logger.warning("Follow-up reminder for %s not sent: %s", item.id, error)
            continue

        item.follow_up_reminded_on = today
        db.commit()
        sent += 1

    return {"items_checked": len(items), "reminders_sent": sent}
