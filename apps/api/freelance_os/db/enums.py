"""Enum definitions for application constants."""

from enum import Enum


class ClientStatus(str, Enum):
    """Relationship status of a client."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    LEAD = "lead"


class PipelineStage(str, Enum):
    """
    Sales pipeline stages (Kanban columns), in nominal order.

    Flow: lead → contacted → proposal_sent → negotiation → won/lost

    The order is only for display. Any stage may move to any other.
    """
    LEAD = "lead"
    CONTACTED = "contacted"
    PROPOSAL_SENT = "proposal_sent"
    NEGOTIATION = "negotiation"
    WON = "won"
    LOST = "lost"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid stage."""
        return value in cls._value2member_map_


# Stages that no longer need follow-up
CLOSED_STAGES = frozenset({PipelineStage.WON, PipelineStage.LOST})


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProposalStatus(str, Enum):
    """
    Proposal lifecycle status.

    Flow: draft → sent → accepted
                     ↘ rejected
    """
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NoteType(str, Enum):
    MEETING = "meeting"
    TECHNICAL = "technical"
    GENERAL = "general"


class CredentialType(str, Enum):
    """Kind of system a stored credential opens."""
    WEB = "web"
    SSH = "ssh"
    DB = "db"
    API = "api"


class InvoiceStatus(str, Enum):
    """
    Derived invoice status. Never stored.

    - PAID: remaining balance is zero or less
    - OVERDUE: balance open and due date has passed
    - PARTIAL: balance open, some payments recorded
    - UNPAID: balance open, no payments recorded
    """
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    EFT = "eft"
    CREDIT_CARD = "credit_card"
    OTHER = "other"


class BookingStatus(str, Enum):
    """
    Booking lifecycle status.

    Usual flow: pending → confirmed → completed, or cancelled.
    Any status may be set directly.
    """
    PENDING = "pending"  # Requested via public page
    CONFIRMED = "confirmed"  # Accepted by the freelancer
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # Meeting took place


# Bookings in these states still occupy their time slot
ACTIVE_BOOKING_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED,
})


class EmailType(str, Enum):
    """Transactional email templates."""
    BOOKING_CONFIRMATION = "booking_confirmation"
    BOOKING_REMINDER = "booking_reminder"
    BOOKING_CANCELLED = "booking_cancelled"
    FOLLOWUP_REMINDER = "followup_reminder"


class IntegrationProvider(str, Enum):
    GOOGLE = "google"


# Defaults
DEFAULT_CLIENT_STATUS = ClientStatus.ACTIVE
DEFAULT_PIPELINE_STAGE = PipelineStage.LEAD
DEFAULT_PRIORITY = Priority.MEDIUM
DEFAULT_PROPOSAL_STATUS = ProposalStatus.DRAFT
DEFAULT_NOTE_TYPE = NoteType.GENERAL
DEFAULT_CREDENTIAL_TYPE = CredentialType.WEB
DEFAULT_PAYMENT_METHOD = PaymentMethod.BANK_TRANSFER
DEFAULT_BOOKING_STATUS = BookingStatus.PENDING
