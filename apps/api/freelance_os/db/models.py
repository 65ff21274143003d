"""SQLAlchemy ORM models for the freelancer workspace.

Every business table carries ``user_id``. Services scope each query by the
signed-in user, so one freelancer never reads another's rows.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Date, ForeignKey, Index, Integer,
    Numeric, String, Text, UniqueConstraint, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freelance_os.db.base import Base
from freelance_os.db.enums import (
    DEFAULT_BOOKING_STATUS, DEFAULT_CLIENT_STATUS, DEFAULT_CREDENTIAL_TYPE,
    DEFAULT_NOTE_TYPE, DEFAULT_PAYMENT_METHOD, DEFAULT_PIPELINE_STAGE,
    DEFAULT_PRIORITY, DEFAULT_PROPOSAL_STATUS,
)
from freelance_os.db.types import EncryptedString, utcnow

Money = Numeric(12, 2)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow, onupdate=utcnow, nullable=False
    )


def _owner_column() -> Mapped[uuid.UUID]:
    return mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )


def _client_column() -> Mapped[uuid.UUID | None]:
    return mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True
    )


# =============================================================================
# Auth
# =============================================================================

class User(TimestampMixin, Base):
    """
    The freelancer who owns a workspace.

    token_version is bumped on sign-out to revoke outstanding session cookies.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class UserIntegration(TimestampMixin, Base):
    """
    Per-user OAuth integration (Google Calendar).

    Tokens are encrypted at rest.
    """
    __tablename__ = "user_integrations"
    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_user_integration_provider"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    provider: Mapped[str] = mapped_column(String(30), nullable=False)
    access_token: Mapped[str] = mapped_column(EncryptedString, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(EncryptedString, nullable=True)
    token_expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    account_email: Mapped[str | None] = mapped_column(String(255), nullable=True)


# =============================================================================
# Clients & Pipeline
# =============================================================================

class Client(TimestampMixin, Base):
    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_CLIENT_STATUS.value, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PipelineItem(TimestampMixin, Base):
    """
    A deal card on the Kanban board.

    follow_up_reminded_on records the date a follow-up email last went out,
    so the daily sweep sends at most one per day.
    """
    __tablename__ = "pipeline"
    __table_args__ = (
        Index("idx_pipeline_user_stage", "user_id", "stage"),
        CheckConstraint(
            "stage IN ('lead','contacted','proposal_sent','negotiation','won','lost')",
            name="ck_pipeline_stage",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_id: Mapped[uuid.UUID | None] = _client_column()
    stage: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PIPELINE_STAGE.value, nullable=False
    )
    estimated_value: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    follow_up_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    priority: Mapped[str] = mapped_column(
        String(10), default=DEFAULT_PRIORITY.value, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    follow_up_reminded_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    client: Mapped[Client | None] = relationship()
    invoices: Mapped[list["Invoice"]] = relationship(back_populates="pipeline_item")


# =============================================================================
# Proposals, Notes, Credentials, Snippets
# =============================================================================

class Proposal(TimestampMixin, Base):
    __tablename__ = "proposals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_id: Mapped[uuid.UUID | None] = _client_column()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)  # Sanitized HTML
    line_items: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), default=Decimal("0.20"), nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PROPOSAL_STATUS.value, nullable=False
    )
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)

    client: Mapped[Client | None] = relationship()


class Note(TimestampMixin, Base):
    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_id: Mapped[uuid.UUID | None] = _client_column()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)  # Sanitized HTML
    type: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_NOTE_TYPE.value, nullable=False
    )
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    meeting_date: Mapped[datetime | None] = mapped_column(nullable=True)

    client: Mapped[Client | None] = relationship()


class Credential(TimestampMixin, Base):
    """Stored login for a client system. Password is encrypted at rest."""
    __tablename__ = "credentials"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_id: Mapped[uuid.UUID | None] = _client_column()
    service_name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(
        String(10), default=DEFAULT_CREDENTIAL_TYPE.value, nullable=False
    )
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password: Mapped[str | None] = mapped_column(EncryptedString, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    client: Mapped[Client | None] = relationship()


class CodeSnippet(TimestampMixin, Base):
    __tablename__ = "code_snippets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(50), default="plaintext", nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


# =============================================================================
# Invoices
# =============================================================================

class Invoice(TimestampMixin, Base):
    """
    An amount billed to a client.

    Status is derived from amount, due date and payments on every read.
    is_paid/paid_at mirror the last time the balance reached zero.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_user_due", "user_id", "due_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_id: Mapped[uuid.UUID | None] = _client_column()
    pipeline_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("pipeline.id", ondelete="SET NULL"), nullable=True
    )
    invoice_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    client: Mapped[Client | None] = relationship()
    pipeline_item: Mapped[PipelineItem | None] = relationship(back_populates="invoices")
    payments: Mapped[list["InvoicePayment"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="InvoicePayment.payment_date",
    )


class InvoicePayment(Base):
    __tablename__ = "invoice_payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_PAYMENT_METHOD.value, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    invoice: Mapped["Invoice"] = relationship(back_populates="payments")


# =============================================================================
# Time Tracking
# =============================================================================

class TimeEntry(TimestampMixin, Base):
    """
    A tracked stretch of work.

    At most one entry per user is running at a time. start_timer stops the
    previous one before inserting; the partial unique index rejects a
    concurrent second start.
    """
    __tablename__ = "time_entries"
    __table_args__ = (
        Index("idx_time_entries_user_start", "user_id", "start_time"),
        Index(
            "uq_time_entries_one_running",
            "user_id",
            unique=True,
            postgresql_where=text("is_running"),
            sqlite_where=text("is_running = 1"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_id: Mapped[uuid.UUID | None] = _client_column()
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(nullable=True)
    duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_running: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    client: Mapped[Client | None] = relationship()


# =============================================================================
# Bookings & Availability
# =============================================================================

class Booking(TimestampMixin, Base):
    """
    A meeting on the freelancer's calendar.

    Public requests arrive as pending. google_event_id is set once the
    booking is mirrored to Google Calendar.
    """
    __tablename__ = "bookings"
    __table_args__ = (
        Index("idx_bookings_user_scheduled", "user_id", "scheduled_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = _owner_column()
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[str] = mapped_column(String(255), nullable=False)
    client_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    scheduled_at: Mapped[datetime] = mapped_column(nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer, default=30, nullable=True)
    meeting_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=DEFAULT_BOOKING_STATUS.value, nullable=False
    )
    google_event_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reminder_sent_at: Mapped[datetime | None] = mapped_column(nullable=True)


class AvailabilitySettings(TimestampMixin, Base):
    """
    Weekly working hours for the public booking page (one row per user).

    working_hours maps mon..sun to {"start": "HH:MM", "end": "HH:MM"} or null.
    """
    __tablename__ = "availability_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    working_hours: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    default_duration: Mapped[int | None] = mapped_column(Integer, default=30, nullable=True)
    buffer_minutes: Mapped[int | None] = mapped_column(Integer, default=15, nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    blocked_dates: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
