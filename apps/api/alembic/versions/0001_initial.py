"""Initial freelancer workspace schema

Revision ID: 0001_initial
Revises:
Create Date: 2025-03-01

Creates users and integrations, clients, pipeline, proposals, notes,
credentials, code snippets, invoices with payments, time entries,
bookings and availability settings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _owner() -> sa.Column:
    return sa.Column(
        "user_id",
        sa.Uuid(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def _client() -> sa.Column:
    return sa.Column(
        "client_id",
        sa.Uuid(),
        sa.ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )


def upgrade() -> None:
    # =========================================================================
    # Users & Integrations
    # =========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("token_version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )

    op.create_table(
        "user_integrations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        sa.Column("provider", sa.String(30), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("account_email", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "provider", name="uq_user_integration_provider"),
    )
    op.create_index("ix_user_integrations_user_id", "user_integrations", ["user_id"])

    # =========================================================================
    # Clients & Pipeline
    # =========================================================================
    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_clients_user_id", "clients", ["user_id"])
    op.create_index("idx_clients_user_created", "clients", ["user_id", "created_at"])

    op.create_table(
        "pipeline",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        _client(),
        sa.Column("stage", sa.String(20), nullable=False, server_default="lead"),
        sa.Column("estimated_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("follow_up_reminded_on", sa.Date(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "stage IN ('lead','contacted','proposal_sent','negotiation','won','lost')",
            name="ck_pipeline_stage",
        ),
    )
    op.create_index("ix_pipeline_user_id", "pipeline", ["user_id"])
    op.create_index("idx_pipeline_user_stage", "pipeline", ["user_id", "stage"])

    # =========================================================================
    # Proposals, Notes, Credentials, Snippets
    # =========================================================================
    op.create_table(
        "proposals",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        _client(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("line_items", sa.JSON(), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 4), nullable=False, server_default="0.20"),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        sa.Column("status", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_proposals_user_id", "proposals", ["user_id"])

    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        _client(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="general"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("meeting_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notes_user_id", "notes", ["user_id"])

    op.create_table(
        "credentials",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        _client(),
        sa.Column("service_name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(10), nullable=False, server_default="web"),
        sa.Column("url", sa.String(500), nullable=True),
        sa.Column("username", sa.String(255), nullable=True),
        sa.Column("password", sa.Text(), nullable=True),  # Fernet ciphertext
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_credentials_user_id", "credentials", ["user_id"])

    op.create_table(
        "code_snippets",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("language", sa.String(50), nullable=False, server_default="plaintext"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_code_snippets_user_id", "code_snippets", ["user_id"])

    # =========================================================================
    # Invoices
    # =========================================================================
    op.create_table(
        "invoices",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        _client(),
        sa.Column(
            "pipeline_id",
            sa.Uuid(),
            sa.ForeignKey("pipeline.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("invoice_number", sa.String(50), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_invoices_user_id", "invoices", ["user_id"])
    op.create_index("idx_invoices_user_due", "invoices", ["user_id", "due_date"])

    op.create_table(
        "invoice_payments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "invoice_id",
            sa.Uuid(),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="bank_transfer"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_invoice_payments_invoice_id", "invoice_payments", ["invoice_id"])

    # =========================================================================
    # Time Tracking
    # =========================================================================
    op.create_table(
        "time_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        _client(),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("is_running", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"])
    op.create_index("idx_time_entries_user_start", "time_entries", ["user_id", "start_time"])
    # One running timer per user
    op.create_index(
        "uq_time_entries_one_running",
        "time_entries",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_running"),
        sqlite_where=sa.text("is_running = 1"),
    )

    # =========================================================================
    # Bookings & Availability
    # =========================================================================
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        _owner(),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255), nullable=False),
        sa.Column("client_phone", sa.String(50), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True, server_default="30"),
        sa.Column("meeting_type", sa.String(50), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("google_event_id", sa.String(255), nullable=True),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_bookings_user_id", "bookings", ["user_id"])
    op.create_index("idx_bookings_user_scheduled", "bookings", ["user_id", "scheduled_at"])

    op.create_table(
        "availability_settings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("working_hours", sa.JSON(), nullable=False),
        sa.Column("default_duration", sa.Integer(), nullable=True, server_default="30"),
        sa.Column("buffer_minutes", sa.Integer(), nullable=True, server_default="15"),
        sa.Column("timezone", sa.String(50), nullable=True),
        sa.Column("blocked_dates", sa.JSON(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("availability_settings")
    op.drop_index("idx_bookings_user_scheduled", table_name="bookings")
    op.drop_index("ix_bookings_user_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("uq_time_entries_one_running", table_name="time_entries")
    op.drop_index("idx_time_entries_user_start", table_name="time_entries")
    op.drop_index("ix_time_entries_user_id", table_name="time_entries")
    op.drop_table("time_entries")
    op.drop_index("ix_invoice_payments_invoice_id", table_name="invoice_payments")
    op.drop_table("invoice_payments")
    op.drop_index("idx_invoices_user_due", table_name="invoices")
    op.drop_index("ix_invoices_user_id", table_name="invoices")
    op.drop_table("invoices")
    op.drop_index("ix_code_snippets_user_id", table_name="code_snippets")
    op.drop_table("code_snippets")
    op.drop_index("ix_credentials_user_id", table_name="credentials")
    op.drop_table("credentials")
    op.drop_index("ix_notes_user_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_proposals_user_id", table_name="proposals")
    op.drop_table("proposals")
    op.drop_index("idx_pipeline_user_stage", table_name="pipeline")
    op.drop_index("ix_pipeline_user_id", table_name="pipeline")
    op.drop_table("pipeline")
    op.drop_index("idx_clients_user_created", table_name="clients")
    op.drop_index("ix_clients_user_id", table_name="clients")
    op.drop_table("clients")
    op.drop_index("ix_user_integrations_user_id", table_name="user_integrations")
    op.drop_table("user_integrations")
    op.drop_table("users")
