"""Pydantic schemas for API request/response models."""

from freelance_os.schemas.auth import MeResponse, SignInRequest, SignUpRequest, UserSession
from freelance_os.schemas.booking import (
    AvailabilityRead,
    AvailabilityUpsert,
    BookingCreate,
    BookingRead,
    DaySlotsResponse,
    PublicBookingCreate,
    SlotRead,
)
from freelance_os.schemas.client import ClientCreate, ClientRead, ClientUpdate
from freelance_os.schemas.credential import CredentialCreate, CredentialRead, CredentialUpdate
from freelance_os.schemas.invoice import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceStats,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
)
from freelance_os.schemas.note import NoteCreate, NoteRead, NoteUpdate
from freelance_os.schemas.pipeline import (
    PipelineBoard,
    PipelineItemCreate,
    PipelineItemRead,
    PipelineItemUpdate,
    StageUpdate,
)
from freelance_os.schemas.proposal import LineItem, ProposalCreate, ProposalRead, ProposalUpdate
from freelance_os.schemas.snippet import SnippetCreate, SnippetRead, SnippetUpdate
from freelance_os.schemas.time_entry import ActiveTimerRead, TimeEntryRead, TimerStart, TimeStats

__all__ = [
    "ActiveTimerRead",
    "AvailabilityRead",
    "AvailabilityUpsert",
    "BookingCreate",
    "BookingRead",
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    "CredentialCreate",
    "CredentialRead",
    "CredentialUpdate",
    "DaySlotsResponse",
    "InvoiceCreate",
    "InvoiceRead",
    "InvoiceStats",
    "InvoiceUpdate",
    "LineItem",
    "MeResponse",
    "NoteCreate",
    "NoteRead",
    "NoteUpdate",
    "PaymentCreate",
    "PaymentRead",
    "PipelineBoard",
    "PipelineItemCreate",
    "PipelineItemRead",
    "PipelineItemUpdate",
    "ProposalCreate",
    "ProposalRead",
    "ProposalUpdate",
    "PublicBookingCreate",
    "SignInRequest",
    "SignUpRequest",
    "SlotRead",
    "SnippetCreate",
    "SnippetRead",
    "SnippetUpdate",
    "StageUpdate",
    "TimeEntryRead",
    "TimeStats",
    "TimerStart",
    "UserSession",
]
