"""API routers."""

from freelance_os.routers.auth import router as auth_router
from freelance_os.routers.booking import router as booking_router
from freelance_os.routers.bookings import router as bookings_router
from freelance_os.routers.calendar import router as calendar_router
from freelance_os.routers.clients import router as clients_router
from freelance_os.routers.credentials import router as credentials_router
from freelance_os.routers.integrations import router as integrations_router
from freelance_os.routers.internal import router as internal_router
from freelance_os.routers.invoices import router as invoices_router
from freelance_os.routers.notes import router as notes_router
from freelance_os.routers.pipeline import router as pipeline_router
from freelance_os.routers.proposals import router as proposals_router
from freelance_os.routers.snippets import router as snippets_router
from freelance_os.routers.time_entries import router as time_entries_router

__all__ = [
    "auth_router",
    "booking_router",
    "bookings_router",
    "calendar_router",
    "clients_router",
    "credentials_router",
    "integrations_router",
    "internal_router",
    "invoices_router",
    "notes_router",
    "pipeline_router",
    "proposals_router",
    "snippets_router",
    "time_entries_router",
]
