"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from freelance_os.core.config import settings
from freelance_os.core.request_logging import log_requests
from freelance_os.db.session import engine

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Client names and emails stay out of Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from freelance_os.core.rate_limit import limiter


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Freelance OS API",
    description="Clients, pipeline, invoices, time tracking and bookings for one freelancer",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.middleware("http")(log_requests)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

# ============================================================================
# Routers
# ============================================================================

from freelance_os.routers import (
    auth,
    booking,
    bookings,
    calendar,
    clients,
    credentials,
    integrations,
    internal,
    invoices,
    notes,
    pipeline,
    proposals,
    snippets,
    time_entries,
)

# Auth router (always mounted)
app.include_router(auth.router, prefix="/auth", tags=["auth"])

# Workspace routers (all user-scoped)
app.include_router(clients.router, prefix="/clients", tags=["clients"])
app.include_router(pipeline.router, prefix="/pipeline", tags=["pipeline"])
app.include_router(proposals.router, prefix="/proposals", tags=["proposals"])
app.include_router(notes.router, prefix="/notes", tags=["notes"])
app.include_router(credentials.router, prefix="/credentials", tags=["credentials"])
app.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
app.include_router(snippets.router, prefix="/snippets", tags=["snippets"])
app.include_router(time_entries.router, prefix="/time-entries", tags=["time"])

# Bookings (internal, authenticated)
app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])

# Public Booking (unauthenticated)
app.include_router(booking.router, prefix="/book", tags=["booking"])

# Google Calendar proxy and OAuth connection
app.include_router(calendar.router, prefix="/calendar", tags=["calendar"])
app.include_router(integrations.router, prefix="/integrations", tags=["integrations"])

# Internal endpoints (scheduled/cron jobs - protected by INTERNAL_SECRET)
app.include_router(internal.router, prefix="/internal", tags=["internal"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
