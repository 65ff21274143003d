"""Rate limiting configuration for the API."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from freelance_os.core.config import settings

# Single-process deployment: in-memory storage is shared by every request.
# Set TESTING to disable default limits in the test suite.
IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)
STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://" if IS_TESTING else STORAGE_URI,
    default_limits=DEFAULT_LIMITS,
    enabled=not IS_TESTING,
)

AUTH_LIMIT = f"{max(settings.RATE_LIMIT_AUTH, 1)}/minute"
BOOKING_LIMIT = f"{max(settings.RATE_LIMIT_BOOKING, 1)}/minute"
