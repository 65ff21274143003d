"""Timezone normalization for incoming datetimes."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def as_utc(value: datetime | None) -> datetime | None:
    """Tag naive values as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Pydantic field type: always timezone-aware UTC, naive input read as UTC
UTCDatetime = Annotated[datetime, AfterValidator(as_utc)]
