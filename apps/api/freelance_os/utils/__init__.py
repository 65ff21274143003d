"""Utility modules."""

from freelance_os.utils.datetimes import UTCDatetime, as_utc
from freelance_os.utils.money import Amount, format_amount, parse_amount, quantize

__all__ = [
    # Datetimes
    "UTCDatetime",
    "as_utc",
    # Money
    "Amount",
    "format_amount",
    "parse_amount",
    "quantize",
]
