"""Money parsing and formatting for locale-style amounts ("1.250,50")."""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from pydantic import BeforeValidator, Field

CENT = Decimal("0.01")

_GROUPED_THOUSANDS = re.compile(r"^-?\d{1,3}(\.\d{3})+$")


def quantize(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: str | int | float | Decimal | None) -> Decimal | None:
    """
    Parse a user-entered amount.

    Dots group thousands and a comma marks decimals ("1.250,50"). Input
    without a comma is read as a plain number ("1250.5") unless it is
    purely dot-grouped ("1.250").

    Raises:
        ValueError: If the input is not a number
    """
    if raw is None:
        return None
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, bool):
        raise ValueError("Invalid amount")
    if isinstance(raw, (int, float)):
        return Decimal(str(raw))

    text = raw.strip().replace(" ", "")
    if not text:
        return None
    if text.count(",") > 1:
        raise ValueError(f"Invalid amount: {raw!r}")

    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    elif _GROUPED_THOUSANDS.match(text):
        text = text.replace(".", "")

    try:
        return Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {raw!r}")


def format_amount(value: Decimal | int | float) -> str:
    """Format an amount with dot thousands and comma decimals."""
    amount = quantize(Decimal(str(value)))
    sign = "-" if amount < 0 else ""
    whole, _, cents = f"{abs(amount):.2f}".partition(".")
    groups = []
    while len(whole) > 3:
        groups.insert(0, whole[-3:])
        whole = whole[:-3]
    groups.insert(0, whole)
    return f"{sign}{'.'.join(groups)},{cents}"


# Pydantic field type: non-negative, accepts numbers or formatted strings
Amount = Annotated[Decimal, Field(ge=0), BeforeValidator(parse_amount)]
