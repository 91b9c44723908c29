# Overview: Conversion between decimal amounts and integer cents.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

_CENT = Decimal("0.01")


def parse_amount_to_cents(value, *, field: str = "price", allow_zero: bool = False) -> int:
    """
    Parse a client-supplied amount ("12.5", 12.5, 12) into integer cents.

    Rounds half-up to the nearest cent. Booleans, blanks, NaN/Infinity and
    negative values are rejected.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError(f"{field} is required")
    try:
        # str() first so floats like 0.1 parse as written, not as binary
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")

    cents = int((amount.quantize(_CENT, rounding=ROUND_HALF_UP) * 100).to_integral_value())
    if cents < 0 or (cents == 0 and not allow_zero):
        raise ValidationError(f"{field} must be a positive number")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS / 100:,.2f}")
    return cents


def cents_to_amount(cents: int | None) -> float | None:
    if cents is None:
        return None
    return round(cents / 100, 2)
