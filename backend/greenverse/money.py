from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .errors import InvalidInput

# Largest amount accepted anywhere: 99,999,999.99
MAX_CENTS = 9_999_999_999

_CENT = Decimal("0.01")


def to_cents(value, field: str = "price") -> int:
    """
    Parse a decimal amount ("45", "45.5", 45.50) into integer cents.

    Floats are read through their repr so 0.1 stays 0.1. More than two
    fractional digits, negatives and non-numbers are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field} must be a decimal amount")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field} must be a decimal amount")
    if not amount.is_finite():
        raise InvalidInput(f"{field} must be a decimal amount")
    if amount < 0:
        raise InvalidInput(f"{field} must be >= 0")
    if amount != amount.quantize(_CENT):
        raise InvalidInput(f"{field} cannot have more than two decimal places")
    cents = int(amount * 100)
    if cents > MAX_CENTS:
        raise InvalidInput(f"{field} is too large")
    return cents


def format_cents(cents: int | None) -> str | None:
    """Render cents as a fixed two-decimal string: 4550 -> '45.50'."""
    if cents is None:
        return None
    return str((Decimal(cents) / 100).quantize(_CENT))
