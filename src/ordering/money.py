"""Exact money handling.

Amounts enter and leave the system as ``Decimal`` and are stored as integer
minor units (cents), so totals are sums of integers and never drift.
"""

from decimal import Decimal, InvalidOperation

from protean.exceptions import ValidationError

CENT = Decimal("0.01")


def to_decimal(value, field: str = "amount") -> Decimal:
    """Coerce ``value`` to a Decimal with at most two decimal places."""
    if isinstance(value, float):
        # floats go through str() so 10.1 stays 10.1 and not 10.0999...
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({field: [f"Invalid amount: {value!r}"]}) from None

    if not amount.is_finite():
        raise ValidationError({field: [f"Invalid amount: {value!r}"]})
    if amount != amount.quantize(CENT):
        raise ValidationError({field: ["Amounts may have at most two decimal places"]})
    return amount.quantize(CENT)


def to_minor_units(value, field: str = "amount") -> int:
    return int(to_decimal(value, field) * 100)


def from_minor_units(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(CENT)


def format_amount(cents: int) -> str:
    """Render minor units as a plain two-decimal string, e.g. ``"10.00"``."""
    return str(from_minor_units(cents))
