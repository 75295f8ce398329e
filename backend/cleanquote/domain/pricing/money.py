from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_cents(amount: Decimal) -> int:
    """Quantize a currency amount to whole cents, half up."""
    return int((amount / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def cents_to_float(cents: int) -> float:
    return float(Decimal(cents) * CENT)


def quantize_cents(cents: Decimal) -> int:
    """Round a fractional cent amount to a whole cent, half up."""
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
