"""Fixed-point decimal arithmetic for pooled-market accounting.

All monetary amounts are Decimal with 6 fractional digits. No float anywhere.
Share quantities are Decimal too; freshly minted LP shares keep 12 digits.
Rounding is ROUND_HALF_UP (half away from zero), applied once per record on
the final amount, never on intermediate ratios.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

AMOUNT_QUANTUM = Decimal("0.000001")
SHARE_QUANTUM = Decimal("0.000000000001")
ZERO = Decimal("0")


def to_decimal(value: object) -> Decimal:
    """Coerce DB / wire values to Decimal. Floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e


def quantize_amount(value: Decimal) -> Decimal:
    """Round a monetary amount to 6 fractional digits, half away from zero."""
    return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def quantize_shares(value: Decimal) -> Decimal:
    return value.quantize(SHARE_QUANTUM, rounding=ROUND_HALF_UP)
