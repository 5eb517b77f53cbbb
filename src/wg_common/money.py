"""Fixed-point money arithmetic.

All stakes, pools, payouts and balances are Decimal values quantized to
MONEY_QUANTUM (8 places). No float anywhere on the money path.
Payouts always truncate toward zero so the platform never over-pays.
"""

from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_PLACES = 8
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)  # 0.00000001
ODDS_QUANTUM = Decimal("0.01")
ZERO = Decimal(0)
ONE = Decimal(1)


def to_money(value: Decimal | int | str) -> Decimal:
    """Parse a money value. Raises ValueError on floats, NaN, or excess precision."""
    if isinstance(value, float):
        raise ValueError("Money values must not be binary floats")
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid money value: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid money value: {value!r}")
    if amount != amount.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN):
        raise ValueError(f"Money supports at most {MONEY_PLACES} decimal places: {value}")
    return amount.quantize(MONEY_QUANTUM)


def truncate(amount: Decimal) -> Decimal:
    """Round toward zero onto the money grid."""
    return amount.quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def display_odds(total: Decimal, side_pool: Decimal) -> Decimal | None:
    """Decimal odds total/side rounded half-up to 2 places; None for an empty side."""
    if side_pool <= ZERO:
        return None
    return (total / side_pool).quantize(ODDS_QUANTUM, rounding=ROUND_HALF_UP)


def money_to_display(amount: Decimal) -> str:
    """Normalized string without trailing zeros: Decimal('0.40000000') -> '0.4'."""
    if amount == ZERO:
        return "0"
    return format(amount.normalize(), "f")
