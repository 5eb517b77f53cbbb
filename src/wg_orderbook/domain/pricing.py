"""Decimal-odds pricing for bilateral offers.

An offer at odds ``o`` on stake ``s`` asks the acceptor to escrow
``s * (o - 1)``: if the creator's side wins, the creator gains exactly that
counter-stake; if it loses, the acceptor gains ``s``.
"""

from decimal import Decimal

from src.wg_common.errors import InvalidOddsError, ValidationError
from src.wg_common.money import ONE, ZERO, truncate

ODDS_MAX_PLACES = 4


def validate_odds(odds: Decimal, max_odds: Decimal) -> Decimal:
    if not odds.is_finite() or odds <= ONE:
        raise InvalidOddsError(f"{odds} must be greater than 1.0")
    if odds > max_odds:
        raise InvalidOddsError(f"{odds} exceeds the maximum of {max_odds}")
    if odds.as_tuple().exponent < -ODDS_MAX_PLACES:  # type: ignore[operator]
        raise InvalidOddsError(f"{odds} has more than {ODDS_MAX_PLACES} decimal places")
    return odds


def counter_stake(accept_amount: Decimal, odds: Decimal) -> Decimal:
    """Acceptor's escrow for matching ``accept_amount`` of an offer, truncated."""
    counter = truncate(accept_amount * (odds - ONE))
    if counter <= ZERO:
        raise ValidationError(
            f"Accepting {accept_amount} at odds {odds} is below the smallest money unit"
        )
    return counter
