"""Pool accounting for pari-mutuel bets.

Pure functions over the Bet dataclass. The engine calls them under the bet
lock, after the ledger debit has succeeded, so a pool never moves for money
that was not collected.
"""

from decimal import Decimal

from src.wg_bet.domain.models import Bet
from src.wg_common.enums import Side
from src.wg_common.errors import StakeOutOfRangeError, ValidationError
from src.wg_common.money import ZERO, display_odds, money_to_display


def check_stake_bounds(bet: Bet, amount: Decimal) -> None:
    """minimum_bet <= amount <= maximum_bet, against the bet's current limits."""
    if amount <= ZERO:
        raise ValidationError(f"Amount must be positive, got {amount}")
    if not (bet.minimum_bet <= amount <= bet.maximum_bet):
        raise StakeOutOfRangeError(
            money_to_display(amount),
            money_to_display(bet.minimum_bet),
            money_to_display(bet.maximum_bet),
        )


def apply_stake(bet: Bet, side: Side, amount: Decimal) -> None:
    if side is Side.CONTESTANT1:
        bet.contestant1_pool += amount
    else:
        bet.contestant2_pool += amount
    bet.total_pool += amount


def live_odds(bet: Bet, side: Side) -> Decimal | None:
    """total_pool / side_pool, or None while nobody has staked on that side."""
    return display_odds(bet.total_pool, bet.pool_for(side))


def pool_is_consistent(bet: Bet) -> bool:
    return (
        bet.contestant1_pool >= ZERO
        and bet.contestant2_pool >= ZERO
        and bet.total_pool == bet.contestant1_pool + bet.contestant2_pool
    )
