"""Bet invariant verification after every money-moving operation."""

import logging
from decimal import Decimal

from src.wg_bet.domain.models import Bet
from src.wg_common.enums import BetStatus, Winner
from src.wg_common.money import ONE, ZERO
from src.wg_orderbook.domain.models import Acceptance
from src.wg_pool.domain.models import Participation

logger = logging.getLogger(__name__)


def verify_pool_invariants(bet: Bet, participations: list[Participation]) -> None:
    """Raises AssertionError if violated.

    total_pool == contestant1_pool + contestant2_pool, no negative pool, and
    the pools equal the recorded participations.
    """
    assert bet.contestant1_pool >= ZERO and bet.contestant2_pool >= ZERO, (
        f"Negative pool on bet {bet.id}: "
        f"{bet.contestant1_pool} / {bet.contestant2_pool}"
    )
    assert bet.total_pool == bet.contestant1_pool + bet.contestant2_pool, (
        f"Pool mismatch on bet {bet.id}: total={bet.total_pool} != "
        f"{bet.contestant1_pool} + {bet.contestant2_pool}"
    )
    staked = sum((p.amount for p in participations), ZERO)
    assert staked == bet.total_pool, (
        f"Participations on bet {bet.id} sum to {staked}, total_pool is {bet.total_pool}"
    )
    logger.debug("Pool invariants OK: bet=%s, total=%s", bet.id, bet.total_pool)


def verify_payout_cap(
    bet: Bet,
    participations: list[Participation],
    acceptances: list[Acceptance],
    fee_rate: Decimal,
) -> None:
    """Settled payouts never exceed what was collected (minus fee when not refunding)."""
    if bet.status is not BetStatus.COMPLETED:
        return
    refunding = bet.winner is Winner.VOID
    pool_paid = sum((p.payout or ZERO for p in participations), ZERO)
    pool_cap = bet.total_pool if refunding else bet.total_pool * (ONE - fee_rate)
    if not refunding and bet.winner is not None and bet.winner.side is not None:
        if bet.pool_for(bet.winner.side) == ZERO:
            pool_cap = bet.total_pool  # empty winning side refunds everyone
    assert pool_paid <= pool_cap, (
        f"Pool payouts on bet {bet.id} total {pool_paid}, cap is {pool_cap}"
    )
    for a in acceptances:
        paid = (a.creator_payout or ZERO) + (a.acceptor_payout or ZERO)
        escrow = a.amount + a.counter_amount
        assert paid <= escrow, (
            f"Acceptance {a.id} pays {paid}, escrow is only {escrow}"
        )
