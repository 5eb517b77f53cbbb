"""Settlement calculator — pooled and order-book payouts.

Rules:
  * Pool winner:   payout = amount / winning_pool * total_pool * (1 - fee_rate)
  * Pool loser:    0
  * Pair winner:   own escrow + opponent escrow * (1 - fee_rate)
  * Pair loser:    0
  * Void:          every stake/escrow refunded in full, no fee

Every payout is truncated onto the money grid, so the payouts of a bet never
sum past what was collected; truncation residue stays with the platform fee.
A pool whose winning side is empty is refunded like a void outcome.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.wg_common.enums import Winner
from src.wg_common.money import ONE, ZERO, truncate
from src.wg_orderbook.domain.models import Acceptance
from src.wg_pool.domain.models import Participation


@dataclass
class PoolSettlement:
    payouts: dict[str, Decimal]   # participation_id -> payout
    fee: Decimal
    refunded: bool                # True when stakes were returned instead of paid out


@dataclass
class PairSettlement:
    creator_payout: Decimal
    acceptor_payout: Decimal
    fee: Decimal


def settle_pool(
    participations: list[Participation],
    winner: Winner,
    fee_rate: Decimal,
) -> PoolSettlement:
    total_pool = sum((p.amount for p in participations), ZERO)
    winning_side = winner.side
    winning_pool = sum(
        (p.amount for p in participations if p.prediction is winning_side), ZERO
    )

    if winning_side is None or winning_pool == ZERO:
        return PoolSettlement(
            payouts={p.id: p.amount for p in participations}, fee=ZERO, refunded=True
        )

    distributable = total_pool * (ONE - fee_rate)
    payouts: dict[str, Decimal] = {}
    for p in participations:
        if p.prediction is winning_side:
            payouts[p.id] = truncate(p.amount * distributable / winning_pool)
        else:
            payouts[p.id] = ZERO
    fee = total_pool - sum(payouts.values(), ZERO)
    return PoolSettlement(payouts=payouts, fee=fee, refunded=False)


def settle_acceptance(acceptance: Acceptance, winner: Winner, fee_rate: Decimal) -> PairSettlement:
    winning_side = winner.side
    if winning_side is None:
        return PairSettlement(
            creator_payout=acceptance.amount,
            acceptor_payout=acceptance.counter_amount,
            fee=ZERO,
        )
    if winning_side is acceptance.creator_side:
        winnings = truncate(acceptance.counter_amount * (ONE - fee_rate))
        return PairSettlement(
            creator_payout=acceptance.amount + winnings,
            acceptor_payout=ZERO,
            fee=acceptance.counter_amount - winnings,
        )
    winnings = truncate(acceptance.amount * (ONE - fee_rate))
    return PairSettlement(
        creator_payout=ZERO,
        acceptor_payout=acceptance.counter_amount + winnings,
        fee=acceptance.amount - winnings,
    )


def settle_order_book(
    acceptances: list[Acceptance], winner: Winner, fee_rate: Decimal
) -> tuple[dict[str, PairSettlement], Decimal]:
    """Per-acceptance settlements plus the total platform fee."""
    results = {a.id: settle_acceptance(a, winner, fee_rate) for a in acceptances}
    return results, sum((r.fee for r in results.values()), ZERO)
