"""A single user's exposure on one bet: stakes, offers, fills and winnings."""

from dataclasses import dataclass, field
from decimal import Decimal

from src.wg_common.enums import Side
from src.wg_common.money import ONE, ZERO, truncate
from src.wg_orderbook.domain.models import Acceptance, Offer
from src.wg_pool.domain.models import Participation


@dataclass
class UserPosition:
    user_id: str
    participations: list[Participation] = field(default_factory=list)
    offers: list[Offer] = field(default_factory=list)
    acceptances: list[Acceptance] = field(default_factory=list)
    potential_winnings: dict[Side, Decimal] = field(default_factory=dict)
    claimable: Decimal = ZERO
    claimed: Decimal = ZERO

    @property
    def has_participated(self) -> bool:
        return bool(self.participations or self.offers or self.acceptances)


def build_position(
    user_id: str,
    participations: list[Participation],
    offers: list[Offer],
    acceptances: list[Acceptance],
    fee_rate: Decimal,
    pools: dict[Side, Decimal],
) -> UserPosition:
    """Collect a user's records and what each outcome would pay them.

    Potential pool winnings use the current pools, so they move as others stake.
    """
    pos = UserPosition(
        user_id=user_id,
        participations=[p for p in participations if p.user_id == user_id],
        offers=[o for o in offers if o.creator_id == user_id],
        acceptances=[
            a for a in acceptances if user_id in (a.creator_id, a.acceptor_id)
        ],
    )
    total = pools[Side.CONTESTANT1] + pools[Side.CONTESTANT2]
    keep = ONE - fee_rate

    for side in Side:
        amount = ZERO
        for p in pos.participations:
            if p.prediction is side and pools[side] > ZERO:
                amount += truncate(p.amount * total * keep / pools[side])
        for a in pos.acceptances:
            if a.creator_id == user_id and a.creator_side is side:
                amount += a.amount + truncate(a.counter_amount * keep)
            if a.acceptor_id == user_id and a.acceptor_side is side:
                amount += a.counter_amount + truncate(a.amount * keep)
        pos.potential_winnings[side] = amount

    for p in pos.participations:
        if p.payout is not None:
            if p.claimed:
                pos.claimed += p.payout
            else:
                pos.claimable += p.payout
    for a in pos.acceptances:
        for is_creator, payout, claimed in (
            (True, a.creator_payout, a.creator_claimed),
            (False, a.acceptor_payout, a.acceptor_claimed),
        ):
            party = a.creator_id if is_creator else a.acceptor_id
            if party != user_id or payout is None:
                continue
            if claimed:
                pos.claimed += payout
            else:
                pos.claimable += payout
    return pos
