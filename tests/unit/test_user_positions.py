"""Unit tests for a user's position on a bet."""
from decimal import Decimal

from src.wg_common.enums import Side
from src.wg_orderbook.domain.models import Acceptance, Offer
from src.wg_pool.domain.models import Participation
from src.wg_settlement.domain.positions import build_position

FEE = Decimal("0.01")
POOLS = {Side.CONTESTANT1: Decimal("0.4"), Side.CONTESTANT2: Decimal("0.6")}


def _participations() -> list[Participation]:
    return [
        Participation(id="x", bet_id="bet_1", user_id="X", prediction=Side.CONTESTANT1, amount=Decimal("0.4")),
        Participation(id="y", bet_id="bet_1", user_id="Y", prediction=Side.CONTESTANT2, amount=Decimal("0.6")),
    ]


def _acceptance(**kwargs: object) -> Acceptance:
    acc = Acceptance(
        id="acc_1", bet_id="bet_1", offer_id="off_1", creator_id="A", acceptor_id="B",
        creator_side=Side.CONTESTANT1, amount=Decimal("0.2"),
        counter_amount=Decimal("0.4"), requested_odds=Decimal("3.0"),
    )
    for key, value in kwargs.items():
        setattr(acc, key, value)
    return acc


class TestPotentialWinnings:
    def test_pool_participant(self) -> None:
        pos = build_position("X", _participations(), [], [], FEE, POOLS)
        assert pos.has_participated
        assert pos.potential_winnings[Side.CONTESTANT1] == Decimal("0.99")
        assert pos.potential_winnings[Side.CONTESTANT2] == Decimal("0")

    def test_order_book_both_legs(self) -> None:
        acc = _acceptance()
        creator = build_position("A", [], [], [acc], FEE, {s: Decimal(0) for s in Side})
        acceptor = build_position("B", [], [], [acc], FEE, {s: Decimal(0) for s in Side})
        assert creator.potential_winnings[Side.CONTESTANT1] == Decimal("0.596")
        assert creator.potential_winnings[Side.CONTESTANT2] == Decimal("0")
        assert acceptor.potential_winnings[Side.CONTESTANT2] == Decimal("0.598")

    def test_outsider(self) -> None:
        pos = build_position("Z", _participations(), [], [_acceptance()], FEE, POOLS)
        assert not pos.has_participated
        assert pos.claimable == Decimal("0")

    def test_open_offer_counts_as_participation(self) -> None:
        offer = Offer(
            id="off_1", bet_id="bet_1", creator_id="A", prediction=Side.CONTESTANT1,
            stake_amount=Decimal("0.2"), requested_odds=Decimal("3"),
            remaining_amount=Decimal("0.2"),
        )
        pos = build_position("A", [], [offer], [], FEE, POOLS)
        assert pos.has_participated
        assert pos.offers == [offer]


class TestClaimable:
    def test_settled_unclaimed(self) -> None:
        parts = _participations()
        parts[0].payout = Decimal("0.99")
        parts[1].payout = Decimal("0")
        pos = build_position("X", parts, [], [], FEE, POOLS)
        assert pos.claimable == Decimal("0.99")
        assert pos.claimed == Decimal("0")

    def test_claimed_moves_out_of_claimable(self) -> None:
        acc = _acceptance(creator_payout=Decimal("0.596"), acceptor_payout=Decimal("0"), creator_claimed=True)
        pos = build_position("A", [], [], [acc], FEE, POOLS)
        assert pos.claimable == Decimal("0")
        assert pos.claimed == Decimal("0.596")

    def test_acceptor_leg(self) -> None:
        acc = _acceptance(creator_payout=Decimal("0"), acceptor_payout=Decimal("0.598"))
        pos = build_position("B", [], [], [acc], FEE, POOLS)
        assert pos.claimable == Decimal("0.598")
