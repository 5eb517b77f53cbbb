"""WageringEngine: claiming winnings."""
import asyncio
from decimal import Decimal

import pytest

from src.wg_common.enums import MarketType, Side, Winner
from src.wg_common.errors import AlreadyClaimedError, NotEligibleError, NoWinningsError
from src.wg_common.identity import Caller
from src.wg_engine.engine.engine import WageringEngine
from tests.unit.fakes import ADMIN, CREATOR, FakeSession, FakeStore, create_bet, fund

X = Caller("X")
Y = Caller("Y")


async def _settled_bet(engine: WageringEngine, db: FakeSession, store: FakeStore) -> str:
    fund(store, X="1", Y="1")
    bet = await create_bet(engine, db)
    await engine.place_stake(db, X, bet.id, Side.CONTESTANT1, Decimal("0.4"))
    await engine.place_stake(db, Y, bet.id, Side.CONTESTANT2, Decimal("0.6"))
    await engine.start_bet(db, CREATOR, bet.id)
    await engine.declare_winner(db, ADMIN, bet.id, Winner.CONTESTANT1)
    return bet.id


class TestClaim:
    async def test_claim_once(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        bet_id = await _settled_bet(engine, db, store)
        assert await engine.claim(db, X, bet_id) == Decimal("0.99")
        with pytest.raises(AlreadyClaimedError):
            await engine.claim(db, X, bet_id)
        assert store.entries("X", "PAYOUT") == [("X", Decimal("0.99"), "PAYOUT", bet_id)]

    async def test_claim_marks_participation(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet_id = await _settled_bet(engine, db, store)
        await engine.claim(db, X, bet_id)
        claimed = [p for p in store.participations.values() if p.user_id == "X"]
        assert claimed[0].claimed is True
        assert claimed[0].claimed_at is not None
        pos = await engine.get_position(db, bet_id, "X")
        assert pos.claimed == Decimal("0.99")
        assert pos.claimable == Decimal("0")

    async def test_loser_has_no_winnings(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet_id = await _settled_bet(engine, db, store)
        with pytest.raises(NoWinningsError):
            await engine.claim(db, Y, bet_id)

    async def test_outsider_not_eligible(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet_id = await _settled_bet(engine, db, store)
        with pytest.raises(NotEligibleError, match="did not participate"):
            await engine.claim(db, Caller("Z"), bet_id)

    async def test_before_completion_not_eligible(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, X="1")
        bet = await create_bet(engine, db)
        await engine.place_stake(db, X, bet.id, Side.CONTESTANT1, Decimal("0.4"))
        with pytest.raises(NotEligibleError, match="not completed"):
            await engine.claim(db, X, bet.id)

    async def test_disputed_not_eligible(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet_id = await _settled_bet(engine, db, store)
        await engine.raise_dispute(db, Y, bet_id, "wrong result")
        with pytest.raises(NotEligibleError, match="disputed"):
            await engine.claim(db, X, bet_id)

    async def test_concurrent_claims_pay_once(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet_id = await _settled_bet(engine, db, store)
        results = await asyncio.gather(
            engine.claim(db, X, bet_id),
            engine.claim(db, X, bet_id),
            return_exceptions=True,
        )
        assert sorted(type(r).__name__ for r in results) == ["AlreadyClaimedError", "Decimal"]
        assert store.balance("X") == Decimal("1.59")

    async def test_claim_sums_every_winning_leg(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="1")
        bet = await create_bet(engine, db, market_type=MarketType.ORDER_BOOK)
        a, b = Caller("A"), Caller("B")
        first = await engine.create_offer(db, a, bet.id, Side.CONTESTANT1, Decimal("0.1"), Decimal("2"))
        second = await engine.create_offer(db, b, bet.id, Side.CONTESTANT2, Decimal("0.1"), Decimal("2"))
        await engine.accept_offer(db, b, bet.id, first.id, Decimal("0.1"))
        await engine.accept_offer(db, a, bet.id, second.id, Decimal("0.1"))
        await engine.start_bet(db, CREATOR, bet.id)
        await engine.declare_winner(db, ADMIN, bet.id, Winner.CONTESTANT1)

        # A won as creator of the first offer and as acceptor of the second
        assert await engine.claim(db, a, bet.id) == Decimal("0.398")
        with pytest.raises(NoWinningsError):
            await engine.claim(db, b, bet.id)
