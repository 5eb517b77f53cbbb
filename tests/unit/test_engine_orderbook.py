"""WageringEngine: custom-odds order book."""
from decimal import Decimal

import pytest

from src.wg_common.enums import MarketType, OfferStatus, Side, Winner
from src.wg_common.errors import (
    InsufficientFundsError,
    InvalidOddsError,
    InvalidStateTransitionError,
    NoWinningsError,
    PermissionDeniedError,
    SelfMatchError,
)
from src.wg_common.identity import PLATFORM_FEE_ACCOUNT, Caller
from src.wg_engine.engine.engine import WageringEngine
from tests.unit.fakes import ADMIN, CREATOR, FakeSession, FakeStore, build_engine, create_bet, fund

A = Caller("A")
B = Caller("B")


async def _order_book_bet(engine: WageringEngine, db: FakeSession) -> str:
    bet = await create_bet(engine, db, market_type=MarketType.ORDER_BOOK)
    return bet.id


class TestScenarioB:
    async def test_creator_wins(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        acc = await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.2"))
        assert acc.counter_amount == Decimal("0.4")
        assert store.balance("B") == Decimal("0.6")
        assert store.offers[offer.id].status is OfferStatus.FILLED

        await engine.start_bet(db, CREATOR, bet_id)
        settled = await engine.declare_winner(db, ADMIN, bet_id, Winner.CONTESTANT1)
        assert settled.platform_fee == Decimal("0.004")

        assert await engine.claim(db, A, bet_id) == Decimal("0.596")
        assert store.balance("A") == Decimal("1.396")
        with pytest.raises(NoWinningsError):
            await engine.claim(db, B, bet_id)
        assert store.balance("B") == Decimal("0.6")
        assert store.balance(PLATFORM_FEE_ACCOUNT) == Decimal("0.004")

    async def test_ledger_references(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        acc = await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.2"))
        assert store.entries("A", "OFFER_ESCROW") == [("A", Decimal("-0.2"), "OFFER_ESCROW", offer.id)]
        assert store.entries("B", "ACCEPT_ESCROW") == [("B", Decimal("-0.4"), "ACCEPT_ESCROW", acc.id)]
        accepted = store.events_of("offer_accepted")
        assert len(accepted) == 1
        assert accepted[0].payload["creator_id"] == "A"
        assert accepted[0].payload["counter_amount"] == "0.4"


class TestPartialFills:
    async def test_cancel_returns_unmatched_remainder(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.05"))
        assert store.offers[offer.id].status is OfferStatus.PARTIALLY_FILLED
        assert store.balance("B") == Decimal("0.9")

        cancelled = await engine.cancel_offer(db, A, bet_id, offer.id)
        assert cancelled.status is OfferStatus.CANCELLED
        assert store.balance("A") == Decimal("0.95")
        with pytest.raises(InvalidStateTransitionError):
            await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.01"))

    async def test_settlement_refunds_open_remainder(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.05"))
        await engine.start_bet(db, CREATOR, bet_id)
        await engine.declare_winner(db, ADMIN, bet_id, Winner.CONTESTANT2)

        assert store.entries("A", "OFFER_REFUND") == [("A", Decimal("0.15"), "OFFER_REFUND", offer.id)]
        assert store.offers[offer.id].status is OfferStatus.CANCELLED
        # B: counter 0.1 back plus 0.05 * 0.99
        assert await engine.claim(db, B, bet_id) == Decimal("0.1495")
        assert store.balance("B") == Decimal("1.0495")

    async def test_void_refunds_both_legs(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.2"))
        await engine.start_bet(db, CREATOR, bet_id)
        await engine.declare_winner(db, ADMIN, bet_id, Winner.VOID)
        await engine.claim(db, A, bet_id)
        await engine.claim(db, B, bet_id)
        assert store.balance("A") == Decimal("1")
        assert store.balance("B") == Decimal("1")


class TestGuards:
    async def test_self_match(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        fund(store, A="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        with pytest.raises(SelfMatchError):
            await engine.accept_offer(db, A, bet_id, offer.id, Decimal("0.1"))
        assert store.balance("A") == Decimal("0.8")

    async def test_only_creator_cancels(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        with pytest.raises(PermissionDeniedError):
            await engine.cancel_offer(db, B, bet_id, offer.id)

    @pytest.mark.parametrize("odds", ["1", "1000.5", "2.12345"])
    async def test_invalid_odds(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore, odds: str
    ) -> None:
        fund(store, A="1")
        bet_id = await _order_book_bet(engine, db)
        with pytest.raises(InvalidOddsError):
            await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal(odds))
        assert store.balance("A") == Decimal("1")

    async def test_offers_rejected_on_pool_bet(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1")
        bet = await create_bet(engine, db)
        with pytest.raises(InvalidStateTransitionError, match="order-book"):
            await engine.create_offer(db, A, bet.id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3"))

    async def test_accept_insufficient_funds_leaves_offer_untouched(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, A="1", B="0.1")
        bet_id = await _order_book_bet(engine, db)
        offer = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        with pytest.raises(InsufficientFundsError):
            await engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.2"))
        assert store.offers[offer.id].remaining_amount == Decimal("0.2")
        assert store.acceptances == {}

    async def test_in_progress_policy(self, store: FakeStore, db: FakeSession) -> None:
        fund(store, A="1", B="1")
        closed = build_engine(store)
        bet_id = await _order_book_bet(closed, db)
        offer = await closed.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3.0"))
        await closed.start_bet(db, CREATOR, bet_id)
        with pytest.raises(InvalidStateTransitionError):
            await closed.accept_offer(db, B, bet_id, offer.id, Decimal("0.1"))

        open_engine = build_engine(store, order_book_open_in_progress=True)
        acc = await open_engine.accept_offer(db, B, bet_id, offer.id, Decimal("0.1"))
        assert acc.counter_amount == Decimal("0.2")


class TestActiveOffers:
    async def test_listing(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        fund(store, A="5", B="5")
        bet_id = await _order_book_bet(engine, db)
        low = await engine.create_offer(db, A, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("2.0"))
        high = await engine.create_offer(db, B, bet_id, Side.CONTESTANT1, Decimal("0.2"), Decimal("4.0"))
        other = await engine.create_offer(db, B, bet_id, Side.CONTESTANT2, Decimal("0.2"), Decimal("1.5"))
        await engine.cancel_offer(db, A, bet_id, low.id)

        assert [o.id for o in await engine.list_active_offers(db, bet_id, Side.CONTESTANT1)] == [high.id]
        assert {o.id for o in await engine.list_active_offers(db, bet_id)} == {high.id, other.id}
