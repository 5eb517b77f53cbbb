"""WageringEngine: bet creation, start, cancel and queries."""
from decimal import Decimal

import pytest

from src.wg_bet.domain.models import Contestant
from src.wg_common.enums import BetStatus, MarketType, OfferStatus, Side, Winner
from src.wg_common.errors import (
    BetNotFoundError,
    DuplicateBetError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from src.wg_common.identity import Caller
from src.wg_engine.engine.engine import WageringEngine
from tests.unit.fakes import ADMIN, CREATOR, FakeSession, FakeStore, create_bet, fund, make_contest

X = Caller("X")
Y = Caller("Y")


class TestCreateBet:
    async def test_defaults(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        bet = await create_bet(engine, db)
        assert bet.id.startswith("bet_")
        assert bet.status is BetStatus.OPEN
        assert bet.creator_id == "creator"
        assert bet.total_pool == Decimal("0")
        assert bet.winner is None
        assert db.commits == 1
        assert bet.id in store.bets

    async def test_minimum_below_floor(self, engine: WageringEngine, db: FakeSession) -> None:
        with pytest.raises(ValidationError, match="at least"):
            await create_bet(engine, db, minimum="0.00001")

    @pytest.mark.parametrize("maximum", ["0.001", "0.0005"])
    async def test_maximum_must_exceed_minimum(
        self, engine: WageringEngine, db: FakeSession, maximum: str
    ) -> None:
        with pytest.raises(ValidationError, match="greater than minimum"):
            await create_bet(engine, db, maximum=maximum)

    async def test_identical_contestants(self, engine: WageringEngine, db: FakeSession) -> None:
        same = Contestant(id="p1", name="Alice")
        with pytest.raises(ValidationError, match="different"):
            await engine.create_bet(
                db, CREATOR, MarketType.POOL, make_contest(), same, same,
                Decimal("0.001"), Decimal("1"),
            )

    async def test_unnamed_contestant(self, engine: WageringEngine, db: FakeSession) -> None:
        with pytest.raises(ValidationError, match="named"):
            await engine.create_bet(
                db, CREATOR, MarketType.POOL, make_contest(),
                Contestant(id="p1", name="Alice"), Contestant(id="p2", name="  "),
                Decimal("0.001"), Decimal("1"),
            )

    async def test_duplicate_per_match_and_market(
        self, engine: WageringEngine, db: FakeSession
    ) -> None:
        await create_bet(engine, db)
        with pytest.raises(DuplicateBetError):
            await create_bet(engine, db)
        assert db.rollbacks == 1
        await create_bet(engine, db, market_type=MarketType.ORDER_BOOK)
        await create_bet(engine, db, match_id="match-2")

    async def test_cancelled_bet_frees_the_match(
        self, engine: WageringEngine, db: FakeSession
    ) -> None:
        first = await create_bet(engine, db)
        await engine.cancel_bet(db, CREATOR, first.id)
        second = await create_bet(engine, db)
        assert second.id != first.id


class TestStartBet:
    async def test_creator_starts(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        bet = await create_bet(engine, db)
        started = await engine.start_bet(db, CREATOR, bet.id)
        assert started.status is BetStatus.IN_PROGRESS
        assert started.started_at is not None
        assert store.audit == []

    async def test_admin_start_is_audited(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet = await create_bet(engine, db)
        await engine.start_bet(db, ADMIN, bet.id, "stream went live")
        assert [(r.action, r.actor_id, r.reason) for r in store.audit] == [
            ("FORCE_START", "admin", "stream went live")
        ]

    async def test_stranger_cannot_start(self, engine: WageringEngine, db: FakeSession) -> None:
        bet = await create_bet(engine, db)
        with pytest.raises(PermissionDeniedError):
            await engine.start_bet(db, X, bet.id)

    async def test_twice(self, engine: WageringEngine, db: FakeSession) -> None:
        bet = await create_bet(engine, db)
        await engine.start_bet(db, CREATOR, bet.id)
        with pytest.raises(InvalidStateTransitionError):
            await engine.start_bet(db, CREATOR, bet.id)

    async def test_version_bumps(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        bet = await create_bet(engine, db)
        await engine.start_bet(db, CREATOR, bet.id)
        assert store.bets[bet.id].version == bet.version + 1


class TestCancelBet:
    async def test_creator_cancels_empty_bet(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        bet = await create_bet(engine, db)
        cancelled = await engine.cancel_bet(db, CREATOR, bet.id)
        assert cancelled.status is BetStatus.CANCELLED
        assert cancelled.cancelled_by == "creator"
        assert store.audit == []
        assert len(store.events_of("bet_cancelled")) == 1

    async def test_creator_cannot_cancel_with_stakes(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, X="1")
        bet = await create_bet(engine, db)
        await engine.place_stake(db, X, bet.id, Side.CONTESTANT1, Decimal("0.1"))
        with pytest.raises(InvalidStateTransitionError, match="only an admin"):
            await engine.cancel_bet(db, CREATOR, bet.id)

    async def test_creator_cannot_cancel_started_bet(
        self, engine: WageringEngine, db: FakeSession
    ) -> None:
        bet = await create_bet(engine, db)
        await engine.start_bet(db, CREATOR, bet.id)
        with pytest.raises(InvalidStateTransitionError):
            await engine.cancel_bet(db, CREATOR, bet.id)

    async def test_stranger_cannot_cancel(self, engine: WageringEngine, db: FakeSession) -> None:
        bet = await create_bet(engine, db)
        with pytest.raises(PermissionDeniedError):
            await engine.cancel_bet(db, X, bet.id)

    async def test_admin_cancel_refunds_every_escrow(
        self, engine: WageringEngine, db: FakeSession, store: FakeStore
    ) -> None:
        fund(store, X="1", Y="1", A="1", B="1")
        pool = await create_bet(engine, db)
        book = await create_bet(engine, db, market_type=MarketType.ORDER_BOOK)
        await engine.place_stake(db, X, pool.id, Side.CONTESTANT1, Decimal("0.4"))
        await engine.place_stake(db, Y, pool.id, Side.CONTESTANT2, Decimal("0.6"))
        offer = await engine.create_offer(db, Caller("A"), book.id, Side.CONTESTANT1, Decimal("0.2"), Decimal("3"))
        await engine.accept_offer(db, Caller("B"), book.id, offer.id, Decimal("0.1"))
        await engine.start_bet(db, CREATOR, pool.id)

        await engine.cancel_bet(db, ADMIN, pool.id, "match abandoned")
        await engine.cancel_bet(db, ADMIN, book.id, "match abandoned")

        for user in ("X", "Y", "A", "B"):
            assert store.balance(user) == Decimal("1"), user
        assert all(p.claimed for p in store.participations.values())
        assert store.offers[offer.id].status is OfferStatus.CANCELLED
        assert [r.action for r in store.audit] == ["FORCE_CANCEL", "FORCE_CANCEL"]
        assert store.audit[0].detail == {"refunded": "1"}

    async def test_cancelled_bet_is_final(self, engine: WageringEngine, db: FakeSession) -> None:
        bet = await create_bet(engine, db)
        await engine.cancel_bet(db, ADMIN, bet.id, "test")
        with pytest.raises(InvalidStateTransitionError):
            await engine.cancel_bet(db, ADMIN, bet.id, "again")
        with pytest.raises(InvalidStateTransitionError):
            await engine.start_bet(db, ADMIN, bet.id)

    async def test_completed_undisputed_bet_cannot_be_cancelled(
        self, engine: WageringEngine, db: FakeSession
    ) -> None:
        bet = await create_bet(engine, db)
        await engine.start_bet(db, CREATOR, bet.id)
        await engine.declare_winner(db, ADMIN, bet.id, Winner.CONTESTANT1)
        with pytest.raises(InvalidStateTransitionError):
            await engine.cancel_bet(db, ADMIN, bet.id, "too late")


class TestQueries:
    async def test_get_unknown(self, engine: WageringEngine, db: FakeSession) -> None:
        with pytest.raises(BetNotFoundError):
            await engine.get_bet(db, "bet_missing")

    async def test_list_filters(self, engine: WageringEngine, db: FakeSession) -> None:
        open_bet = await create_bet(engine, db)
        started = await create_bet(engine, db, match_id="match-2")
        await engine.start_bet(db, CREATOR, started.id)

        assert [b.id for b in await engine.list_bets(db, [BetStatus.OPEN])] == [open_bet.id]
        assert len(await engine.list_bets(db)) == 2
        assert await engine.list_bets(db, tournament_id="tour-unknown") == []

    async def test_position(self, engine: WageringEngine, db: FakeSession, store: FakeStore) -> None:
        fund(store, X="1", Y="1")
        bet = await create_bet(engine, db)
        await engine.place_stake(db, X, bet.id, Side.CONTESTANT1, Decimal("0.4"))
        await engine.place_stake(db, Y, bet.id, Side.CONTESTANT2, Decimal("0.6"))
        pos = await engine.get_position(db, bet.id, "X")
        assert pos.potential_winnings[Side.CONTESTANT1] == Decimal("0.99")
        assert pos.claimable == Decimal("0")
