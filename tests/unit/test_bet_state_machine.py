"""Unit tests for the bet lifecycle guards."""
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest

from src.wg_bet.domain import state_machine as sm
from src.wg_bet.domain.models import Bet, Contestant
from src.wg_common.enums import BetStatus, MarketType
from src.wg_common.errors import InvalidStateTransitionError
from tests.unit.fakes import make_contest

NOW = datetime(2026, 3, 1, tzinfo=UTC)


def _bet(**kwargs: Any) -> Bet:
    defaults: dict[str, Any] = {
        "id": "bet_1",
        "market_type": MarketType.POOL,
        "contest": make_contest(),
        "contestant1": Contestant(id="p1", name="Alice"),
        "contestant2": Contestant(id="p2", name="Bob"),
        "creator_id": "creator",
        "minimum_bet": Decimal("0.001"),
        "maximum_bet": Decimal("1"),
    }
    defaults.update(kwargs)
    return Bet(**defaults)


class TestTransitions:
    @pytest.mark.parametrize(
        ("current", "target", "allowed"),
        [
            (BetStatus.OPEN, BetStatus.IN_PROGRESS, True),
            (BetStatus.OPEN, BetStatus.CANCELLED, True),
            (BetStatus.OPEN, BetStatus.COMPLETED, False),
            (BetStatus.IN_PROGRESS, BetStatus.COMPLETED, True),
            (BetStatus.IN_PROGRESS, BetStatus.CANCELLED, True),
            (BetStatus.IN_PROGRESS, BetStatus.OPEN, False),
            (BetStatus.COMPLETED, BetStatus.CANCELLED, False),
            (BetStatus.CANCELLED, BetStatus.OPEN, False),
        ],
    )
    def test_can_transition(self, current: BetStatus, target: BetStatus, allowed: bool) -> None:
        assert sm.can_transition(current, target) is allowed

    def test_mark_started(self) -> None:
        bet = _bet()
        sm.mark_started(bet, NOW)
        assert bet.status is BetStatus.IN_PROGRESS
        assert bet.started_at == NOW

    def test_mark_started_twice_fails_without_mutation(self) -> None:
        bet = _bet(status=BetStatus.IN_PROGRESS, started_at=NOW)
        later = datetime(2026, 3, 2, tzinfo=UTC)
        with pytest.raises(InvalidStateTransitionError):
            sm.mark_started(bet, later)
        assert bet.started_at == NOW

    def test_mark_cancelled_clears_dispute(self) -> None:
        bet = _bet(status=BetStatus.COMPLETED, disputed=True)
        sm.mark_cancelled(bet, "admin", NOW)
        assert bet.status is BetStatus.CANCELLED
        assert bet.cancelled_by == "admin"
        assert bet.disputed is False


class TestGuards:
    def test_stakes_only_while_open(self) -> None:
        sm.check_accepting_stakes(_bet())
        with pytest.raises(InvalidStateTransitionError):
            sm.check_accepting_stakes(_bet(status=BetStatus.IN_PROGRESS))

    def test_stakes_rejected_on_order_book(self) -> None:
        with pytest.raises(InvalidStateTransitionError, match="pool bets"):
            sm.check_accepting_stakes(_bet(market_type=MarketType.ORDER_BOOK))

    def test_offers_in_progress_follow_policy(self) -> None:
        bet = _bet(market_type=MarketType.ORDER_BOOK, status=BetStatus.IN_PROGRESS)
        sm.check_accepting_offers(bet, allow_in_progress=True)
        with pytest.raises(InvalidStateTransitionError):
            sm.check_accepting_offers(bet, allow_in_progress=False)

    def test_offers_rejected_on_pool(self) -> None:
        with pytest.raises(InvalidStateTransitionError, match="order-book"):
            sm.check_accepting_offers(_bet(), allow_in_progress=True)

    def test_declare_requires_in_progress(self) -> None:
        with pytest.raises(InvalidStateTransitionError):
            sm.check_can_declare(_bet())
        sm.check_can_declare(_bet(status=BetStatus.IN_PROGRESS))

    def test_declare_refused_while_disputed(self) -> None:
        with pytest.raises(InvalidStateTransitionError, match="dispute"):
            sm.check_can_declare(_bet(status=BetStatus.IN_PROGRESS, disputed=True))

    def test_redeclare(self) -> None:
        sm.check_can_redeclare(_bet(status=BetStatus.COMPLETED), any_claimed=False)
        sm.check_can_redeclare(
            _bet(status=BetStatus.IN_PROGRESS, disputed=True), any_claimed=False
        )
        with pytest.raises(InvalidStateTransitionError, match="claimed"):
            sm.check_can_redeclare(_bet(status=BetStatus.COMPLETED), any_claimed=True)
        with pytest.raises(InvalidStateTransitionError):
            sm.check_can_redeclare(_bet(status=BetStatus.IN_PROGRESS), any_claimed=False)

    def test_cancel(self) -> None:
        sm.check_can_cancel(_bet(), any_claimed=False)
        sm.check_can_cancel(_bet(status=BetStatus.COMPLETED, disputed=True), any_claimed=False)
        with pytest.raises(InvalidStateTransitionError):
            sm.check_can_cancel(_bet(status=BetStatus.COMPLETED), any_claimed=False)
        with pytest.raises(InvalidStateTransitionError):
            sm.check_can_cancel(
                _bet(status=BetStatus.COMPLETED, disputed=True), any_claimed=True
            )

    def test_dispute(self) -> None:
        sm.check_can_dispute(_bet(status=BetStatus.IN_PROGRESS), any_claimed=False)
        sm.check_can_dispute(_bet(status=BetStatus.COMPLETED), any_claimed=False)
        with pytest.raises(InvalidStateTransitionError):
            sm.check_can_dispute(_bet(), any_claimed=False)
        with pytest.raises(InvalidStateTransitionError, match="already disputed"):
            sm.check_can_dispute(
                _bet(status=BetStatus.IN_PROGRESS, disputed=True), any_claimed=False
            )
        with pytest.raises(InvalidStateTransitionError, match="claimed"):
            sm.check_can_dispute(_bet(status=BetStatus.COMPLETED), any_claimed=True)
