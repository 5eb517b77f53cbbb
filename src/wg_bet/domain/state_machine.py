"""Bet lifecycle state machine.

    open ──► in_progress ──► completed
      │           │
      └──► cancelled ◄──┘

``disputed`` is an orthogonal flag, settable from in_progress or from an
unclaimed completed bet. A disputed completed bet is the only terminal bet
that may move again: an admin re-declares its winner or cancels it.

Every guard raises InvalidStateTransitionError and mutates nothing; callers
run guards before touching the ledger.
"""

from datetime import datetime

from src.wg_bet.domain.models import Bet
from src.wg_common.enums import BetStatus, MarketType
from src.wg_common.errors import InvalidStateTransitionError

_TRANSITIONS: dict[BetStatus, frozenset[BetStatus]] = {
    BetStatus.OPEN: frozenset({BetStatus.IN_PROGRESS, BetStatus.CANCELLED}),
    BetStatus.IN_PROGRESS: frozenset({BetStatus.COMPLETED, BetStatus.CANCELLED}),
    BetStatus.COMPLETED: frozenset(),
    BetStatus.CANCELLED: frozenset(),
}


def _reject(bet: Bet, detail: str) -> InvalidStateTransitionError:
    return InvalidStateTransitionError(f"Bet {bet.id} is {bet.status.value}: {detail}")


def can_transition(current: BetStatus, target: BetStatus) -> bool:
    return target in _TRANSITIONS[current]


def check_transition(bet: Bet, target: BetStatus) -> None:
    if not can_transition(bet.status, target):
        raise _reject(bet, f"cannot move to {target.value}")


def check_accepting_stakes(bet: Bet) -> None:
    if bet.market_type is not MarketType.POOL:
        raise _reject(bet, "stakes are only accepted on pool bets")
    if bet.status is not BetStatus.OPEN:
        raise _reject(bet, "no longer accepting stakes")


def check_accepting_offers(bet: Bet, allow_in_progress: bool) -> None:
    """Offers may be posted/accepted while open, and while in_progress if policy allows."""
    if bet.market_type is not MarketType.ORDER_BOOK:
        raise _reject(bet, "offers are only accepted on order-book bets")
    if bet.status is BetStatus.OPEN:
        return
    if bet.status is BetStatus.IN_PROGRESS and allow_in_progress:
        return
    raise _reject(bet, "no longer accepting offers")


def check_offer_cancellable(bet: Bet) -> None:
    if bet.is_terminal:
        raise _reject(bet, "offers can no longer be cancelled")


def check_can_declare(bet: Bet) -> None:
    check_transition(bet, BetStatus.COMPLETED)
    if bet.disputed:
        raise _reject(bet, "disputed bets are resolved through the dispute workflow")


def check_can_redeclare(bet: Bet, any_claimed: bool) -> None:
    """Winner override: a completed (or disputed in-progress) bet with nothing paid out."""
    if bet.status is BetStatus.COMPLETED or (
        bet.status is BetStatus.IN_PROGRESS and bet.disputed
    ):
        if any_claimed:
            raise _reject(bet, "payouts already claimed; winner can no longer change")
        return
    raise _reject(bet, "winner can only be re-declared on a completed or disputed bet")


def check_can_cancel(bet: Bet, any_claimed: bool) -> None:
    """Non-terminal bets, plus disputed completed bets that paid nothing."""
    if bet.status is BetStatus.COMPLETED and bet.disputed and not any_claimed:
        return
    check_transition(bet, BetStatus.CANCELLED)


def check_disputed(bet: Bet) -> None:
    if not bet.disputed:
        raise _reject(bet, "not disputed")


def check_can_dispute(bet: Bet, any_claimed: bool) -> None:
    if bet.disputed:
        raise _reject(bet, "already disputed")
    if bet.status not in (BetStatus.IN_PROGRESS, BetStatus.COMPLETED):
        raise _reject(bet, "only in-progress or completed bets can be disputed")
    if any_claimed:
        raise _reject(bet, "payouts already claimed")


def mark_started(bet: Bet, now: datetime) -> None:
    check_transition(bet, BetStatus.IN_PROGRESS)
    bet.status = BetStatus.IN_PROGRESS
    bet.started_at = now


def mark_cancelled(bet: Bet, actor_id: str, now: datetime) -> None:
    bet.status = BetStatus.CANCELLED
    bet.cancelled_at = now
    bet.cancelled_by = actor_id
    bet.resolved_at = now
    bet.disputed = False


def mark_completed(bet: Bet, now: datetime) -> None:
    bet.status = BetStatus.COMPLETED
    bet.resolved_at = now
    bet.disputed = False
