"""WageringEngine — stateful orchestrator for per-bet operations.

Every mutating operation runs under the bet's asyncio.Lock, loads the bet row
FOR UPDATE, validates all guards, debits the ledger, mutates, persists,
publishes events and commits. Any exception rolls the whole operation back.
"""
import asyncio
import logging
import weakref
from collections import defaultdict
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wg_account.domain.repository import LedgerGatewayProtocol
from src.wg_admin.domain.models import AuditRecord
from src.wg_bet.domain import state_machine
from src.wg_bet.domain.events import DomainEvent, EventPublisherProtocol
from src.wg_bet.domain.models import Bet, ContestRef, Contestant
from src.wg_bet.domain.repository import BetRepositoryProtocol
from src.wg_common.datetime_utils import utc_now
from src.wg_common.enums import (
    AuditAction,
    BetStatus,
    EventType,
    LedgerEntryType,
    MarketType,
    Side,
    Winner,
)
from src.wg_common.errors import (
    AlreadyClaimedError,
    BetNotFoundError,
    ConcurrencyConflictError,
    DuplicateBetError,
    InvalidStateTransitionError,
    NoWinningsError,
    NotEligibleError,
    PermissionDeniedError,
    ValidationError,
)
from src.wg_common.id_generator import generate_id
from src.wg_common.identity import PLATFORM_FEE_ACCOUNT, Caller, require_admin
from src.wg_common.money import ZERO, money_to_display
from src.wg_orderbook.domain.models import Acceptance, Offer
from src.wg_orderbook.domain.pricing import counter_stake, validate_odds
from src.wg_orderbook.engine.order_book import OrderBook
from src.wg_pool.domain.accounting import apply_stake, check_stake_bounds, live_odds
from src.wg_pool.domain.models import Participation
from src.wg_settlement.domain.invariants import verify_payout_cap, verify_pool_invariants
from src.wg_settlement.domain.payout import settle_order_book, settle_pool
from src.wg_settlement.domain.positions import UserPosition, build_position

logger = logging.getLogger(__name__)


@dataclass
class BetSnapshot:
    """Everything stored under one bet id, loaded in one go."""

    bet: Bet
    participations: list[Participation]
    offers: list[Offer]
    acceptances: list[Acceptance]

    @property
    def any_claimed(self) -> bool:
        return any(p.claimed for p in self.participations) or any(
            a.any_claimed for a in self.acceptances
        )

    def participants(self) -> set[str]:
        users = {self.bet.creator_id}
        users.update(p.user_id for p in self.participations)
        users.update(o.creator_id for o in self.offers)
        users.update(a.acceptor_id for a in self.acceptances)
        return users


class WageringEngine:
    def __init__(
        self,
        repo: BetRepositoryProtocol,
        ledger: LedgerGatewayProtocol,
        events: EventPublisherProtocol,
        fee_rate: Decimal | None = None,
        min_bet_floor: Decimal | None = None,
        max_offer_odds: Decimal | None = None,
        allow_additive_stakes: bool | None = None,
        order_book_open_in_progress: bool | None = None,
    ) -> None:
        self._repo = repo
        self._ledger = ledger
        self._events = events
        self.fee_rate = settings.PLATFORM_FEE_RATE if fee_rate is None else fee_rate
        self.min_bet_floor = settings.MIN_BET_FLOOR if min_bet_floor is None else min_bet_floor
        self.max_offer_odds = settings.MAX_OFFER_ODDS if max_offer_odds is None else max_offer_odds
        self.allow_additive_stakes = (
            settings.ALLOW_ADDITIVE_STAKES
            if allow_additive_stakes is None
            else allow_additive_stakes
        )
        self.order_book_open_in_progress = (
            settings.ORDER_BOOK_OPEN_IN_PROGRESS
            if order_book_open_in_progress is None
            else order_book_open_in_progress
        )
        # Held only while an operation is running or waiting on the key.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self, key: str, db: AsyncSession) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        async with lock:
            try:
                yield
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def _load_bet(self, db: AsyncSession, bet_id: str) -> Bet:
        bet = await self._repo.get_bet(db, bet_id, for_update=True)
        if bet is None:
            raise BetNotFoundError(bet_id)
        return bet

    async def _load_snapshot(self, db: AsyncSession, bet_id: str) -> BetSnapshot:
        bet = await self._load_bet(db, bet_id)
        return BetSnapshot(
            bet=bet,
            participations=await self._repo.list_participations(db, bet_id),
            offers=await self._repo.list_offers(db, bet_id),
            acceptances=await self._repo.list_acceptances(db, bet_id),
        )

    async def _save_bet(self, db: AsyncSession, bet: Bet) -> None:
        if not await self._repo.update_bet(db, bet):
            raise ConcurrencyConflictError(bet.id)

    async def _publish(
        self,
        db: AsyncSession,
        event_type: EventType,
        bet_id: str,
        user_id: str | None = None,
        **payload: Any,
    ) -> None:
        await self._events.publish(
            db, DomainEvent(event_type=event_type, bet_id=bet_id, user_id=user_id, payload=payload)
        )

    async def _audit(
        self,
        db: AsyncSession,
        bet: Bet,
        caller: Caller,
        action: AuditAction,
        reason: str,
        **detail: Any,
    ) -> None:
        await self._repo.add_audit_record(
            db,
            AuditRecord(
                bet_id=bet.id,
                actor_id=caller.user_id,
                action=action.value,
                reason=reason,
                detail=detail,
                created_at=utc_now(),
            ),
        )
        logger.info(
            "Admin action %s on bet %s by %s: %s", action.value, bet.id, caller.user_id, reason
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_bet(
        self,
        db: AsyncSession,
        caller: Caller,
        market_type: MarketType,
        contest: ContestRef,
        contestant1: Contestant,
        contestant2: Contestant,
        minimum_bet: Decimal,
        maximum_bet: Decimal,
    ) -> Bet:
        if minimum_bet < self.min_bet_floor:
            raise ValidationError(
                f"Minimum bet must be at least {money_to_display(self.min_bet_floor)}"
            )
        if maximum_bet <= minimum_bet:
            raise ValidationError("Maximum bet must be greater than minimum bet")
        if not contestant1.name.strip() or not contestant2.name.strip():
            raise ValidationError("Both contestants must be named")
        if contestant1 == contestant2:
            raise ValidationError("A bet needs two different contestants")
        if not contest.match_id:
            raise ValidationError("match_id is required")

        async with self._transaction(f"match:{contest.match_id}:{market_type.value}", db):
            existing = await self._repo.find_live_bet_for_match(db, contest.match_id, market_type)
            if existing is not None:
                raise DuplicateBetError(contest.match_id)
            bet = Bet(
                id=generate_id("bet_"),
                market_type=market_type,
                contest=contest,
                contestant1=contestant1,
                contestant2=contestant2,
                creator_id=caller.user_id,
                minimum_bet=minimum_bet,
                maximum_bet=maximum_bet,
                created_at=utc_now(),
            )
            await self._repo.create_bet(db, bet)
        logger.info(
            "Bet %s created: %s market on match %s by %s",
            bet.id, market_type.value, contest.match_id, caller.user_id,
        )
        return bet

    async def start_bet(
        self, db: AsyncSession, caller: Caller, bet_id: str, reason: str = ""
    ) -> Bet:
        async with self._transaction(bet_id, db):
            bet = await self._load_bet(db, bet_id)
            if caller.user_id != bet.creator_id and not caller.is_admin:
                raise PermissionDeniedError("Only the creator or an admin can start a bet")
            state_machine.mark_started(bet, utc_now())
            await self._save_bet(db, bet)
            if caller.is_admin:
                await self._audit(db, bet, caller, AuditAction.FORCE_START, reason)
        logger.info("Bet %s started by %s", bet_id, caller.user_id)
        return bet

    async def cancel_bet(
        self, db: AsyncSession, caller: Caller, bet_id: str, reason: str = ""
    ) -> Bet:
        """Cancel and refund everything still held in escrow.

        The creator may self-cancel an open bet nobody has joined yet; an admin
        may cancel any non-terminal bet, or a disputed completed bet with no
        claims.
        """
        async with self._transaction(bet_id, db):
            snap = await self._load_snapshot(db, bet_id)
            bet = snap.bet
            if caller.is_admin:
                state_machine.check_can_cancel(bet, snap.any_claimed)
            elif caller.user_id != bet.creator_id:
                raise PermissionDeniedError("Only the creator or an admin can cancel a bet")
            else:
                state_machine.check_transition(bet, BetStatus.CANCELLED)
                if bet.status is not BetStatus.OPEN:
                    raise InvalidStateTransitionError(
                        f"Bet {bet_id} is {bet.status.value}: only an admin can cancel it now"
                    )
                if snap.participations or snap.offers:
                    raise InvalidStateTransitionError(
                        f"Bet {bet_id} already has stakes; only an admin can cancel it"
                    )

            await self._cancel(db, caller, snap, reason)
        return bet

    async def _cancel(
        self, db: AsyncSession, caller: Caller, snap: BetSnapshot, reason: str
    ) -> None:
        bet = snap.bet
        was_disputed = bet.disputed
        now = utc_now()
        await self._reverse_platform_fee(db, bet)
        refunded = await self._refund_all(db, snap, now)
        state_machine.mark_cancelled(bet, caller.user_id, now)
        await self._save_bet(db, bet)
        if caller.is_admin:
            action = AuditAction.DISPUTE_CANCELLED if was_disputed else AuditAction.FORCE_CANCEL
            await self._audit(
                db, bet, caller, action, reason, refunded=money_to_display(refunded)
            )
        await self._publish(
            db, EventType.BET_CANCELLED, bet.id, caller.user_id,
            reason=reason, refunded=money_to_display(refunded),
        )
        logger.info(
            "Bet %s cancelled by %s, refunded %s", bet.id, caller.user_id, refunded
        )

    async def _reverse_platform_fee(self, db: AsyncSession, bet: Bet) -> None:
        if bet.platform_fee > ZERO:
            await self._ledger.debit(
                db, PLATFORM_FEE_ACCOUNT, bet.platform_fee,
                LedgerEntryType.FEE_REVERSAL.value, bet.id,
            )
            bet.platform_fee = ZERO

    async def _refund_all(self, db: AsyncSession, snap: BetSnapshot, now: datetime) -> Decimal:
        refunded = ZERO
        for p in snap.participations:
            await self._ledger.credit(
                db, p.user_id, p.amount, LedgerEntryType.CANCEL_REFUND.value, snap.bet.id
            )
            p.payout = p.amount
            await self._repo.update_participation(db, p)
            await self._repo.mark_participation_claimed(db, p.id, now)
            refunded += p.amount

        book = OrderBook.from_offers(snap.bet.id, snap.offers)
        for offer, remainder in book.close_all(now):
            if remainder > ZERO:
                await self._ledger.credit(
                    db, offer.creator_id, remainder, LedgerEntryType.CANCEL_REFUND.value, offer.id
                )
                refunded += remainder
            await self._repo.update_offer(db, offer)

        for a in snap.acceptances:
            await self._ledger.credit(
                db, a.creator_id, a.amount, LedgerEntryType.CANCEL_REFUND.value, a.id
            )
            await self._ledger.credit(
                db, a.acceptor_id, a.counter_amount, LedgerEntryType.CANCEL_REFUND.value, a.id
            )
            a.creator_payout = a.amount
            a.acceptor_payout = a.counter_amount
            await self._repo.update_acceptance_payouts(db, a)
            await self._repo.mark_acceptance_claimed(db, a.id, as_creator=True)
            await self._repo.mark_acceptance_claimed(db, a.id, as_creator=False)
            refunded += a.amount + a.counter_amount
        return refunded

    # ------------------------------------------------------------------
    # Pooled market
    # ------------------------------------------------------------------

    async def place_stake(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        prediction: Side,
        amount: Decimal,
    ) -> Participation:
        async with self._transaction(bet_id, db):
            bet = await self._load_bet(db, bet_id)
            state_machine.check_accepting_stakes(bet)
            participations = await self._repo.list_participations(db, bet_id)
            existing = next((p for p in participations if p.user_id == caller.user_id), None)

            if existing is not None:
                if not self.allow_additive_stakes:
                    raise ValidationError(
                        f"User {caller.user_id} already has a stake on bet {bet_id}", code=1004
                    )
                if existing.prediction is not prediction:
                    raise ValidationError(
                        "Additional stakes must back the same contestant", code=1004
                    )
                check_stake_bounds(bet, amount)
                if existing.amount + amount > bet.maximum_bet:
                    raise ValidationError(
                        f"Total stake would exceed the maximum of "
                        f"{money_to_display(bet.maximum_bet)}",
                        code=1002,
                    )
            else:
                check_stake_bounds(bet, amount)

            await self._ledger.debit(
                db, caller.user_id, amount, LedgerEntryType.STAKE.value, bet_id
            )

            if existing is not None:
                existing.amount += amount
                participation = existing
                await self._repo.update_participation(db, participation)
            else:
                participation = Participation(
                    id=generate_id("par_"),
                    bet_id=bet_id,
                    user_id=caller.user_id,
                    prediction=prediction,
                    amount=amount,
                    created_at=utc_now(),
                )
                participations.append(participation)
                await self._repo.add_participation(db, participation)

            apply_stake(bet, prediction, amount)
            verify_pool_invariants(bet, participations)
            await self._save_bet(db, bet)
            await self._publish(
                db, EventType.BET_PLACED, bet_id, caller.user_id,
                kind="stake", prediction=prediction.value, amount=money_to_display(amount),
            )
        logger.info(
            "Stake on bet %s: user=%s side=%s amount=%s total_pool=%s",
            bet_id, caller.user_id, prediction.value, amount, bet.total_pool,
        )
        return participation

    # ------------------------------------------------------------------
    # Order book
    # ------------------------------------------------------------------

    async def create_offer(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        prediction: Side,
        stake_amount: Decimal,
        requested_odds: Decimal,
    ) -> Offer:
        async with self._transaction(bet_id, db):
            bet = await self._load_bet(db, bet_id)
            state_machine.check_accepting_offers(bet, self.order_book_open_in_progress)
            check_stake_bounds(bet, stake_amount)
            validate_odds(requested_odds, self.max_offer_odds)

            offer = Offer(
                id=generate_id("off_"),
                bet_id=bet_id,
                creator_id=caller.user_id,
                prediction=prediction,
                stake_amount=stake_amount,
                requested_odds=requested_odds,
                remaining_amount=stake_amount,
                created_at=utc_now(),
            )
            await self._ledger.debit(
                db, caller.user_id, stake_amount, LedgerEntryType.OFFER_ESCROW.value, offer.id
            )
            await self._repo.add_offer(db, offer)
            await self._save_bet(db, bet)
            await self._publish(
                db, EventType.BET_PLACED, bet_id, caller.user_id,
                kind="offer", offer_id=offer.id, prediction=prediction.value,
                amount=money_to_display(stake_amount), odds=str(requested_odds),
            )
        logger.info(
            "Offer %s on bet %s: user=%s side=%s stake=%s odds=%s",
            offer.id, bet_id, caller.user_id, prediction.value, stake_amount, requested_odds,
        )
        return offer

    async def accept_offer(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        offer_id: str,
        accept_amount: Decimal,
    ) -> Acceptance:
        async with self._transaction(bet_id, db):
            bet = await self._load_bet(db, bet_id)
            state_machine.check_accepting_offers(bet, self.order_book_open_in_progress)
            book = OrderBook.from_offers(bet_id, await self._repo.list_offers(db, bet_id))
            offer = book.check_acceptable(offer_id, caller.user_id, accept_amount)
            counter = counter_stake(accept_amount, offer.requested_odds)

            acceptance_id = generate_id("acc_")
            await self._ledger.debit(
                db, caller.user_id, counter, LedgerEntryType.ACCEPT_ESCROW.value, acceptance_id
            )
            acceptance = book.accept(offer_id, caller.user_id, accept_amount, acceptance_id, utc_now())
            await self._repo.update_offer(db, offer)
            await self._repo.add_acceptance(db, acceptance)
            await self._save_bet(db, bet)
            await self._publish(
                db, EventType.OFFER_ACCEPTED, bet_id, caller.user_id,
                offer_id=offer_id, acceptance_id=acceptance.id, creator_id=offer.creator_id,
                amount=money_to_display(accept_amount),
                counter_amount=money_to_display(counter),
                odds=str(offer.requested_odds),
            )
        logger.info(
            "Offer %s accepted: acceptor=%s amount=%s counter=%s remaining=%s",
            offer_id, caller.user_id, accept_amount, counter, offer.remaining_amount,
        )
        return acceptance

    async def cancel_offer(
        self, db: AsyncSession, caller: Caller, bet_id: str, offer_id: str
    ) -> Offer:
        async with self._transaction(bet_id, db):
            bet = await self._load_bet(db, bet_id)
            state_machine.check_offer_cancellable(bet)
            offer = await self._repo.get_offer(db, bet_id, offer_id)
            book = OrderBook.from_offers(bet_id, [offer] if offer else [])
            book.check_cancellable(offer_id, caller.user_id)
            refund = book.cancel_remainder(offer_id, utc_now())
            await self._ledger.credit(
                db, caller.user_id, refund, LedgerEntryType.OFFER_REFUND.value, offer_id
            )
            await self._repo.update_offer(db, book.get(offer_id))
            await self._save_bet(db, bet)
        logger.info("Offer %s cancelled by %s, refunded %s", offer_id, caller.user_id, refund)
        return book.get(offer_id)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def declare_winner(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        winner: Winner,
        reason: str = "",
    ) -> Bet:
        require_admin(caller, "declare a winner")
        async with self._transaction(bet_id, db):
            snap = await self._load_snapshot(db, bet_id)
            state_machine.check_can_declare(snap.bet)
            await self._complete(db, caller, snap, winner, reason, AuditAction.DECLARE_WINNER)
        return snap.bet

    async def override_winner(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        winner: Winner,
        reason: str,
    ) -> Bet:
        """Re-declare the winner of a completed or disputed bet nobody has claimed from."""
        require_admin(caller, "override a winner")
        async with self._transaction(bet_id, db):
            snap = await self._load_snapshot(db, bet_id)
            state_machine.check_can_redeclare(snap.bet, snap.any_claimed)
            previous = snap.bet.winner
            await self._complete(
                db, caller, snap, winner, reason, AuditAction.OVERRIDE_WINNER,
                previous=previous.value if previous else None,
            )
        return snap.bet

    async def _complete(
        self,
        db: AsyncSession,
        caller: Caller,
        snap: BetSnapshot,
        winner: Winner,
        reason: str,
        action: AuditAction,
        **audit_detail: Any,
    ) -> None:
        bet = snap.bet
        now = utc_now()

        # Unmatched remainders never take part in settlement.
        book = OrderBook.from_offers(bet.id, snap.offers)
        for offer, remainder in book.close_all(now):
            if remainder > ZERO:
                await self._ledger.credit(
                    db, offer.creator_id, remainder, LedgerEntryType.OFFER_REFUND.value, offer.id
                )
            await self._repo.update_offer(db, offer)

        pool = settle_pool(snap.participations, winner, self.fee_rate)
        for p in snap.participations:
            p.payout = pool.payouts[p.id]
            await self._repo.update_participation(db, p)

        pairs, pair_fee = settle_order_book(snap.acceptances, winner, self.fee_rate)
        for a in snap.acceptances:
            a.creator_payout = pairs[a.id].creator_payout
            a.acceptor_payout = pairs[a.id].acceptor_payout
            await self._repo.update_acceptance_payouts(db, a)

        fee = pool.fee + pair_fee
        delta = fee - bet.platform_fee
        if delta > ZERO:
            await self._ledger.credit(
                db, PLATFORM_FEE_ACCOUNT, delta, LedgerEntryType.FEE_REVENUE.value, bet.id
            )
        elif delta < ZERO:
            await self._ledger.debit(
                db, PLATFORM_FEE_ACCOUNT, -delta, LedgerEntryType.FEE_REVERSAL.value, bet.id
            )
        bet.platform_fee = fee

        bet.winner = winner
        state_machine.mark_completed(bet, now)
        verify_payout_cap(bet, snap.participations, snap.acceptances, self.fee_rate)
        await self._save_bet(db, bet)
        await self._audit(
            db, bet, caller, action, reason,
            winner=winner.value, platform_fee=money_to_display(fee), **audit_detail,
        )

        await self._publish(
            db, EventType.BET_COMPLETED, bet.id, None,
            winner=winner.value, market_type=bet.market_type.value,
        )
        for user_id, amount in sorted(_claimable_by_user(snap).items()):
            await self._publish(
                db, EventType.WINNINGS_CLAIMABLE, bet.id, user_id,
                amount=money_to_display(amount),
            )
        logger.info(
            "Bet %s completed: winner=%s fee=%s (%s by %s)",
            bet.id, winner.value, fee, action.value, caller.user_id,
        )

    async def claim(self, db: AsyncSession, caller: Caller, bet_id: str) -> Decimal:
        """Pay out everything the caller won on this bet, at most once."""
        user_id = caller.user_id
        async with self._transaction(bet_id, db):
            snap = await self._load_snapshot(db, bet_id)
            bet = snap.bet
            if bet.status is not BetStatus.COMPLETED:
                raise NotEligibleError(f"Bet {bet_id} is {bet.status.value}, not completed")
            if bet.disputed:
                raise NotEligibleError(f"Bet {bet_id} is disputed; claims are on hold")

            # (payout, claimed, claim-marker) for each of the user's legs
            legs: list[tuple[Decimal, bool, Any]] = []
            for p in snap.participations:
                if p.user_id == user_id:
                    legs.append((p.payout or ZERO, p.claimed, ("par", p.id)))
            for a in snap.acceptances:
                if a.creator_id == user_id:
                    legs.append((a.creator_payout or ZERO, a.creator_claimed, ("acc", a.id, True)))
                if a.acceptor_id == user_id:
                    legs.append((a.acceptor_payout or ZERO, a.acceptor_claimed, ("acc", a.id, False)))
            if not legs:
                raise NotEligibleError(f"User {user_id} did not participate in bet {bet_id}")

            winning = [leg for leg in legs if leg[0] > ZERO]
            if winning and all(claimed for _, claimed, _ in winning):
                raise AlreadyClaimedError(bet_id, user_id)
            unclaimed = [leg for leg in winning if not leg[1]]
            total = sum((payout for payout, _, _ in unclaimed), ZERO)
            if total == ZERO:
                raise NoWinningsError(bet_id)

            now = utc_now()
            for _, _, marker in unclaimed:
                if marker[0] == "par":
                    ok = await self._repo.mark_participation_claimed(db, marker[1], now)
                else:
                    ok = await self._repo.mark_acceptance_claimed(db, marker[1], marker[2])
                if not ok:
                    raise AlreadyClaimedError(bet_id, user_id)
            await self._ledger.credit(db, user_id, total, LedgerEntryType.PAYOUT.value, bet_id)
        logger.info("Claim on bet %s: user=%s amount=%s", bet_id, user_id, total)
        return total

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    async def raise_dispute(
        self, db: AsyncSession, caller: Caller, bet_id: str, reason: str
    ) -> Bet:
        if not reason.strip():
            raise ValidationError("A dispute needs a reason")
        async with self._transaction(bet_id, db):
            snap = await self._load_snapshot(db, bet_id)
            bet = snap.bet
            if not caller.is_admin and caller.user_id not in snap.participants():
                raise PermissionDeniedError("Only participants or an admin can dispute a bet")
            state_machine.check_can_dispute(bet, snap.any_claimed)
            bet.disputed = True
            bet.dispute_reason = reason
            await self._save_bet(db, bet)
            await self._audit(db, bet, caller, AuditAction.DISPUTE_RAISED, reason)
            await self._publish(db, EventType.DISPUTE_RAISED, bet_id, caller.user_id, reason=reason)
        return bet

    async def resolve_dispute(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        winner: Winner | None,
        reason: str,
    ) -> Bet:
        """End a dispute: re-declare ``winner``, or cancel with full refund when None."""
        require_admin(caller, "resolve a dispute")
        async with self._transaction(bet_id, db):
            snap = await self._load_snapshot(db, bet_id)
            state_machine.check_disputed(snap.bet)
            if winner is None:
                state_machine.check_can_cancel(snap.bet, snap.any_claimed)
                await self._cancel(db, caller, snap, reason)
            else:
                state_machine.check_can_redeclare(snap.bet, snap.any_claimed)
                previous = snap.bet.winner
                await self._complete(
                    db, caller, snap, winner, reason, AuditAction.DISPUTE_REDECLARED,
                    previous=previous.value if previous else None,
                )
        return snap.bet

    # ------------------------------------------------------------------
    # Queries (read-only; no lock, no commit)
    # ------------------------------------------------------------------

    async def get_bet(self, db: AsyncSession, bet_id: str) -> Bet:
        bet = await self._repo.get_bet(db, bet_id)
        if bet is None:
            raise BetNotFoundError(bet_id)
        return bet

    async def list_bets(
        self,
        db: AsyncSession,
        statuses: list[BetStatus] | None = None,
        tournament_id: str | None = None,
        limit: int = 50,
        creator_id: str | None = None,
        participant_id: str | None = None,
    ) -> list[Bet]:
        return await self._repo.list_bets(
            db, statuses, tournament_id, limit,
            creator_id=creator_id, participant_id=participant_id,
        )

    async def get_odds(self, db: AsyncSession, bet_id: str) -> tuple[Bet, dict[Side, Decimal | None]]:
        bet = await self.get_bet(db, bet_id)
        return bet, {side: live_odds(bet, side) for side in Side}

    async def list_active_offers(
        self, db: AsyncSession, bet_id: str, side: Side | None = None
    ) -> list[Offer]:
        await self.get_bet(db, bet_id)
        book = OrderBook.from_offers(bet_id, await self._repo.list_offers(db, bet_id))
        return book.active_offers(side)

    async def get_position(self, db: AsyncSession, bet_id: str, user_id: str) -> UserPosition:
        bet = await self.get_bet(db, bet_id)
        return build_position(
            user_id,
            await self._repo.list_participations(db, bet_id),
            await self._repo.list_offers(db, bet_id),
            await self._repo.list_acceptances(db, bet_id),
            self.fee_rate,
            {side: bet.pool_for(side) for side in Side},
        )


def _claimable_by_user(snap: BetSnapshot) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for p in snap.participations:
        if p.payout and not p.claimed:
            totals[p.user_id] += p.payout
    for a in snap.acceptances:
        if a.creator_payout and not a.creator_claimed:
            totals[a.creator_id] += a.creator_payout
        if a.acceptor_payout and not a.acceptor_claimed:
            totals[a.acceptor_id] += a.acceptor_payout
    return dict(totals)
