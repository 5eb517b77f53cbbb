# src/wg_bet/infrastructure/persistence.py
"""BetRepository — raw SQL persistence for the bet aggregate."""
import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_admin.domain.models import AuditRecord
from src.wg_bet.domain.models import Bet, ContestRef, Contestant
from src.wg_common.enums import BetStatus, MarketType, OfferStatus, Side, Winner
from src.wg_orderbook.domain.models import Acceptance, Offer
from src.wg_pool.domain.models import Participation

# ---------------------------------------------------------------------------
# SQL statements — bets
# ---------------------------------------------------------------------------

_BET_COLUMNS = """
    id, market_type, tournament_id, tournament_name, event_id, event_name,
    phase_id, phase_name, match_id, match_name,
    contestant1_id, contestant1_name, contestant2_id, contestant2_name,
    creator_id, minimum_bet, maximum_bet, status, winner,
    contestant1_pool, contestant2_pool, total_pool, platform_fee,
    disputed, dispute_reason, version,
    created_at, started_at, resolved_at, cancelled_at, cancelled_by
"""

_INSERT_BET_SQL = text("""
    INSERT INTO bets (id, market_type, tournament_id, tournament_name,
        event_id, event_name, phase_id, phase_name, match_id, match_name,
        contestant1_id, contestant1_name, contestant2_id, contestant2_name,
        creator_id, minimum_bet, maximum_bet, status)
    VALUES (:id, :market_type, :tournament_id, :tournament_name,
        :event_id, :event_name, :phase_id, :phase_name, :match_id, :match_name,
        :contestant1_id, :contestant1_name, :contestant2_id, :contestant2_name,
        :creator_id, :minimum_bet, :maximum_bet, :status)
    RETURNING created_at
""")

_GET_BET_SQL = text(f"SELECT {_BET_COLUMNS} FROM bets WHERE id = :id")

_GET_BET_FOR_UPDATE_SQL = text(f"SELECT {_BET_COLUMNS} FROM bets WHERE id = :id FOR UPDATE")

_FIND_LIVE_BET_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE match_id = :match_id AND market_type = :market_type
      AND status != 'cancelled'
    LIMIT 1
""")

_LIST_BETS_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE (CAST(:statuses_csv AS TEXT) IS NULL
           OR status = ANY(string_to_array(CAST(:statuses_csv AS TEXT), ',')))
      AND (CAST(:tournament_id AS TEXT) IS NULL OR tournament_id = :tournament_id)
      AND (CAST(:creator_id AS TEXT) IS NULL OR creator_id = :creator_id)
      AND (CAST(:participant_id AS TEXT) IS NULL
           OR EXISTS (SELECT 1 FROM participations p
                      WHERE p.bet_id = bets.id AND p.user_id = :participant_id)
           OR EXISTS (SELECT 1 FROM offers o
                      WHERE o.bet_id = bets.id AND o.creator_id = :participant_id)
           OR EXISTS (SELECT 1 FROM acceptances a
                      WHERE a.bet_id = bets.id AND a.acceptor_id = :participant_id))
    ORDER BY created_at DESC
    LIMIT :limit
""")

_UPDATE_BET_SQL = text("""
    UPDATE bets
    SET status = :status, winner = :winner,
        minimum_bet = :minimum_bet, maximum_bet = :maximum_bet,
        contestant1_pool = :contestant1_pool, contestant2_pool = :contestant2_pool,
        total_pool = :total_pool, platform_fee = :platform_fee,
        disputed = :disputed, dispute_reason = :dispute_reason,
        started_at = :started_at, resolved_at = :resolved_at,
        cancelled_at = :cancelled_at, cancelled_by = :cancelled_by,
        version = version + 1, updated_at = NOW()
    WHERE id = :id AND version = :version
""")

# ---------------------------------------------------------------------------
# SQL statements — participations
# ---------------------------------------------------------------------------

_PARTICIPATION_COLUMNS = """
    id, bet_id, user_id, prediction, amount, payout, claimed, claimed_at, created_at
"""

_INSERT_PARTICIPATION_SQL = text("""
    INSERT INTO participations (id, bet_id, user_id, prediction, amount)
    VALUES (:id, :bet_id, :user_id, :prediction, :amount)
""")

_UPDATE_PARTICIPATION_SQL = text("""
    UPDATE participations
    SET amount = :amount, payout = :payout
    WHERE id = :id
""")

_LIST_PARTICIPATIONS_SQL = text(f"""
    SELECT {_PARTICIPATION_COLUMNS}
    FROM participations WHERE bet_id = :bet_id
    ORDER BY created_at, id
""")

_CLAIM_PARTICIPATION_SQL = text("""
    UPDATE participations
    SET claimed = TRUE, claimed_at = :claimed_at
    WHERE id = :id AND claimed = FALSE
    RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL statements — offers / acceptances
# ---------------------------------------------------------------------------

_OFFER_COLUMNS = """
    id, bet_id, creator_id, prediction, stake_amount, requested_odds,
    remaining_amount, status, created_at, updated_at
"""

_INSERT_OFFER_SQL = text("""
    INSERT INTO offers (id, bet_id, creator_id, prediction, stake_amount,
        requested_odds, remaining_amount, status)
    VALUES (:id, :bet_id, :creator_id, :prediction, :stake_amount,
        :requested_odds, :remaining_amount, :status)
""")

_UPDATE_OFFER_SQL = text("""
    UPDATE offers
    SET remaining_amount = :remaining_amount, status = :status, updated_at = NOW()
    WHERE id = :id
""")

_LIST_OFFERS_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}
    FROM offers WHERE bet_id = :bet_id
    ORDER BY created_at, id
""")

_GET_OFFER_SQL = text(f"""
    SELECT {_OFFER_COLUMNS}
    FROM offers WHERE id = :id AND bet_id = :bet_id
""")

_ACCEPTANCE_COLUMNS = """
    id, bet_id, offer_id, creator_id, acceptor_id, creator_side, amount,
    counter_amount, requested_odds, creator_payout, acceptor_payout,
    creator_claimed, acceptor_claimed, created_at
"""

_INSERT_ACCEPTANCE_SQL = text("""
    INSERT INTO acceptances (id, bet_id, offer_id, creator_id, acceptor_id,
        creator_side, amount, counter_amount, requested_odds)
    VALUES (:id, :bet_id, :offer_id, :creator_id, :acceptor_id,
        :creator_side, :amount, :counter_amount, :requested_odds)
""")

_LIST_ACCEPTANCES_SQL = text(f"""
    SELECT {_ACCEPTANCE_COLUMNS}
    FROM acceptances WHERE bet_id = :bet_id
    ORDER BY created_at, id
""")

_UPDATE_ACCEPTANCE_PAYOUTS_SQL = text("""
    UPDATE acceptances
    SET creator_payout = :creator_payout, acceptor_payout = :acceptor_payout
    WHERE id = :id
""")

_CLAIM_CREATOR_LEG_SQL = text("""
    UPDATE acceptances SET creator_claimed = TRUE
    WHERE id = :id AND creator_claimed = FALSE
    RETURNING id
""")

_CLAIM_ACCEPTOR_LEG_SQL = text("""
    UPDATE acceptances SET acceptor_claimed = TRUE
    WHERE id = :id AND acceptor_claimed = FALSE
    RETURNING id
""")

# ---------------------------------------------------------------------------
# SQL statements — audit
# ---------------------------------------------------------------------------

_INSERT_AUDIT_SQL = text("""
    INSERT INTO bet_audit_log (bet_id, actor_id, action, reason, detail)
    VALUES (:bet_id, :actor_id, :action, :reason, CAST(:detail AS JSONB))
""")

_LIST_AUDIT_SQL = text("""
    SELECT id, bet_id, actor_id, action, reason, detail, created_at
    FROM bet_audit_log WHERE bet_id = :bet_id
    ORDER BY id
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_bet(row: Any) -> Bet:
    """Convert a DB result row to a Bet domain object."""
    return Bet(
        id=row.id,
        market_type=MarketType(row.market_type),
        contest=ContestRef(
            tournament_id=row.tournament_id,
            tournament_name=row.tournament_name,
            event_id=row.event_id,
            event_name=row.event_name,
            phase_id=row.phase_id,
            phase_name=row.phase_name,
            match_id=row.match_id,
            match_name=row.match_name,
        ),
        contestant1=Contestant(id=row.contestant1_id, name=row.contestant1_name),
        contestant2=Contestant(id=row.contestant2_id, name=row.contestant2_name),
        creator_id=row.creator_id,
        minimum_bet=row.minimum_bet,
        maximum_bet=row.maximum_bet,
        status=BetStatus(row.status),
        winner=Winner(row.winner) if row.winner else None,
        contestant1_pool=row.contestant1_pool,
        contestant2_pool=row.contestant2_pool,
        total_pool=row.total_pool,
        platform_fee=row.platform_fee,
        disputed=row.disputed,
        dispute_reason=row.dispute_reason,
        version=row.version,
        created_at=row.created_at,
        started_at=row.started_at,
        resolved_at=row.resolved_at,
        cancelled_at=row.cancelled_at,
        cancelled_by=row.cancelled_by,
    )


def _row_to_participation(row: Any) -> Participation:
    return Participation(
        id=row.id,
        bet_id=row.bet_id,
        user_id=row.user_id,
        prediction=Side(row.prediction),
        amount=row.amount,
        payout=row.payout,
        claimed=row.claimed,
        claimed_at=row.claimed_at,
        created_at=row.created_at,
    )


def _row_to_offer(row: Any) -> Offer:
    return Offer(
        id=row.id,
        bet_id=row.bet_id,
        creator_id=row.creator_id,
        prediction=Side(row.prediction),
        stake_amount=row.stake_amount,
        requested_odds=row.requested_odds,
        remaining_amount=row.remaining_amount,
        status=OfferStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_acceptance(row: Any) -> Acceptance:
    return Acceptance(
        id=row.id,
        bet_id=row.bet_id,
        offer_id=row.offer_id,
        creator_id=row.creator_id,
        acceptor_id=row.acceptor_id,
        creator_side=Side(row.creator_side),
        amount=row.amount,
        counter_amount=row.counter_amount,
        requested_odds=row.requested_odds,
        creator_payout=row.creator_payout,
        acceptor_payout=row.acceptor_payout,
        creator_claimed=row.creator_claimed,
        acceptor_claimed=row.acceptor_claimed,
        created_at=row.created_at,
    )


def _row_to_audit(row: Any) -> AuditRecord:
    detail = row.detail
    if isinstance(detail, str):
        detail = json.loads(detail)
    return AuditRecord(
        id=row.id,
        bet_id=row.bet_id,
        actor_id=row.actor_id,
        action=row.action,
        reason=row.reason,
        detail=detail or {},
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BetRepository:
    """Concrete implementation of BetRepositoryProtocol using raw SQL."""

    # --- bets ---

    async def create_bet(self, db: AsyncSession, bet: Bet) -> None:
        result = await db.execute(
            _INSERT_BET_SQL,
            {
                "id": bet.id,
                "market_type": bet.market_type.value,
                "tournament_id": bet.contest.tournament_id,
                "tournament_name": bet.contest.tournament_name,
                "event_id": bet.contest.event_id,
                "event_name": bet.contest.event_name,
                "phase_id": bet.contest.phase_id,
                "phase_name": bet.contest.phase_name,
                "match_id": bet.contest.match_id,
                "match_name": bet.contest.match_name,
                "contestant1_id": bet.contestant1.id,
                "contestant1_name": bet.contestant1.name,
                "contestant2_id": bet.contestant2.id,
                "contestant2_name": bet.contestant2.name,
                "creator_id": bet.creator_id,
                "minimum_bet": bet.minimum_bet,
                "maximum_bet": bet.maximum_bet,
                "status": bet.status.value,
            },
        )
        row = result.fetchone()
        if row is not None:
            bet.created_at = row.created_at

    async def get_bet(
        self, db: AsyncSession, bet_id: str, for_update: bool = False
    ) -> Bet | None:
        sql = _GET_BET_FOR_UPDATE_SQL if for_update else _GET_BET_SQL
        result = await db.execute(sql, {"id": bet_id})
        row = result.fetchone()
        return _row_to_bet(row) if row else None

    async def find_live_bet_for_match(
        self, db: AsyncSession, match_id: str, market_type: MarketType
    ) -> Bet | None:
        result = await db.execute(
            _FIND_LIVE_BET_SQL,
            {"match_id": match_id, "market_type": market_type.value},
        )
        row = result.fetchone()
        return _row_to_bet(row) if row else None

    async def list_bets(
        self,
        db: AsyncSession,
        statuses: list[BetStatus] | None,
        tournament_id: str | None,
        limit: int,
        creator_id: str | None = None,
        participant_id: str | None = None,
    ) -> list[Bet]:
        """Newest first. ``participant_id`` matches stakers, offer creators and acceptors."""
        statuses_csv = ",".join(s.value for s in statuses) if statuses else None
        result = await db.execute(
            _LIST_BETS_SQL,
            {
                "statuses_csv": statuses_csv,
                "tournament_id": tournament_id,
                "creator_id": creator_id,
                "participant_id": participant_id,
                "limit": limit,
            },
        )
        return [_row_to_bet(row) for row in result.fetchall()]

    async def update_bet(self, db: AsyncSession, bet: Bet) -> bool:
        result = await db.execute(
            _UPDATE_BET_SQL,
            {
                "id": bet.id,
                "version": bet.version,
                "status": bet.status.value,
                "winner": bet.winner.value if bet.winner else None,
                "minimum_bet": bet.minimum_bet,
                "maximum_bet": bet.maximum_bet,
                "contestant1_pool": bet.contestant1_pool,
                "contestant2_pool": bet.contestant2_pool,
                "total_pool": bet.total_pool,
                "platform_fee": bet.platform_fee,
                "disputed": bet.disputed,
                "dispute_reason": bet.dispute_reason,
                "started_at": bet.started_at,
                "resolved_at": bet.resolved_at,
                "cancelled_at": bet.cancelled_at,
                "cancelled_by": bet.cancelled_by,
            },
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return False
        bet.version += 1
        return True

    # --- participations ---

    async def list_participations(self, db: AsyncSession, bet_id: str) -> list[Participation]:
        result = await db.execute(_LIST_PARTICIPATIONS_SQL, {"bet_id": bet_id})
        return [_row_to_participation(row) for row in result.fetchall()]

    async def add_participation(self, db: AsyncSession, participation: Participation) -> None:
        await db.execute(
            _INSERT_PARTICIPATION_SQL,
            {
                "id": participation.id,
                "bet_id": participation.bet_id,
                "user_id": participation.user_id,
                "prediction": participation.prediction.value,
                "amount": participation.amount,
            },
        )

    async def update_participation(self, db: AsyncSession, participation: Participation) -> None:
        await db.execute(
            _UPDATE_PARTICIPATION_SQL,
            {
                "id": participation.id,
                "amount": participation.amount,
                "payout": participation.payout,
            },
        )

    async def mark_participation_claimed(
        self, db: AsyncSession, participation_id: str, claimed_at: datetime
    ) -> bool:
        result = await db.execute(
            _CLAIM_PARTICIPATION_SQL, {"id": participation_id, "claimed_at": claimed_at}
        )
        return result.fetchone() is not None

    # --- offers ---

    async def list_offers(self, db: AsyncSession, bet_id: str) -> list[Offer]:
        result = await db.execute(_LIST_OFFERS_SQL, {"bet_id": bet_id})
        return [_row_to_offer(row) for row in result.fetchall()]

    async def get_offer(self, db: AsyncSession, bet_id: str, offer_id: str) -> Offer | None:
        result = await db.execute(_GET_OFFER_SQL, {"id": offer_id, "bet_id": bet_id})
        row = result.fetchone()
        return _row_to_offer(row) if row else None

    async def add_offer(self, db: AsyncSession, offer: Offer) -> None:
        await db.execute(
            _INSERT_OFFER_SQL,
            {
                "id": offer.id,
                "bet_id": offer.bet_id,
                "creator_id": offer.creator_id,
                "prediction": offer.prediction.value,
                "stake_amount": offer.stake_amount,
                "requested_odds": offer.requested_odds,
                "remaining_amount": offer.remaining_amount,
                "status": offer.status.value,
            },
        )

    async def update_offer(self, db: AsyncSession, offer: Offer) -> None:
        await db.execute(
            _UPDATE_OFFER_SQL,
            {
                "id": offer.id,
                "remaining_amount": offer.remaining_amount,
                "status": offer.status.value,
            },
        )

    # --- acceptances ---

    async def list_acceptances(self, db: AsyncSession, bet_id: str) -> list[Acceptance]:
        result = await db.execute(_LIST_ACCEPTANCES_SQL, {"bet_id": bet_id})
        return [_row_to_acceptance(row) for row in result.fetchall()]

    async def add_acceptance(self, db: AsyncSession, acceptance: Acceptance) -> None:
        await db.execute(
            _INSERT_ACCEPTANCE_SQL,
            {
                "id": acceptance.id,
                "bet_id": acceptance.bet_id,
                "offer_id": acceptance.offer_id,
                "creator_id": acceptance.creator_id,
                "acceptor_id": acceptance.acceptor_id,
                "creator_side": acceptance.creator_side.value,
                "amount": acceptance.amount,
                "counter_amount": acceptance.counter_amount,
                "requested_odds": acceptance.requested_odds,
            },
        )

    async def update_acceptance_payouts(self, db: AsyncSession, acceptance: Acceptance) -> None:
        await db.execute(
            _UPDATE_ACCEPTANCE_PAYOUTS_SQL,
            {
                "id": acceptance.id,
                "creator_payout": acceptance.creator_payout,
                "acceptor_payout": acceptance.acceptor_payout,
            },
        )

    async def mark_acceptance_claimed(
        self, db: AsyncSession, acceptance_id: str, as_creator: bool
    ) -> bool:
        sql = _CLAIM_CREATOR_LEG_SQL if as_creator else _CLAIM_ACCEPTOR_LEG_SQL
        result = await db.execute(sql, {"id": acceptance_id})
        return result.fetchone() is not None

    # --- audit ---

    async def add_audit_record(self, db: AsyncSession, record: AuditRecord) -> None:
        await db.execute(
            _INSERT_AUDIT_SQL,
            {
                "bet_id": record.bet_id,
                "actor_id": record.actor_id,
                "action": record.action,
                "reason": record.reason,
                "detail": json.dumps(record.detail, default=str),
            },
        )

    async def list_audit_records(self, db: AsyncSession, bet_id: str) -> list[AuditRecord]:
        result = await db.execute(_LIST_AUDIT_SQL, {"bet_id": bet_id})
        return [_row_to_audit(row) for row in result.fetchall()]
