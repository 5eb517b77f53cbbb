# src/wg_admin/application/service.py
"""Admin application service — privileged bet actions and audit queries.

Every method checks the administrative capability first; the engine writes the
audit record in the same transaction as the action itself.
"""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_admin.domain.models import AuditRecord
from src.wg_bet.domain.models import Bet
from src.wg_bet.domain.repository import BetRepositoryProtocol
from src.wg_bet.infrastructure.persistence import BetRepository
from src.wg_common.enums import BetStatus, MarketType, Winner
from src.wg_common.errors import ValidationError
from src.wg_common.identity import Caller, require_admin
from src.wg_engine.application.service import get_wagering_engine
from src.wg_engine.engine.engine import WageringEngine
from src.wg_settlement.domain.invariants import verify_payout_cap, verify_pool_invariants


def _require_reason(reason: str) -> str:
    if not reason or not reason.strip():
        raise ValidationError("Admin actions require a reason")
    return reason.strip()


class AdminService:
    def __init__(self, engine: WageringEngine, repo: BetRepositoryProtocol) -> None:
        self._engine = engine
        self._repo = repo

    async def force_status(
        self, db: AsyncSession, caller: Caller, bet_id: str, target: BetStatus, reason: str
    ) -> Bet:
        require_admin(caller, "force a status transition")
        reason = _require_reason(reason)
        if target is BetStatus.IN_PROGRESS:
            return await self._engine.start_bet(db, caller, bet_id, reason)
        if target is BetStatus.CANCELLED:
            return await self._engine.cancel_bet(db, caller, bet_id, reason)
        raise ValidationError(
            f"Cannot force status {target.value}; declare a winner to complete a bet"
        )

    async def declare_winner(
        self, db: AsyncSession, caller: Caller, bet_id: str, winner: Winner, reason: str
    ) -> Bet:
        require_admin(caller, "declare a winner")
        return await self._engine.declare_winner(db, caller, bet_id, winner, _require_reason(reason))

    async def override_winner(
        self, db: AsyncSession, caller: Caller, bet_id: str, winner: Winner, reason: str
    ) -> Bet:
        require_admin(caller, "override a winner")
        return await self._engine.override_winner(
            db, caller, bet_id, winner, _require_reason(reason)
        )

    async def resolve_dispute(
        self,
        db: AsyncSession,
        caller: Caller,
        bet_id: str,
        winner: Winner | None,
        reason: str,
    ) -> Bet:
        require_admin(caller, "resolve a dispute")
        return await self._engine.resolve_dispute(
            db, caller, bet_id, winner, _require_reason(reason)
        )

    async def list_audit_records(
        self, db: AsyncSession, caller: Caller, bet_id: str
    ) -> list[AuditRecord]:
        require_admin(caller, "read the audit trail")
        await self._engine.get_bet(db, bet_id)
        return await self._repo.list_audit_records(db, bet_id)

    async def verify_all_invariants(
        self, db: AsyncSession, caller: Caller, limit: int = 1000
    ) -> dict[str, Any]:
        """Re-check pool consistency and payout caps on the most recent bets."""
        require_admin(caller, "verify invariants")
        violations: list[str] = []
        bets = await self._repo.list_bets(db, None, None, limit)
        for bet in bets:
            participations = await self._repo.list_participations(db, bet.id)
            acceptances = await self._repo.list_acceptances(db, bet.id)
            try:
                if bet.market_type is MarketType.POOL:
                    verify_pool_invariants(bet, participations)
                verify_payout_cap(bet, participations, acceptances, self._engine.fee_rate)
            except AssertionError as e:
                violations.append(str(e))
        return {"ok": len(violations) == 0, "checked": len(bets), "violations": violations}


_service: AdminService | None = None


def get_admin_service() -> AdminService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = AdminService(get_wagering_engine(), BetRepository())
    return _service
