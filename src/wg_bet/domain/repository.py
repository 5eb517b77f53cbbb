# src/wg_bet/domain/repository.py
"""Repository Protocol for the bet aggregate (bet + participations + offers +
acceptances + audit trail).

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the raw-SQL implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_admin.domain.models import AuditRecord
from src.wg_bet.domain.models import Bet
from src.wg_common.enums import BetStatus, MarketType
from src.wg_orderbook.domain.models import Acceptance, Offer
from src.wg_pool.domain.models import Participation


class BetRepositoryProtocol(Protocol):
    # --- bets ---
    async def create_bet(self, db: AsyncSession, bet: Bet) -> None: ...

    async def get_bet(
        self, db: AsyncSession, bet_id: str, for_update: bool = False
    ) -> Bet | None: ...

    async def find_live_bet_for_match(
        self, db: AsyncSession, match_id: str, market_type: MarketType
    ) -> Bet | None:
        """Any non-cancelled bet on the same match and market type."""
        ...

    async def list_bets(
        self,
        db: AsyncSession,
        statuses: list[BetStatus] | None,
        tournament_id: str | None,
        limit: int,
        creator_id: str | None = None,
        participant_id: str | None = None,
    ) -> list[Bet]: ...

    async def update_bet(self, db: AsyncSession, bet: Bet) -> bool:
        """Optimistic update guarded by bet.version; bumps version on success."""
        ...

    # --- participations ---
    async def list_participations(
        self, db: AsyncSession, bet_id: str
    ) -> list[Participation]: ...

    async def add_participation(self, db: AsyncSession, participation: Participation) -> None: ...

    async def update_participation(
        self, db: AsyncSession, participation: Participation
    ) -> None: ...

    async def mark_participation_claimed(
        self, db: AsyncSession, participation_id: str, claimed_at: datetime
    ) -> bool:
        """Compare-and-set claimed False -> True. False means already claimed."""
        ...

    # --- offers ---
    async def list_offers(self, db: AsyncSession, bet_id: str) -> list[Offer]: ...

    async def get_offer(
        self, db: AsyncSession, bet_id: str, offer_id: str
    ) -> Offer | None: ...

    async def add_offer(self, db: AsyncSession, offer: Offer) -> None: ...

    async def update_offer(self, db: AsyncSession, offer: Offer) -> None: ...

    # --- acceptances ---
    async def list_acceptances(self, db: AsyncSession, bet_id: str) -> list[Acceptance]: ...

    async def add_acceptance(self, db: AsyncSession, acceptance: Acceptance) -> None: ...

    async def update_acceptance_payouts(
        self, db: AsyncSession, acceptance: Acceptance
    ) -> None: ...

    async def mark_acceptance_claimed(
        self, db: AsyncSession, acceptance_id: str, as_creator: bool
    ) -> bool:
        """Compare-and-set on the creator or acceptor leg's claimed flag."""
        ...

    # --- audit ---
    async def add_audit_record(self, db: AsyncSession, record: AuditRecord) -> None: ...

    async def list_audit_records(self, db: AsyncSession, bet_id: str) -> list[AuditRecord]: ...
