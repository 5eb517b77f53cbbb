"""Domain models for wg_bet — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.wg_common.enums import BetStatus, MarketType, Side, Winner


@dataclass(frozen=True)
class Contestant:
    id: str | None
    name: str


@dataclass(frozen=True)
class ContestRef:
    """Pointer into the external bracket provider; display names are denormalized."""

    tournament_id: str
    tournament_name: str
    event_id: str
    event_name: str
    phase_id: str
    phase_name: str
    match_id: str
    match_name: str


@dataclass
class Bet:
    id: str
    market_type: MarketType
    contest: ContestRef
    contestant1: Contestant
    contestant2: Contestant
    creator_id: str
    minimum_bet: Decimal
    maximum_bet: Decimal
    status: BetStatus = BetStatus.OPEN
    winner: Winner | None = None
    contestant1_pool: Decimal = Decimal(0)
    contestant2_pool: Decimal = Decimal(0)
    total_pool: Decimal = Decimal(0)
    platform_fee: Decimal = Decimal(0)    # fee currently retained by the platform
    disputed: bool = False
    dispute_reason: str | None = None
    version: int = 0
    created_at: datetime | None = None
    started_at: datetime | None = None
    resolved_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (BetStatus.COMPLETED, BetStatus.CANCELLED)

    def pool_for(self, side: Side) -> Decimal:
        return self.contestant1_pool if side is Side.CONTESTANT1 else self.contestant2_pool

    def contestant_for(self, side: Side) -> Contestant:
        return self.contestant1 if side is Side.CONTESTANT1 else self.contestant2
