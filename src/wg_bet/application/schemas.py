# src/wg_bet/application/schemas.py
"""Request/response schemas for the bet API.

Money travels as decimal strings ("0.4"); JSON numbers are accepted and read
through their shortest decimal repr, never as binary floats.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from src.wg_bet.domain.models import Bet, ContestRef, Contestant
from src.wg_common.enums import BetStatus, MarketType, Side, Winner
from src.wg_common.money import money_to_display, to_money
from src.wg_pool.domain.models import Participation
from src.wg_settlement.domain.positions import UserPosition


def _parse_money(value: Any) -> Decimal:
    if isinstance(value, float):
        value = repr(value)
    return to_money(value)


def _parse_decimal(value: Any) -> Decimal:
    if isinstance(value, float):
        value = repr(value)
    try:
        parsed = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid decimal value: {value!r}") from exc
    if not parsed.is_finite():
        raise ValueError(f"Invalid decimal value: {value!r}")
    return parsed


Money = Annotated[Decimal, BeforeValidator(_parse_money)]
DecimalValue = Annotated[Decimal, BeforeValidator(_parse_decimal)]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ContestantIn(BaseModel):
    id: str | None = None
    name: str = Field(min_length=1, max_length=200)

    def to_domain(self) -> Contestant:
        return Contestant(id=self.id, name=self.name.strip())


class CreateBetRequest(BaseModel):
    market_type: MarketType = MarketType.POOL
    tournament_id: str = Field(min_length=1)
    tournament_name: str = ""
    event_id: str = Field(min_length=1)
    event_name: str = ""
    phase_id: str = Field(min_length=1)
    phase_name: str = ""
    match_id: str = Field(min_length=1)
    match_name: str = ""
    contestant1: ContestantIn
    contestant2: ContestantIn
    minimum_bet: Money
    maximum_bet: Money

    def contest(self) -> ContestRef:
        return ContestRef(
            tournament_id=self.tournament_id,
            tournament_name=self.tournament_name,
            event_id=self.event_id,
            event_name=self.event_name,
            phase_id=self.phase_id,
            phase_name=self.phase_name,
            match_id=self.match_id,
            match_name=self.match_name,
        )


class PlaceStakeRequest(BaseModel):
    prediction: Side
    amount: Money


class ReasonRequest(BaseModel):
    reason: str = Field("", max_length=1000)


class DisputeRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ContestantOut(BaseModel):
    id: str | None
    name: str


class BetResponse(BaseModel):
    id: str
    market_type: MarketType
    status: BetStatus
    winner: Winner | None
    tournament_id: str
    tournament_name: str
    event_id: str
    event_name: str
    phase_id: str
    phase_name: str
    match_id: str
    match_name: str
    contestant1: ContestantOut
    contestant2: ContestantOut
    creator_id: str
    minimum_bet: Decimal
    maximum_bet: Decimal
    contestant1_pool: Decimal
    contestant2_pool: Decimal
    total_pool: Decimal
    total_pool_display: str
    platform_fee: Decimal
    disputed: bool
    dispute_reason: str | None
    created_at: datetime | None
    started_at: datetime | None
    resolved_at: datetime | None
    cancelled_at: datetime | None
    cancelled_by: str | None

    @classmethod
    def from_bet(cls, bet: Bet) -> "BetResponse":
        c = bet.contest
        return cls(
            id=bet.id,
            market_type=bet.market_type,
            status=bet.status,
            winner=bet.winner,
            tournament_id=c.tournament_id,
            tournament_name=c.tournament_name,
            event_id=c.event_id,
            event_name=c.event_name,
            phase_id=c.phase_id,
            phase_name=c.phase_name,
            match_id=c.match_id,
            match_name=c.match_name,
            contestant1=ContestantOut(id=bet.contestant1.id, name=bet.contestant1.name),
            contestant2=ContestantOut(id=bet.contestant2.id, name=bet.contestant2.name),
            creator_id=bet.creator_id,
            minimum_bet=bet.minimum_bet,
            maximum_bet=bet.maximum_bet,
            contestant1_pool=bet.contestant1_pool,
            contestant2_pool=bet.contestant2_pool,
            total_pool=bet.total_pool,
            total_pool_display=money_to_display(bet.total_pool),
            platform_fee=bet.platform_fee,
            disputed=bet.disputed,
            dispute_reason=bet.dispute_reason,
            created_at=bet.created_at,
            started_at=bet.started_at,
            resolved_at=bet.resolved_at,
            cancelled_at=bet.cancelled_at,
            cancelled_by=bet.cancelled_by,
        )


class BetListResponse(BaseModel):
    items: list[BetResponse]


class OddsResponse(BaseModel):
    bet_id: str
    total_pool: Decimal
    contestant1_pool: Decimal
    contestant2_pool: Decimal
    contestant1_odds: Decimal | None
    contestant2_odds: Decimal | None

    @classmethod
    def from_odds(cls, bet: Bet, odds: dict[Side, Decimal | None]) -> "OddsResponse":
        return cls(
            bet_id=bet.id,
            total_pool=bet.total_pool,
            contestant1_pool=bet.contestant1_pool,
            contestant2_pool=bet.contestant2_pool,
            contestant1_odds=odds[Side.CONTESTANT1],
            contestant2_odds=odds[Side.CONTESTANT2],
        )


class ParticipationResponse(BaseModel):
    id: str
    bet_id: str
    user_id: str
    prediction: Side
    amount: Decimal
    payout: Decimal | None
    claimed: bool
    created_at: datetime | None

    @classmethod
    def from_participation(cls, p: Participation) -> "ParticipationResponse":
        return cls(
            id=p.id,
            bet_id=p.bet_id,
            user_id=p.user_id,
            prediction=p.prediction,
            amount=p.amount,
            payout=p.payout,
            claimed=p.claimed,
            created_at=p.created_at,
        )


class ClaimResponse(BaseModel):
    bet_id: str
    user_id: str
    amount: Decimal
    amount_display: str


class PositionResponse(BaseModel):
    bet_id: str
    user_id: str
    participations: list[ParticipationResponse]
    offer_ids: list[str]
    acceptance_ids: list[str]
    potential_winnings: dict[Side, Decimal]
    claimable: Decimal
    claimed: Decimal

    @classmethod
    def from_position(cls, bet_id: str, pos: UserPosition) -> "PositionResponse":
        return cls(
            bet_id=bet_id,
            user_id=pos.user_id,
            participations=[ParticipationResponse.from_participation(p) for p in pos.participations],
            offer_ids=[o.id for o in pos.offers],
            acceptance_ids=[a.id for a in pos.acceptances],
            potential_winnings=pos.potential_winnings,
            claimable=pos.claimable,
            claimed=pos.claimed,
        )
