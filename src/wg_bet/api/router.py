"""wg_bet REST endpoints.

POST /bets                          — create a pooled or order-book bet
GET  /bets                          — list (status / tournament filters)
GET  /bets/mine/created             — bets the caller created
GET  /bets/mine/participated        — bets the caller staked, offered or accepted on
GET  /bets/{bet_id}                 — detail
GET  /bets/{bet_id}/odds            — live pool odds
POST /bets/{bet_id}/start           — creator or admin
POST /bets/{bet_id}/cancel          — creator (unjoined) or admin
POST /bets/{bet_id}/stakes          — pooled stake
POST /bets/{bet_id}/dispute         — participant or admin
POST /bets/{bet_id}/claim           — collect winnings
GET  /bets/{bet_id}/positions/me    — caller's exposure and winnings
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_bet.application.schemas import (
    BetListResponse,
    BetResponse,
    ClaimResponse,
    CreateBetRequest,
    DisputeRequest,
    OddsResponse,
    ParticipationResponse,
    PlaceStakeRequest,
    PositionResponse,
    ReasonRequest,
)
from src.wg_common.database import get_db_session
from src.wg_common.enums import BetStatus
from src.wg_common.errors import ValidationError
from src.wg_common.identity import Caller
from src.wg_common.money import money_to_display
from src.wg_common.response import ApiResponse, success_response
from src.wg_engine.application.service import get_wagering_engine
from src.wg_engine.engine.engine import WageringEngine
from src.wg_gateway.auth.dependencies import get_caller

router = APIRouter(prefix="/bets", tags=["bets"])


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def _parse_statuses(raw: str | None) -> list[BetStatus] | None:
    if not raw:
        return None
    try:
        return [BetStatus(s.strip()) for s in raw.split(",") if s.strip()]
    except ValueError:
        raise ValidationError(f"Unknown bet status in {raw!r}") from None


@router.post("", status_code=201)
async def create_bet(
    body: CreateBetRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    bet = await engine.create_bet(
        db,
        caller,
        body.market_type,
        body.contest(),
        body.contestant1.to_domain(),
        body.contestant2.to_domain(),
        body.minimum_bet,
        body.maximum_bet,
    )
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.get("")
async def list_bets(
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
    status: str | None = Query(None, description="Comma-separated statuses, e.g. open,in_progress"),
    tournament_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    bets = await engine.list_bets(db, _parse_statuses(status), tournament_id, limit)
    data = BetListResponse(items=[BetResponse.from_bet(b) for b in bets])
    return _respond(request, data.model_dump(mode="json"))


@router.get("/mine/created")
async def list_created_bets(
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
    status: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    bets = await engine.list_bets(
        db, _parse_statuses(status), limit=limit, creator_id=caller.user_id
    )
    data = BetListResponse(items=[BetResponse.from_bet(b) for b in bets])
    return _respond(request, data.model_dump(mode="json"))


@router.get("/mine/participated")
async def list_participated_bets(
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
    status: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    bets = await engine.list_bets(
        db, _parse_statuses(status), limit=limit, participant_id=caller.user_id
    )
    data = BetListResponse(items=[BetResponse.from_bet(b) for b in bets])
    return _respond(request, data.model_dump(mode="json"))


@router.get("/{bet_id}")
async def get_bet(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    bet = await engine.get_bet(db, bet_id)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.get("/{bet_id}/odds")
async def get_odds(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    bet, odds = await engine.get_odds(db, bet_id)
    return _respond(request, OddsResponse.from_odds(bet, odds).model_dump(mode="json"))


@router.post("/{bet_id}/start")
async def start_bet(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    bet = await engine.start_bet(db, caller, bet_id)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.post("/{bet_id}/cancel")
async def cancel_bet(
    bet_id: str,
    body: ReasonRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    bet = await engine.cancel_bet(db, caller, bet_id, body.reason)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.post("/{bet_id}/stakes", status_code=201)
async def place_stake(
    bet_id: str,
    body: PlaceStakeRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    participation = await engine.place_stake(db, caller, bet_id, body.prediction, body.amount)
    data = ParticipationResponse.from_participation(participation)
    return _respond(request, data.model_dump(mode="json"))


@router.post("/{bet_id}/dispute")
async def raise_dispute(
    bet_id: str,
    body: DisputeRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    bet = await engine.raise_dispute(db, caller, bet_id, body.reason)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.post("/{bet_id}/claim")
async def claim(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    amount = await engine.claim(db, caller, bet_id)
    data = ClaimResponse(
        bet_id=bet_id, user_id=caller.user_id, amount=amount,
        amount_display=money_to_display(amount),
    )
    return _respond(request, data.model_dump(mode="json"))


@router.get("/{bet_id}/positions/me")
async def get_my_position(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    position = await engine.get_position(db, bet_id, caller.user_id)
    return _respond(request, PositionResponse.from_position(bet_id, position).model_dump(mode="json"))
