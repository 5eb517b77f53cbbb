"""Order-book endpoints, nested under a bet.

GET  /bets/{bet_id}/offers                      — active offers, best odds first
POST /bets/{bet_id}/offers                      — post an offer (escrows the stake)
POST /bets/{bet_id}/offers/{offer_id}/accept    — take all or part of an offer
POST /bets/{bet_id}/offers/{offer_id}/cancel    — creator withdraws the remainder
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_common.database import get_db_session
from src.wg_common.enums import Side
from src.wg_common.identity import Caller
from src.wg_common.response import ApiResponse, success_response
from src.wg_engine.application.service import get_wagering_engine
from src.wg_engine.engine.engine import WageringEngine
from src.wg_gateway.auth.dependencies import get_caller
from src.wg_orderbook.application.schemas import (
    AcceptanceResponse,
    AcceptOfferRequest,
    CreateOfferRequest,
    OfferListResponse,
    OfferResponse,
)

router = APIRouter(prefix="/bets/{bet_id}/offers", tags=["offers"])


@router.get("")
async def list_offers(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
    side: Side | None = Query(None, description="Only offers backing this contestant"),
) -> ApiResponse:
    offers = await engine.list_active_offers(db, bet_id, side)
    data = OfferListResponse(items=[OfferResponse.from_offer(o) for o in offers])
    resp = success_response(data.model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=201)
async def create_offer(
    bet_id: str,
    body: CreateOfferRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    offer = await engine.create_offer(
        db, caller, bet_id, body.prediction, body.stake_amount, body.requested_odds
    )
    resp = success_response(OfferResponse.from_offer(offer).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{offer_id}/accept", status_code=201)
async def accept_offer(
    bet_id: str,
    offer_id: str,
    body: AcceptOfferRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    acceptance = await engine.accept_offer(db, caller, bet_id, offer_id, body.amount)
    resp = success_response(AcceptanceResponse.from_acceptance(acceptance).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{offer_id}/cancel")
async def cancel_offer(
    bet_id: str,
    offer_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    engine: Annotated[WageringEngine, Depends(get_wagering_engine)],
) -> ApiResponse:
    offer = await engine.cancel_offer(db, caller, bet_id, offer_id)
    resp = success_response(OfferResponse.from_offer(offer).model_dump(mode="json"))
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
