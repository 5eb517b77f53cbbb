# src/wg_admin/api/router.py
"""Admin REST API — every route requires the administrative capability."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.wg_admin.application.schemas import (
    AuditRecordItem,
    AuditTrailResponse,
    DeclareWinnerRequest,
    ForceStatusRequest,
    ResolveDisputeRequest,
)
from src.wg_admin.application.service import AdminService, get_admin_service
from src.wg_bet.application.schemas import BetResponse
from src.wg_common.database import get_db_session
from src.wg_common.enums import BetStatus
from src.wg_common.identity import Caller
from src.wg_common.response import ApiResponse, success_response
from src.wg_gateway.auth.dependencies import get_caller

router = APIRouter(prefix="/admin", tags=["admin"])


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/bets/{bet_id}/declare")
async def declare_winner(
    bet_id: str,
    body: DeclareWinnerRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    bet = await service.declare_winner(db, caller, bet_id, body.winner, body.reason)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.post("/bets/{bet_id}/force-status")
async def force_status(
    bet_id: str,
    body: ForceStatusRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    bet = await service.force_status(db, caller, bet_id, BetStatus(body.status), body.reason)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.post("/bets/{bet_id}/override-winner")
async def override_winner(
    bet_id: str,
    body: DeclareWinnerRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    bet = await service.override_winner(db, caller, bet_id, body.winner, body.reason)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.post("/bets/{bet_id}/resolve-dispute")
async def resolve_dispute(
    bet_id: str,
    body: ResolveDisputeRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    bet = await service.resolve_dispute(db, caller, bet_id, body.winner, body.reason)
    return _respond(request, BetResponse.from_bet(bet).model_dump(mode="json"))


@router.get("/bets/{bet_id}/audit")
async def get_audit_trail(
    bet_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    records = await service.list_audit_records(db, caller, bet_id)
    data = AuditTrailResponse(
        bet_id=bet_id, items=[AuditRecordItem.from_record(r) for r in records]
    )
    return _respond(request, data.model_dump(mode="json"))


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    caller: Annotated[Caller, Depends(get_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    limit: int = Query(1000, ge=1, le=10000),
) -> ApiResponse:
    result = await service.verify_all_invariants(db, caller, limit)
    return _respond(request, result)
