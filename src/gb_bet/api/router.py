"""gb_bet REST endpoints.

POST /bets                              — create a bet (creator joins on sides[0])
GET  /bets                              — bets the caller is in, cursor pagination
GET  /bets/fee-quote                    — facilitation fee for a stake
GET  /bets/{bet_id}                     — full detail
POST /bets/{bet_id}/join                — join on a side
POST /bets/{bet_id}/resolve             — neutral-party resolution
POST /bets/{bet_id}/agree               — everyone-agrees resolution
POST /bets/{bet_id}/evidence            — attach evidence
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_bet.application.schemas import (
    AgreeRequest,
    CreateBetRequest,
    JoinBetRequest,
    ResolveBetRequest,
    SubmitEvidenceRequest,
)
from src.gb_bet.application.service import BetApplicationService
from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, success_response
from src.gb_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/bets", tags=["bets"])

_service = BetApplicationService()


def get_bet_service() -> BetApplicationService:
    return _service


@router.post("", status_code=201)
async def create_bet(
    body: CreateBetRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
) -> ApiResponse:
    result = await service.create_bet(db, user_id, body)
    return success_response(result.model_dump(), request)


@router.get("")
async def list_bets(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
    status: str | None = Query(None, description="Filter by a single status"),
    active_only: bool = Query(False, description="Only pending/active/awaiting_resolution"),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await service.list_bets(db, user_id, status, active_only, cursor, limit)
    return success_response(result.model_dump(), request)


# Declared before /{bet_id} so "fee-quote" is not captured as an id.
@router.get("/fee-quote")
async def fee_quote(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    amount_cents: int = Query(..., gt=0),
) -> ApiResponse:
    result = BetApplicationService.quote_fee(amount_cents)
    return success_response(result.model_dump(), request)


@router.get("/{bet_id}")
async def get_bet(
    bet_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
) -> ApiResponse:
    result = await service.get_bet(db, bet_id)
    return success_response(result.model_dump(), request)


@router.post("/{bet_id}/join")
async def join_bet(
    bet_id: str,
    body: JoinBetRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
) -> ApiResponse:
    result = await service.join_bet(db, bet_id, user_id, body)
    return success_response(result.model_dump(), request)


@router.post("/{bet_id}/resolve")
async def resolve_bet(
    bet_id: str,
    body: ResolveBetRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
) -> ApiResponse:
    result = await service.resolve_bet(db, bet_id, user_id, body)
    return success_response(result.model_dump(), request)


@router.post("/{bet_id}/agree")
async def agree_to_resolution(
    bet_id: str,
    body: AgreeRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
) -> ApiResponse:
    result = await service.agree_to_resolution(db, bet_id, user_id, body)
    return success_response(result.model_dump(), request)


@router.post("/{bet_id}/evidence", status_code=201)
async def submit_evidence(
    bet_id: str,
    body: SubmitEvidenceRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[BetApplicationService, Depends(get_bet_service)],
) -> ApiResponse:
    result = await service.submit_evidence(db, bet_id, user_id, body)
    return success_response(result.model_dump(), request)
