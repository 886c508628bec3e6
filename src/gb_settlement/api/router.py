"""gb_settlement REST endpoints.

GET  /payments                           — caller's obligations (outgoing | incoming)
POST /payments/{obligation_id}/complete  — payer or payee confirms payment
POST /payments/reconcile/{bet_id}        — re-create missing obligations
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_common.database import get_db_session
from src.gb_common.response import ApiResponse, success_response
from src.gb_gateway.auth.dependencies import get_current_user_id
from src.gb_settlement.application.schemas import ObligationDirection
from src.gb_settlement.application.service import SettlementService

router = APIRouter(prefix="/payments", tags=["payments"])

_service = SettlementService()


def get_settlement_service() -> SettlementService:
    return _service


@router.get("")
async def list_obligations(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
    direction: ObligationDirection = Query("outgoing"),
    status: str | None = Query(None, description="pending | completed | cancelled"),
) -> ApiResponse:
    result = await service.list_obligations(db, user_id, direction, status)
    return success_response(result.model_dump(), request)


@router.post("/{obligation_id}/complete")
async def mark_payment_completed(
    obligation_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    result = await service.mark_payment_completed(db, obligation_id, user_id)
    return success_response(result.model_dump(), request)


@router.post("/reconcile/{bet_id}")
async def reconcile(
    bet_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[SettlementService, Depends(get_settlement_service)],
) -> ApiResponse:
    result = await service.reconcile(db, bet_id, user_id)
    return success_response(result.model_dump(), request)
