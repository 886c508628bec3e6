"""Pydantic schemas for gb_settlement API responses."""

from typing import Literal

from pydantic import BaseModel

from src.gb_common.cents import cents_to_display
from src.gb_common.datetime_utils import iso_or_none
from src.gb_settlement.domain.models import PaymentObligation

ObligationDirection = Literal["outgoing", "incoming"]


class PaymentObligationOut(BaseModel):
    id: str
    bet_id: str
    from_user_id: str
    to_user_id: str
    amount_cents: int
    amount_display: str
    description: str
    status: str
    created_at: str
    completed_at: str | None

    @classmethod
    def from_domain(cls, ob: PaymentObligation) -> "PaymentObligationOut":
        return cls(
            id=ob.id,
            bet_id=ob.bet_id,
            from_user_id=ob.from_user_id,
            to_user_id=ob.to_user_id,
            amount_cents=ob.amount_cents,
            amount_display=cents_to_display(ob.amount_cents),
            description=ob.description,
            status=ob.status,
            created_at=ob.created_at.isoformat(),
            completed_at=iso_or_none(ob.completed_at),
        )


class ObligationListResponse(BaseModel):
    direction: ObligationDirection
    items: list[PaymentObligationOut]
    total_pending_cents: int
    total_pending_display: str


class MarkCompletedResponse(BaseModel):
    obligation: PaymentObligationOut
    bet_status: str


class ReconcileResponse(BaseModel):
    bet_id: str
    created: list[PaymentObligationOut]
