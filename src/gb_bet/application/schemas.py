"""Pydantic schemas and cursor utilities for gb_bet API.

Cursor format for bet lists (VARCHAR PK, not sequential):
  {"ts": "<created_at ISO>", "id": "<bet_id>"}
  Encoded as Base64 JSON string.
"""

import base64
import json
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.gb_bet.domain.fee import calc_facilitation_fee
from src.gb_bet.domain.ledger import agreement_progress
from src.gb_bet.domain.models import Bet, BetParticipant, Evidence
from src.gb_bet.domain.state_machine import MAX_SIDE_LENGTH
from src.gb_common.cents import cents_to_display
from src.gb_common.datetime_utils import iso_or_none
from src.gb_common.id_generator import MAX_ID_LENGTH

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_bet: Bet) -> str:
    """Encode composite cursor from last bet in page."""
    payload = {
        "ts": last_bet.created_at.isoformat(),
        "id": last_bet.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, bet_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return data["ts"], data["id"]
    except Exception:
        return None, None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

SideLabel = Annotated[str, Field(min_length=1, max_length=MAX_SIDE_LENGTH)]
UserId = Annotated[str, Field(min_length=1, max_length=MAX_ID_LENGTH)]


class CreateBetRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)
    amount_cents: int = Field(..., gt=0, description="Stake per participant in cents")
    sides: list[SideLabel] = Field(..., min_length=2, max_length=5)
    resolution_type: Literal["neutral_party", "everyone_agrees"]
    neutral_party_id: UserId | None = None
    display_name: str = Field(..., min_length=1, max_length=100)
    invited_user_ids: list[UserId] = Field(default_factory=list)
    resolution_deadline: datetime | None = None

    @field_validator("sides")
    @classmethod
    def sides_not_blank(cls, v: list[str]) -> list[str]:
        cleaned = [s.strip() for s in v]
        if any(not s for s in cleaned):
            raise ValueError("sides must not be blank")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("sides must be distinct")
        return cleaned

    @model_validator(mode="after")
    def neutral_party_matches_type(self) -> "CreateBetRequest":
        if self.resolution_type == "neutral_party" and not self.neutral_party_id:
            raise ValueError("neutral_party_id is required for neutral_party bets")
        if self.resolution_type == "everyone_agrees" and self.neutral_party_id:
            raise ValueError("neutral_party_id is only allowed for neutral_party bets")
        return self


class JoinBetRequest(BaseModel):
    side: SideLabel
    display_name: str = Field(..., min_length=1, max_length=100)


class ResolveBetRequest(BaseModel):
    winning_side: SideLabel


class AgreeRequest(BaseModel):
    winning_side: SideLabel | None = Field(
        None, description="Required on the agreement that completes consensus"
    )


class SubmitEvidenceRequest(BaseModel):
    type: Literal["photo", "video", "text", "link"]
    content: str = Field(..., min_length=1, max_length=4000)
    description: str | None = Field(None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ParticipantOut(BaseModel):
    user_id: str
    display_name: str
    side: str
    joined_at: str | None
    has_agreed: bool
    agreed_side: str | None
    has_paid: bool
    paid_at: str | None

    @classmethod
    def from_domain(cls, p: BetParticipant) -> "ParticipantOut":
        return cls(
            user_id=p.user_id,
            display_name=p.display_name,
            side=p.side,
            joined_at=iso_or_none(p.joined_at),
            has_agreed=p.has_agreed,
            agreed_side=p.agreed_side,
            has_paid=p.has_paid,
            paid_at=iso_or_none(p.paid_at),
        )


class EvidenceOut(BaseModel):
    id: str
    submitted_by: str
    type: str
    content: str
    description: str | None
    submitted_at: str

    @classmethod
    def from_domain(cls, e: Evidence) -> "EvidenceOut":
        return cls(
            id=e.id,
            submitted_by=e.submitted_by,
            type=e.type,
            content=e.content,
            description=e.description,
            submitted_at=e.submitted_at.isoformat(),
        )


class BetListItem(BaseModel):
    id: str
    title: str
    status: str
    resolution_type: str
    amount_cents: int
    amount_display: str
    participant_count: int
    winner: str | None
    created_at: str

    @classmethod
    def from_domain(cls, b: Bet) -> "BetListItem":
        return cls(
            id=b.id,
            title=b.title,
            status=b.status,
            resolution_type=b.resolution_type,
            amount_cents=b.amount_cents,
            amount_display=cents_to_display(b.amount_cents),
            participant_count=len(b.participants),
            winner=b.winner,
            created_at=b.created_at.isoformat(),
        )


class BetListResponse(BaseModel):
    items: list[BetListItem]
    next_cursor: str | None
    has_more: bool


class BetDetail(BaseModel):
    id: str
    title: str
    description: str
    status: str
    resolution_type: str
    amount_cents: int
    amount_display: str
    currency: str
    facilitation_fee_cents: int
    facilitation_fee_display: str
    sides: list[str]
    created_by: str
    neutral_party_id: str | None
    participants: list[ParticipantOut]
    agreed_count: int
    evidence: list[EvidenceOut]
    winner: str | None
    resolved_at: str | None
    resolved_by: str | None
    resolution_deadline: str | None
    version: int
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, b: Bet) -> "BetDetail":
        agreed, _ = agreement_progress(b)
        return cls(
            id=b.id,
            title=b.title,
            description=b.description,
            status=b.status,
            resolution_type=b.resolution_type,
            amount_cents=b.amount_cents,
            amount_display=cents_to_display(b.amount_cents),
            currency=b.currency,
            facilitation_fee_cents=b.facilitation_fee_cents,
            facilitation_fee_display=cents_to_display(b.facilitation_fee_cents),
            sides=list(b.sides),
            created_by=b.created_by,
            neutral_party_id=b.neutral_party_id,
            participants=[ParticipantOut.from_domain(p) for p in b.participants],
            agreed_count=agreed,
            evidence=[EvidenceOut.from_domain(e) for e in b.evidence],
            winner=b.winner,
            resolved_at=iso_or_none(b.resolved_at),
            resolved_by=b.resolved_by,
            resolution_deadline=iso_or_none(b.resolution_deadline),
            version=b.version,
            created_at=b.created_at.isoformat(),
            updated_at=b.updated_at.isoformat(),
        )


class CreateBetResponse(BaseModel):
    bet_id: str
    status: str
    facilitation_fee_cents: int
    facilitation_fee_display: str


class AgreeResponse(BaseModel):
    bet: BetDetail
    resolved: bool


class FeeQuoteResponse(BaseModel):
    amount_cents: int
    facilitation_fee_cents: int
    facilitation_fee_display: str

    @classmethod
    def for_amount(cls, amount_cents: int) -> "FeeQuoteResponse":
        fee = calc_facilitation_fee(amount_cents)
        return cls(
            amount_cents=amount_cents,
            facilitation_fee_cents=fee,
            facilitation_fee_display=cents_to_display(fee),
        )
