"""Domain models for gb_bet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class BetParticipant:
    user_id: str
    display_name: str
    side: str
    joined_at: datetime | None = None
    has_agreed: bool = False          # everyone_agrees only
    agreed_side: str | None = None    # winner proposed with the agreement
    has_paid: bool = False            # set by settlement, never by the engine
    paid_at: datetime | None = None


@dataclass
class Evidence:
    id: str
    submitted_by: str
    type: str                         # EvidenceType value
    content: str
    submitted_at: datetime
    description: str | None = None


@dataclass
class Bet:
    id: str
    title: str
    description: str
    amount_cents: int
    facilitation_fee_cents: int       # fixed at creation, never recomputed
    sides: list[str]
    created_by: str
    status: str                       # BetStatus value
    resolution_type: str              # ResolutionType value
    created_at: datetime
    updated_at: datetime
    neutral_party_id: str | None = None
    participants: list[BetParticipant] = field(default_factory=list)
    evidence: list[Evidence] = field(default_factory=list)
    winner: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None
    resolution_deadline: datetime | None = None
    currency: str = "USD"
    version: int = 0

    @property
    def participant_ids(self) -> list[str]:
        return [p.user_id for p in self.participants]
