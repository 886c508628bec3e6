"""Domain models for gb_settlement: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PaymentObligation:
    """One loser → designated-winner debt produced by settlement fan-out.

    Persisted as a row of `payment_requests`; unique per (bet_id, from_user_id).
    """

    id: str
    bet_id: str
    from_user_id: str
    to_user_id: str
    amount_cents: int
    description: str
    status: str                       # PaymentStatus value
    created_at: datetime
    completed_at: datetime | None = None
