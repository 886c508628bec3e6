"""Participant ledger: who is in a bet, on which side, and their flags.

Insertion order is join order; the creator is always participants[0].
"""

from datetime import datetime

from src.gb_bet.domain.models import Bet, BetParticipant
from src.gb_common.errors import (
    DuplicateParticipantError,
    ParticipantNotFoundError,
    UnknownSideError,
)


def find_participant(bet: Bet, user_id: str) -> BetParticipant | None:
    for p in bet.participants:
        if p.user_id == user_id:
            return p
    return None


def require_participant(bet: Bet, user_id: str) -> BetParticipant:
    participant = find_participant(bet, user_id)
    if participant is None:
        raise ParticipantNotFoundError(bet.id, user_id)
    return participant


def require_side(bet: Bet, side: str) -> None:
    if side not in bet.sides:
        raise UnknownSideError(side)


def add_participant(
    bet: Bet, user_id: str, display_name: str, side: str, joined_at: datetime
) -> BetParticipant:
    """Append a participant. Raises before mutating on duplicate user or unknown side."""
    if find_participant(bet, user_id) is not None:
        raise DuplicateParticipantError(bet.id, user_id)
    require_side(bet, side)
    participant = BetParticipant(
        user_id=user_id,
        display_name=display_name,
        side=side,
        joined_at=joined_at,
    )
    bet.participants.append(participant)
    return participant


def distinct_sides(bet: Bet) -> set[str]:
    return {p.side for p in bet.participants}


def mark_agreed(participant: BetParticipant, proposed_side: str | None) -> None:
    participant.has_agreed = True
    if proposed_side is not None:
        participant.agreed_side = proposed_side


def all_agreed(bet: Bet) -> bool:
    return bool(bet.participants) and all(p.has_agreed for p in bet.participants)


def agreement_progress(bet: Bet) -> tuple[int, int]:
    """(agreed, total), for progress display only."""
    agreed = sum(1 for p in bet.participants if p.has_agreed)
    return agreed, len(bet.participants)


def winners_of(bet: Bet, winning_side: str) -> list[BetParticipant]:
    return [p for p in bet.participants if p.side == winning_side]


def losers_of(bet: Bet, winning_side: str) -> list[BetParticipant]:
    return [p for p in bet.participants if p.side != winning_side]


def mark_paid(participant: BetParticipant, paid_at: datetime) -> None:
    participant.has_paid = True
    participant.paid_at = paid_at
