"""Bet state machine: the only place a bet's status changes.

    pending ──► active ──► awaiting_resolution ──► resolved ──► completed
       └───────────────────────▲

`cancelled` and `disputed` are reserved: they exist in the status enum and the
schema, but no command enters them and every command rejects a bet in them.

Each command validates fully before mutating the loaded Bet, then returns the
notification events to dispatch once the caller's write has committed.
"""

from datetime import datetime

from src.gb_bet.domain import ledger
from src.gb_bet.domain.events import BetEvent, bet_event
from src.gb_bet.domain.fee import calc_facilitation_fee
from src.gb_bet.domain.models import Bet, BetParticipant, Evidence
from src.gb_bet.domain.resolution import ResolutionDecision, protocol_for
from src.gb_common.cents import validate_amount
from src.gb_common.enums import BetStatus, EvidenceType, NotificationEventType, ResolutionType
from src.gb_common.errors import BetValidationError, IllegalTransitionError

MIN_SIDES = 2
MAX_SIDES = 5
MAX_SIDE_LENGTH = 200  # bets.winner VARCHAR(200)

ALLOWED_TRANSITIONS: dict[BetStatus, frozenset[BetStatus]] = {
    BetStatus.PENDING: frozenset({BetStatus.ACTIVE, BetStatus.AWAITING_RESOLUTION}),
    BetStatus.ACTIVE: frozenset({BetStatus.ACTIVE, BetStatus.AWAITING_RESOLUTION}),
    BetStatus.AWAITING_RESOLUTION: frozenset({BetStatus.RESOLVED}),
    BetStatus.RESOLVED: frozenset({BetStatus.COMPLETED}),
    BetStatus.COMPLETED: frozenset(),
    BetStatus.CANCELLED: frozenset(),
    BetStatus.DISPUTED: frozenset(),
}

JOINABLE_STATUSES = frozenset({BetStatus.PENDING, BetStatus.ACTIVE})
EVIDENCE_STATUSES = frozenset(
    {BetStatus.PENDING, BetStatus.ACTIVE, BetStatus.AWAITING_RESOLUTION}
)


def _transition(bet: Bet, target: BetStatus, operation: str, now: datetime) -> None:
    current = BetStatus(bet.status)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransitionError(operation, current.value)
    bet.status = target.value
    bet.updated_at = now


def _require_status(bet: Bet, allowed: frozenset[BetStatus], operation: str) -> None:
    if BetStatus(bet.status) not in allowed:
        raise IllegalTransitionError(
            operation,
            bet.status,
            required_status=" | ".join(sorted(s.value for s in allowed)),
        )


def _normalize_sides(sides: list[str]) -> list[str]:
    cleaned = [s.strip() for s in sides if s and s.strip()]
    too_long = [s for s in cleaned if len(s) > MAX_SIDE_LENGTH]
    if too_long:
        raise BetValidationError(f"Bet sides are limited to {MAX_SIDE_LENGTH} characters")
    if len(cleaned) < MIN_SIDES:
        raise BetValidationError(f"A bet needs at least {MIN_SIDES} sides")
    if len(cleaned) > MAX_SIDES:
        raise BetValidationError(f"A bet allows at most {MAX_SIDES} sides")
    if len(set(cleaned)) != len(cleaned):
        raise BetValidationError("Bet sides must be distinct")
    return cleaned


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def create_bet(
    *,
    bet_id: str,
    title: str,
    description: str,
    amount_cents: int,
    sides: list[str],
    resolution_type: str,
    creator_id: str,
    creator_display_name: str,
    now: datetime,
    neutral_party_id: str | None = None,
    invited_user_ids: list[str] | None = None,
    resolution_deadline: datetime | None = None,
) -> tuple[Bet, list[BetEvent]]:
    """Build a pending bet with the creator as participant #0 on the first side."""
    if not title or not title.strip():
        raise BetValidationError("Title is required")
    try:
        validate_amount(amount_cents)
    except ValueError as exc:
        raise BetValidationError(str(exc)) from None
    clean_sides = _normalize_sides(sides)
    protocol = protocol_for(resolution_type)

    if protocol.resolution_type is ResolutionType.NEUTRAL_PARTY:
        if not neutral_party_id:
            raise BetValidationError("neutral_party_id is required for neutral_party bets")
        if neutral_party_id == creator_id:
            raise BetValidationError("The creator cannot be the neutral party")
    elif neutral_party_id:
        raise BetValidationError("neutral_party_id is only allowed for neutral_party bets")

    bet = Bet(
        id=bet_id,
        title=title.strip(),
        description=description,
        amount_cents=amount_cents,
        facilitation_fee_cents=calc_facilitation_fee(amount_cents),
        sides=clean_sides,
        created_by=creator_id,
        status=BetStatus.PENDING.value,
        resolution_type=protocol.resolution_type.value,
        neutral_party_id=neutral_party_id,
        participants=[
            BetParticipant(
                user_id=creator_id,
                display_name=creator_display_name,
                side=clean_sides[0],
                joined_at=now,
            )
        ],
        resolution_deadline=resolution_deadline,
        created_at=now,
        updated_at=now,
    )

    events: list[BetEvent] = []
    if neutral_party_id:
        events.append(
            bet_event(
                NotificationEventType.NEUTRAL_PARTY_ASSIGNED,
                [neutral_party_id],
                bet.id,
                bet.title,
            )
        )
    invitees = [
        uid for uid in dict.fromkeys(invited_user_ids or [])
        if uid not in (creator_id, neutral_party_id)
    ]
    if invitees:
        events.append(
            bet_event(
                NotificationEventType.BET_CREATED,
                invitees,
                bet.id,
                bet.title,
                creator_name=creator_display_name,
            )
        )
    return bet, events


def join_bet(
    bet: Bet, user_id: str, display_name: str, side: str, now: datetime
) -> list[BetEvent]:
    _require_status(bet, JOINABLE_STATUSES, "join")
    if user_id == bet.neutral_party_id:
        raise BetValidationError("The neutral party cannot join the bet as a participant")

    others = [uid for uid in bet.participant_ids if uid != user_id]
    ledger.add_participant(bet, user_id, display_name, side, now)

    if len(ledger.distinct_sides(bet)) >= 2:
        target = BetStatus.AWAITING_RESOLUTION
    else:
        target = BetStatus.ACTIVE
    _transition(bet, target, "join", now)

    events: list[BetEvent] = []
    if others:
        events.append(
            bet_event(
                NotificationEventType.BET_JOINED,
                others,
                bet.id,
                bet.title,
                joiner_name=display_name,
                side=side,
            )
        )
    if (
        target is BetStatus.AWAITING_RESOLUTION
        and bet.resolution_type == ResolutionType.NEUTRAL_PARTY.value
        and bet.neutral_party_id
    ):
        events.append(
            bet_event(
                NotificationEventType.BET_READY_FOR_RESOLUTION,
                [bet.neutral_party_id],
                bet.id,
                bet.title,
            )
        )
    return events


def _apply_resolution(bet: Bet, decision: ResolutionDecision, now: datetime) -> None:
    _transition(bet, BetStatus.RESOLVED, "resolve", now)
    bet.winner = decision.winning_side
    bet.resolved_at = now
    bet.resolved_by = decision.resolved_by


def resolve_bet(bet: Bet, winning_side: str, actor_id: str, now: datetime) -> None:
    """Neutral-party resolution. Role is checked before status."""
    protocol = protocol_for(bet.resolution_type)
    protocol.check_command(bet, "resolve")
    protocol.authorize(bet, actor_id)
    _require_status(bet, frozenset({BetStatus.AWAITING_RESOLUTION}), "resolve")
    decision = protocol.decide(bet, actor_id, winning_side)
    if decision is None:
        raise IllegalTransitionError("resolve", bet.status, required_role=protocol.authority)
    _apply_resolution(bet, decision, now)


def agree_to_resolution(
    bet: Bet, user_id: str, winning_side: str | None, now: datetime
) -> bool:
    """Record a participant's agreement. Returns True if this call resolved the bet."""
    protocol = protocol_for(bet.resolution_type)
    protocol.check_command(bet, "agree")
    _require_status(bet, frozenset({BetStatus.AWAITING_RESOLUTION}), "agree")
    protocol.authorize(bet, user_id)
    decision = protocol.decide(bet, user_id, winning_side)

    ledger.mark_agreed(ledger.require_participant(bet, user_id), winning_side)
    bet.updated_at = now
    if decision is None:
        return False
    _apply_resolution(bet, decision, now)
    return True


def submit_evidence(
    bet: Bet,
    *,
    evidence_id: str,
    user_id: str,
    evidence_type: str,
    content: str,
    now: datetime,
    description: str | None = None,
) -> Evidence:
    _require_status(bet, EVIDENCE_STATUSES, "submit evidence for")
    if ledger.find_participant(bet, user_id) is None and user_id != bet.neutral_party_id:
        raise IllegalTransitionError(
            "submit evidence for", bet.status, required_role="participant or neutral party"
        )
    try:
        kind = EvidenceType(evidence_type)
    except ValueError:
        raise BetValidationError(f"Unknown evidence type: {evidence_type}") from None
    if not content or not content.strip():
        raise BetValidationError("Evidence content is required")

    item = Evidence(
        id=evidence_id,
        submitted_by=user_id,
        type=kind.value,
        content=content.strip(),
        description=description,
        submitted_at=now,
    )
    bet.evidence.append(item)
    bet.updated_at = now
    return item


def record_payment(bet: Bet, payer_id: str, paid_at: datetime) -> bool:
    """Mark a loser as paid. Returns True if every loser has now paid (bet completed)."""
    _require_status(bet, frozenset({BetStatus.RESOLVED}), "record payment for")
    winner = bet.winner
    if winner is None:
        raise IllegalTransitionError("record payment for", bet.status)
    payer = ledger.require_participant(bet, payer_id)
    if payer.side == winner:
        raise BetValidationError(f"User {payer_id} is on the winning side and owes nothing")
    if not payer.has_paid:
        ledger.mark_paid(payer, paid_at)
    bet.updated_at = paid_at

    if all(p.has_paid for p in ledger.losers_of(bet, winner)):
        _transition(bet, BetStatus.COMPLETED, "complete", paid_at)
        return True
    return False
