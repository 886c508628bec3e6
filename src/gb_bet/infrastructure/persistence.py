"""BetRepository: concrete implementation of BetRepositoryProtocol.

All queries use raw text() SQL (no ORM). The aggregate is one row: the
participant ledger and the evidence log are JSONB arrays on the bet row, so a
single versioned UPDATE writes the whole aggregate atomically.

Optimistic concurrency: every save is `... WHERE id = :id AND version = :expected`
and bumps `version`; zero rows returned means a concurrent writer won.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

import json
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_bet.domain.models import Bet, BetParticipant, Evidence

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_BET_COLUMNS = """
    id, title, description, amount_cents, currency, facilitation_fee_cents,
    sides, created_by, status, resolution_type, neutral_party_id,
    participants, evidence, winner, resolved_at, resolved_by,
    resolution_deadline, version, created_at, updated_at
"""

_INSERT_BET_SQL = text("""
    INSERT INTO bets
        (id, title, description, amount_cents, currency, facilitation_fee_cents,
         sides, created_by, status, resolution_type, neutral_party_id,
         participants, evidence, resolution_deadline, version,
         created_at, updated_at)
    VALUES
        (:id, :title, :description, :amount_cents, :currency, :facilitation_fee_cents,
         CAST(:sides AS JSONB), :created_by, :status, :resolution_type, :neutral_party_id,
         CAST(:participants AS JSONB), CAST(:evidence AS JSONB), :resolution_deadline, 0,
         :created_at, :updated_at)
""")

_GET_BET_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE id = :bet_id
""")

# title, amount, sides, fee, resolution_type and neutral party are insert-only.
_SAVE_BET_SQL = text("""
    UPDATE bets
    SET status       = :status,
        participants = CAST(:participants AS JSONB),
        evidence     = CAST(:evidence AS JSONB),
        winner       = :winner,
        resolved_at  = :resolved_at,
        resolved_by  = :resolved_by,
        version      = version + 1,
        updated_at   = :updated_at
    WHERE id = :id AND version = :expected_version
    RETURNING version
""")

_LIST_BETS_FOR_USER_SQL = text(f"""
    SELECT {_BET_COLUMNS}
    FROM bets
    WHERE
        (participants @> CAST(:member_probe AS JSONB) OR neutral_party_id = :user_id)
        AND (CAST(:statuses AS TEXT[]) IS NULL OR status = ANY(CAST(:statuses AS TEXT[])))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# JSONB (de)serialization
# ---------------------------------------------------------------------------


def _dt_out(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


def _dt_in(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


def _participants_to_json(participants: list[BetParticipant]) -> str:
    return json.dumps([
        {
            "user_id": p.user_id,
            "display_name": p.display_name,
            "side": p.side,
            "joined_at": _dt_out(p.joined_at),
            "has_agreed": p.has_agreed,
            "agreed_side": p.agreed_side,
            "has_paid": p.has_paid,
            "paid_at": _dt_out(p.paid_at),
        }
        for p in participants
    ])


def _evidence_to_json(evidence: list[Evidence]) -> str:
    return json.dumps([
        {
            "id": e.id,
            "submitted_by": e.submitted_by,
            "type": e.type,
            "content": e.content,
            "description": e.description,
            "submitted_at": _dt_out(e.submitted_at),
        }
        for e in evidence
    ])


def _load_json(raw: Any) -> Any:
    # asyncpg hands JSONB back as str unless a codec is registered
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return raw


def _participant_from_dict(d: dict[str, Any]) -> BetParticipant:
    return BetParticipant(
        user_id=d["user_id"],
        display_name=d.get("display_name", ""),
        side=d["side"],
        joined_at=_dt_in(d.get("joined_at")),
        has_agreed=bool(d.get("has_agreed", False)),
        agreed_side=d.get("agreed_side"),
        has_paid=bool(d.get("has_paid", False)),
        paid_at=_dt_in(d.get("paid_at")),
    )


def _evidence_from_dict(d: dict[str, Any]) -> Evidence:
    return Evidence(
        id=d["id"],
        submitted_by=d["submitted_by"],
        type=d["type"],
        content=d["content"],
        description=d.get("description"),
        submitted_at=datetime.fromisoformat(d["submitted_at"]),
    )


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------

def _row_to_bet(row: Any) -> Bet:
    return Bet(
        id=row.id,
        title=row.title,
        description=row.description or "",
        amount_cents=row.amount_cents,
        currency=row.currency,
        facilitation_fee_cents=row.facilitation_fee_cents,
        sides=list(_load_json(row.sides)),
        created_by=row.created_by,
        status=row.status,
        resolution_type=row.resolution_type,
        neutral_party_id=row.neutral_party_id,
        participants=[_participant_from_dict(d) for d in _load_json(row.participants)],
        evidence=[_evidence_from_dict(d) for d in _load_json(row.evidence)],
        winner=row.winner,
        resolved_at=row.resolved_at,
        resolved_by=row.resolved_by,
        resolution_deadline=row.resolution_deadline,
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class BetRepository:
    """PostgreSQL persistence gateway for Bet aggregates."""

    async def insert_bet(self, db: AsyncSession, bet: Bet) -> None:
        await db.execute(
            _INSERT_BET_SQL,
            {
                "id": bet.id,
                "title": bet.title,
                "description": bet.description,
                "amount_cents": bet.amount_cents,
                "currency": bet.currency,
                "facilitation_fee_cents": bet.facilitation_fee_cents,
                "sides": json.dumps(bet.sides),
                "created_by": bet.created_by,
                "status": bet.status,
                "resolution_type": bet.resolution_type,
                "neutral_party_id": bet.neutral_party_id,
                "participants": _participants_to_json(bet.participants),
                "evidence": _evidence_to_json(bet.evidence),
                "resolution_deadline": bet.resolution_deadline,
                "created_at": bet.created_at,
                "updated_at": bet.updated_at,
            },
        )
        bet.version = 0

    async def get_bet(self, db: AsyncSession, bet_id: str) -> Bet | None:
        result = await db.execute(_GET_BET_SQL, {"bet_id": bet_id})
        row = result.fetchone()
        return _row_to_bet(row) if row else None

    async def save_bet(
        self, db: AsyncSession, bet: Bet, expected_version: int
    ) -> bool:
        result = await db.execute(
            _SAVE_BET_SQL,
            {
                "id": bet.id,
                "expected_version": expected_version,
                "status": bet.status,
                "participants": _participants_to_json(bet.participants),
                "evidence": _evidence_to_json(bet.evidence),
                "winner": bet.winner,
                "resolved_at": bet.resolved_at,
                "resolved_by": bet.resolved_by,
                "updated_at": bet.updated_at,
            },
        )
        row = result.fetchone()
        if row is None:
            return False
        bet.version = row.version
        return True

    async def list_bets_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        statuses: list[str] | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Bet]:
        # asyncpg requires a real datetime object for TIMESTAMPTZ parameters
        cursor_ts_dt: datetime | None = None
        if cursor_ts is not None:
            cursor_ts_dt = datetime.fromisoformat(cursor_ts)

        result = await db.execute(
            _LIST_BETS_FOR_USER_SQL,
            {
                "user_id": user_id,
                "member_probe": json.dumps([{"user_id": user_id}]),
                "statuses": statuses,
                "cursor_ts": cursor_ts_dt,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_bet(row) for row in result.fetchall()]
