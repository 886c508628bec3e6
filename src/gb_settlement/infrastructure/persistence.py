"""ObligationRepository: concrete implementation of ObligationRepositoryProtocol.

Inserts are idempotent per (bet_id, from_user_id): replaying a fan-out for the
same bet never duplicates a debt. Status changes are atomic UPDATE ... RETURNING;
zero rows means the precondition (status = 'pending') no longer held.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.gb_settlement.domain.models import PaymentObligation

_OBLIGATION_COLUMNS = """
    id, bet_id, from_user_id, to_user_id, amount_cents,
    description, status, created_at, completed_at
"""

_INSERT_OBLIGATION_SQL = text(f"""
    INSERT INTO payment_requests
        (id, bet_id, from_user_id, to_user_id, amount_cents,
         description, status, created_at)
    VALUES
        (:id, :bet_id, :from_user_id, :to_user_id, :amount_cents,
         :description, :status, :created_at)
    ON CONFLICT (bet_id, from_user_id) DO NOTHING
    RETURNING {_OBLIGATION_COLUMNS}
""")

_GET_OBLIGATION_SQL = text(f"""
    SELECT {_OBLIGATION_COLUMNS}
    FROM payment_requests
    WHERE id = :obligation_id
""")

_LIST_OUTGOING_SQL = text(f"""
    SELECT {_OBLIGATION_COLUMNS}
    FROM payment_requests
    WHERE from_user_id = :user_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY created_at DESC, id DESC
""")

_LIST_INCOMING_SQL = text(f"""
    SELECT {_OBLIGATION_COLUMNS}
    FROM payment_requests
    WHERE to_user_id = :user_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY created_at DESC, id DESC
""")

_MARK_COMPLETED_SQL = text(f"""
    UPDATE payment_requests
    SET status = 'completed',
        completed_at = :completed_at
    WHERE id = :obligation_id AND status = 'pending'
    RETURNING {_OBLIGATION_COLUMNS}
""")


def _row_to_obligation(row: Any) -> PaymentObligation:
    return PaymentObligation(
        id=row.id,
        bet_id=row.bet_id,
        from_user_id=row.from_user_id,
        to_user_id=row.to_user_id,
        amount_cents=row.amount_cents,
        description=row.description,
        status=row.status,
        created_at=row.created_at,
        completed_at=row.completed_at,
    )


class ObligationRepository:
    """PostgreSQL payment-obligation sink."""

    async def create_obligations(
        self, db: AsyncSession, obligations: list[PaymentObligation]
    ) -> list[PaymentObligation]:
        created: list[PaymentObligation] = []
        for ob in obligations:
            result = await db.execute(
                _INSERT_OBLIGATION_SQL,
                {
                    "id": ob.id,
                    "bet_id": ob.bet_id,
                    "from_user_id": ob.from_user_id,
                    "to_user_id": ob.to_user_id,
                    "amount_cents": ob.amount_cents,
                    "description": ob.description,
                    "status": ob.status,
                    "created_at": ob.created_at,
                },
            )
            row = result.fetchone()
            if row is not None:
                created.append(_row_to_obligation(row))
        return created

    async def get_obligation(
        self, db: AsyncSession, obligation_id: str
    ) -> PaymentObligation | None:
        result = await db.execute(_GET_OBLIGATION_SQL, {"obligation_id": obligation_id})
        row = result.fetchone()
        return _row_to_obligation(row) if row else None

    async def list_for_user(
        self,
        db: AsyncSession,
        user_id: str,
        direction: str,
        status: str | None,
    ) -> list[PaymentObligation]:
        sql = _LIST_INCOMING_SQL if direction == "incoming" else _LIST_OUTGOING_SQL
        result = await db.execute(sql, {"user_id": user_id, "status": status})
        return [_row_to_obligation(row) for row in result.fetchall()]

    async def mark_completed(
        self, db: AsyncSession, obligation_id: str, completed_at: datetime
    ) -> PaymentObligation | None:
        result = await db.execute(
            _MARK_COMPLETED_SQL,
            {"obligation_id": obligation_id, "completed_at": completed_at},
        )
        row = result.fetchone()
        return _row_to_obligation(row) if row else None
