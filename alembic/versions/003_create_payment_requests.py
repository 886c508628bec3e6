"""003: create payment_requests table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_requests (
            id              VARCHAR(64)     PRIMARY KEY,
            bet_id          VARCHAR(64)     NOT NULL REFERENCES bets (id),
            from_user_id    VARCHAR(64)     NOT NULL,
            to_user_id      VARCHAR(64)     NOT NULL,
            amount_cents    BIGINT          NOT NULL,
            description     TEXT            NOT NULL DEFAULT '',
            status          VARCHAR(16)     NOT NULL DEFAULT 'pending',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            completed_at    TIMESTAMPTZ,
            CONSTRAINT uq_payment_requests_bet_payer UNIQUE (bet_id, from_user_id),
            CONSTRAINT ck_payment_requests_amount CHECK (amount_cents > 0),
            CONSTRAINT ck_payment_requests_status CHECK (
                status IN ('pending', 'completed', 'failed', 'cancelled')
            ),
            CONSTRAINT ck_payment_requests_not_self CHECK (from_user_id <> to_user_id)
        );
    """)
    op.execute("CREATE INDEX idx_payment_requests_from ON payment_requests (from_user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_payment_requests_to ON payment_requests (to_user_id, created_at DESC);")
    op.execute("COMMENT ON TABLE payment_requests IS 'One obligation per losing participant of a resolved bet';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_requests CASCADE;")
