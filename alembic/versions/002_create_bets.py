"""002: create bets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE bets (
            id                      VARCHAR(64)     PRIMARY KEY,
            title                   VARCHAR(200)    NOT NULL,
            description             TEXT            NOT NULL DEFAULT '',
            amount_cents            BIGINT          NOT NULL,
            currency                VARCHAR(3)      NOT NULL DEFAULT 'USD',
            facilitation_fee_cents  BIGINT          NOT NULL DEFAULT 0,
            sides                   JSONB           NOT NULL,
            created_by              VARCHAR(64)     NOT NULL,
            status                  VARCHAR(32)     NOT NULL DEFAULT 'pending',
            resolution_type         VARCHAR(32)     NOT NULL,
            neutral_party_id        VARCHAR(64),
            participants            JSONB           NOT NULL DEFAULT '[]'::jsonb,
            evidence                JSONB           NOT NULL DEFAULT '[]'::jsonb,
            winner                  VARCHAR(200),
            resolved_at             TIMESTAMPTZ,
            resolved_by             VARCHAR(64),
            resolution_deadline     TIMESTAMPTZ,
            version                 INTEGER         NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_bets_amount_positive CHECK (amount_cents > 0),
            CONSTRAINT ck_bets_fee_non_negative CHECK (facilitation_fee_cents >= 0),
            CONSTRAINT ck_bets_status CHECK (status IN (
                'pending', 'active', 'awaiting_resolution',
                'resolved', 'completed', 'cancelled', 'disputed'
            )),
            CONSTRAINT ck_bets_resolution_type CHECK (
                resolution_type IN ('neutral_party', 'everyone_agrees')
            ),
            CONSTRAINT ck_bets_neutral_party CHECK (
                (resolution_type = 'neutral_party') = (neutral_party_id IS NOT NULL)
            ),
            CONSTRAINT ck_bets_sides_count CHECK (
                jsonb_array_length(sides) BETWEEN 2 AND 5
            )
        );
    """)
    # participants @> '[{"user_id": ...}]' membership probe
    op.execute("CREATE INDEX idx_bets_participants ON bets USING GIN (participants jsonb_path_ops);")
    op.execute("CREATE INDEX idx_bets_neutral_party ON bets (neutral_party_id) WHERE neutral_party_id IS NOT NULL;")
    op.execute("CREATE INDEX idx_bets_created ON bets (created_at DESC, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_bets_updated_at
            BEFORE UPDATE ON bets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE bets IS 'Group bets: participant ledger and evidence log inline as JSONB';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS bets CASCADE;")
