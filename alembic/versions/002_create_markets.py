"""002: create markets table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                  VARCHAR(64)     PRIMARY KEY,
            title               VARCHAR(500)    NOT NULL,
            yes_pool            NUMERIC(20, 6)  NOT NULL DEFAULT 0,
            no_pool             NUMERIC(20, 6)  NOT NULL DEFAULT 0,
            total_lp_shares     NUMERIC(38, 12) NOT NULL DEFAULT 0,
            status              VARCHAR(20)     NOT NULL DEFAULT 'active',
            outcome             VARCHAR(10),
            end_time            TIMESTAMPTZ,
            resolved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_yes_pool_gte_0    CHECK (yes_pool >= 0),
            CONSTRAINT ck_markets_no_pool_gte_0     CHECK (no_pool >= 0),
            CONSTRAINT ck_markets_lp_shares_gte_0   CHECK (total_lp_shares >= 0),
            CONSTRAINT ck_markets_status CHECK (
                status IN ('active', 'resolved', 'cancelled')
            ),
            CONSTRAINT ck_markets_outcome CHECK (
                outcome IS NULL OR outcome IN ('yes', 'no', 'cancelled')
            ),
            CONSTRAINT ck_markets_status_outcome CHECK (
                (status = 'active' AND outcome IS NULL AND resolved_at IS NULL)
                OR (status = 'resolved' AND outcome IN ('yes', 'no'))
                OR (status = 'cancelled' AND outcome = 'cancelled')
            )
        );
    """)
    op.execute("CREATE INDEX idx_markets_status ON markets (status);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE markets IS "
        "'Pooled binary market: yes/no pools, LP share supply, terminal outcome';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
