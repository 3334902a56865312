"""003: create stake_positions table

Revision ID: 003
Revises: 002
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE stake_positions (
            id              VARCHAR(64)     PRIMARY KEY,
            market_id       VARCHAR(64)     NOT NULL REFERENCES markets (id),
            owner_id        VARCHAR(128)    NOT NULL,
            side            VARCHAR(3)      NOT NULL,
            staked_amount   NUMERIC(20, 6)  NOT NULL,
            shares          NUMERIC(38, 12) NOT NULL,
            claimed         BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_stake_side            CHECK (side IN ('yes', 'no')),
            CONSTRAINT ck_stake_amount_gte_0    CHECK (staked_amount >= 0),
            CONSTRAINT ck_stake_shares_gte_0    CHECK (shares >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_stake_positions_market ON stake_positions (market_id);")
    op.execute("CREATE INDEX idx_stake_positions_owner ON stake_positions (owner_id);")
    op.execute(
        "COMMENT ON TABLE stake_positions IS "
        "'Stake on one side of a market. Append-only except the claimed flag';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stake_positions CASCADE;")
