"""004: create liquidity_positions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE liquidity_positions (
            id                  VARCHAR(64)     PRIMARY KEY,
            market_id           VARCHAR(64)     NOT NULL REFERENCES markets (id),
            owner_id            VARCHAR(128)    NOT NULL,
            deposited_amount    NUMERIC(20, 6)  NOT NULL,
            shares              NUMERIC(38, 12) NOT NULL,
            withdrawn_at        TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_lp_amount_gte_0   CHECK (deposited_amount >= 0),
            CONSTRAINT ck_lp_shares_gte_0   CHECK (shares >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_liquidity_positions_market ON liquidity_positions (market_id);")
    op.execute("CREATE INDEX idx_liquidity_positions_owner ON liquidity_positions (owner_id);")
    op.execute(
        "COMMENT ON TABLE liquidity_positions IS "
        "'LP deposit into a market pool. withdrawn_at is set once, at claim time';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS liquidity_positions CASCADE;")
