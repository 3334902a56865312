"""005: create audit_transactions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE audit_transactions (
            id              VARCHAR(64)     PRIMARY KEY,
            owner_id        VARCHAR(128)    NOT NULL,
            market_id       VARCHAR(64)     NOT NULL REFERENCES markets (id),
            type            VARCHAR(20)     NOT NULL,
            amount          NUMERIC(20, 6)  NOT NULL,
            reference       VARCHAR(255)    NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'confirmed',
            record_kind     VARCHAR(20),
            record_id       VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_audit_type CHECK (
                type IN ('resolution', 'payout', 'refund', 'lp_withdrawal')
            ),
            CONSTRAINT ck_audit_status CHECK (status IN ('confirmed', 'pending')),
            CONSTRAINT ck_audit_record_kind CHECK (
                record_kind IS NULL OR record_kind IN ('stake', 'liquidity')
            ),
            CONSTRAINT ck_audit_amount_gte_0 CHECK (amount >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_audit_market_time ON audit_transactions (market_id, created_at);")
    op.execute("""
        CREATE INDEX idx_audit_record
        ON audit_transactions (record_kind, record_id)
        WHERE record_id IS NOT NULL;
    """)
    op.execute("""
        CREATE INDEX idx_audit_pending
        ON audit_transactions (created_at)
        WHERE status = 'pending';
    """)
    op.execute("""
        CREATE TRIGGER trg_audit_transactions_append_only
            BEFORE UPDATE OR DELETE ON audit_transactions
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_mutation();
    """)
    op.execute(
        "COMMENT ON TABLE audit_transactions IS "
        "'Money-movement audit trail. Append-only, never updated or deleted';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS audit_transactions CASCADE;")
