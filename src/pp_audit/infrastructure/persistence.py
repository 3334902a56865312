"""AuditLedgerRepository — writes audit_transactions within the caller's transaction."""

import uuid

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_audit.domain.models import AuditEntry, AuditTransaction
from src.pp_common.amounts import to_decimal
from src.pp_common.enums import RecordKind, TransactionStatus, TransactionType

_COLUMNS = """
    id, owner_id, market_id, type, amount, reference, status,
    record_kind, record_id, created_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO audit_transactions
        (id, owner_id, market_id, type, amount, reference, status, record_kind, record_id)
    VALUES
        (:id, :owner_id, :market_id, :type, :amount, :reference, :status,
         :record_kind, :record_id)
    RETURNING {_COLUMNS}
""")

_LIST_BY_MARKET_SQL = text(f"""
    SELECT {_COLUMNS} FROM audit_transactions
    WHERE market_id = :market_id
    ORDER BY created_at, id
""")


def _row_to_transaction(row: object) -> AuditTransaction:
    record_kind = row.record_kind  # type: ignore[attr-defined]
    return AuditTransaction(
        id=row.id,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        market_id=row.market_id,  # type: ignore[attr-defined]
        type=TransactionType(row.type),  # type: ignore[attr-defined]
        amount=to_decimal(row.amount),  # type: ignore[attr-defined]
        reference=row.reference,  # type: ignore[attr-defined]
        status=TransactionStatus(row.status),  # type: ignore[attr-defined]
        record_kind=RecordKind(record_kind) if record_kind else None,
        record_id=row.record_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class AuditLedgerRepository:
    async def append(self, db: AsyncSession, entry: AuditEntry) -> AuditTransaction:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": f"tx_{uuid.uuid4().hex}",
                "owner_id": entry.owner_id,
                "market_id": entry.market_id,
                "type": entry.type.value,
                "amount": entry.amount,
                "reference": entry.reference,
                "status": entry.status.value,
                "record_kind": entry.record_kind.value if entry.record_kind else None,
                "record_id": entry.record_id,
            },
        )
        return _row_to_transaction(result.fetchone())

    async def list_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[AuditTransaction]:
        result = await db.execute(_LIST_BY_MARKET_SQL, {"market_id": market_id})
        return [_row_to_transaction(row) for row in result.fetchall()]
