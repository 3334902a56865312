"""InMemoryAuditLedger — list-backed ledger for tests and STORE_BACKEND=memory."""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_audit.domain.models import AuditEntry, AuditTransaction
from src.pp_common.datetime_utils import utc_now


class InMemoryAuditLedger:
    def __init__(self) -> None:
        self.entries: list[AuditTransaction] = []

    async def append(self, db: AsyncSession, entry: AuditEntry) -> AuditTransaction:
        tx = AuditTransaction(
            id=f"tx_{uuid.uuid4().hex}",
            owner_id=entry.owner_id,
            market_id=entry.market_id,
            type=entry.type,
            amount=entry.amount,
            reference=entry.reference,
            status=entry.status,
            record_kind=entry.record_kind,
            record_id=entry.record_id,
            created_at=utc_now(),
        )
        self.entries.append(tx)
        return tx

    async def list_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[AuditTransaction]:
        return [tx for tx in self.entries if tx.market_id == market_id]
