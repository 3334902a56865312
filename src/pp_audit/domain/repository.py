"""Audit ledger Protocol — append-only; no update or delete is ever exposed."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_audit.domain.models import AuditEntry, AuditTransaction


class AuditLedgerProtocol(Protocol):
    async def append(self, db: AsyncSession, entry: AuditEntry) -> AuditTransaction: ...

    async def list_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[AuditTransaction]: ...
