"""Selects the AuditLedgerProtocol implementation from settings.STORE_BACKEND."""

from functools import lru_cache

from config.settings import settings
from src.pp_audit.domain.repository import AuditLedgerProtocol
from src.pp_audit.infrastructure.memory import InMemoryAuditLedger
from src.pp_audit.infrastructure.persistence import AuditLedgerRepository
from src.pp_common.enums import StoreBackend


@lru_cache(maxsize=1)
def _memory_ledger() -> InMemoryAuditLedger:
    return InMemoryAuditLedger()


def build_audit_ledger() -> AuditLedgerProtocol:
    if StoreBackend(settings.STORE_BACKEND) == StoreBackend.MEMORY:
        return _memory_ledger()
    return AuditLedgerRepository()
