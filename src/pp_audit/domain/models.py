"""Domain models for pp_audit — append-only transaction log rows."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pp_common.enums import RecordKind, TransactionStatus, TransactionType


@dataclass(frozen=True)
class AuditEntry:
    """What a caller asks the ledger to append."""

    owner_id: str
    market_id: str
    type: TransactionType
    amount: Decimal
    reference: str               # payment reference, or the resolving party's note
    status: TransactionStatus = TransactionStatus.CONFIRMED
    record_kind: RecordKind | None = None
    record_id: str | None = None


@dataclass
class AuditTransaction:
    id: str
    owner_id: str
    market_id: str
    type: TransactionType
    amount: Decimal
    reference: str
    status: TransactionStatus
    record_kind: RecordKind | None
    record_id: str | None
    created_at: datetime
