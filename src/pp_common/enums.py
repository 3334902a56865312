"""Global enums — values must match DB CHECK constraints exactly (lowercase on the wire).

Ref: alembic/versions/002_create_markets.py … 005_create_audit_transactions.py
"""

from enum import Enum


class MarketStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class Outcome(str, Enum):
    """Resolution result. CANCELLED refunds every record in full."""
    YES = "yes"
    NO = "no"
    CANCELLED = "cancelled"


class Side(str, Enum):
    YES = "yes"
    NO = "no"


class RecordKind(str, Enum):
    """Which ledger row a claim targets."""
    STAKE = "stake"
    LIQUIDITY = "liquidity"


class TransactionType(str, Enum):
    RESOLUTION = "resolution"
    PAYOUT = "payout"
    REFUND = "refund"
    LP_WITHDRAWAL = "lp_withdrawal"


class TransactionStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"


class StoreBackend(str, Enum):
    POSTGRES = "postgres"
    MEMORY = "memory"
