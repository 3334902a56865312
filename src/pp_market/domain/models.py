"""Domain models for pp_market — the pool and its two record kinds.

Pure dataclasses, no SQLAlchemy dependency. Amounts and shares are Decimal.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pp_common.enums import MarketStatus, Outcome, Side


@dataclass
class Market:
    id: str
    title: str
    yes_pool: Decimal
    no_pool: Decimal
    total_lp_shares: Decimal
    status: MarketStatus
    outcome: Outcome | None = None
    end_time: datetime | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def total_pool(self) -> Decimal:
        return self.yes_pool + self.no_pool

    @property
    def is_active(self) -> bool:
        return self.status == MarketStatus.ACTIVE

    @property
    def is_settleable(self) -> bool:
        """Resolved or cancelled: records may be claimed."""
        return self.status in (MarketStatus.RESOLVED, MarketStatus.CANCELLED)


@dataclass
class StakePosition:
    """A stake on one side. Append-only ledger row; only `claimed` ever changes."""

    id: str
    market_id: str
    owner_id: str
    side: Side
    staked_amount: Decimal
    shares: Decimal            # opaque, minted upstream at bet placement
    claimed: bool = False
    created_at: datetime | None = None


@dataclass
class LiquidityPosition:
    """An LP deposit. Only `withdrawn_at` ever changes (None -> timestamp, once)."""

    id: str
    market_id: str
    owner_id: str
    deposited_amount: Decimal
    shares: Decimal
    withdrawn_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_withdrawn(self) -> bool:
        return self.withdrawn_at is not None
