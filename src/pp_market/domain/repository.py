"""Repository Protocol — dependency inversion for testability.

The settlement engine only ever talks to this Protocol. Infrastructure provides
a PostgreSQL implementation and an in-memory one (tests, STORE_BACKEND=memory).

All status/claim transitions are conditional writes: they return None when the
guard no longer holds (another caller got there first), never a partial update.
"""

from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_common.enums import MarketStatus, Outcome
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition


class MarketRepositoryProtocol(Protocol):
    # --- markets ---

    async def get_market(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> Market | None: ...

    async def get_markets_by_ids(
        self, db: AsyncSession, market_ids: list[str]
    ) -> list[Market]: ...

    async def transition_market_status(
        self,
        db: AsyncSession,
        market_id: str,
        status: MarketStatus,
        outcome: Outcome,
        resolved_at: datetime,
    ) -> Market | None:
        """CAS active -> resolved|cancelled. None if the market was not active."""
        ...

    async def apply_liquidity_deposit(
        self,
        db: AsyncSession,
        market_id: str,
        yes_increment: Decimal,
        no_increment: Decimal,
        shares: Decimal,
    ) -> Market | None:
        """Grow pools and total LP shares. None if the market is no longer active."""
        ...

    # --- stake positions ---

    async def get_stake_position(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None: ...

    async def list_stake_positions_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[StakePosition]: ...

    async def list_stake_positions_by_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[StakePosition]: ...

    async def reserve_stake_claim(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        """CAS claimed false -> true. None if already claimed."""
        ...

    async def release_stake_claim(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        """Compensating CAS claimed true -> false after a definitive dispatch failure."""
        ...

    # --- liquidity positions ---

    async def get_liquidity_position(
        self, db: AsyncSession, lp_position_id: str
    ) -> LiquidityPosition | None: ...

    async def list_liquidity_positions_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[LiquidityPosition]: ...

    async def list_liquidity_positions_by_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[LiquidityPosition]: ...

    async def insert_liquidity_position(
        self,
        db: AsyncSession,
        market_id: str,
        owner_id: str,
        deposited_amount: Decimal,
        shares: Decimal,
    ) -> LiquidityPosition: ...

    async def reserve_liquidity_withdrawal(
        self, db: AsyncSession, lp_position_id: str, withdrawn_at: datetime
    ) -> LiquidityPosition | None:
        """CAS withdrawn_at NULL -> timestamp. None if already withdrawn."""
        ...

    async def release_liquidity_withdrawal(
        self, db: AsyncSession, lp_position_id: str
    ) -> LiquidityPosition | None: ...
