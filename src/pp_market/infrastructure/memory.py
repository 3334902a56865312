"""InMemoryMarketRepository — process-local implementation of MarketRepositoryProtocol.

Used by unit tests and by STORE_BACKEND=memory for local development.
The `db` argument is accepted for Protocol compatibility and ignored.

Conditional writes hold one asyncio.Lock so concurrent coroutines observe the
same compare-and-swap semantics as the SQL `UPDATE ... WHERE` guards.
Reads return copies: callers can never mutate stored rows in place.
Writes are not transactional — a rollback on the session does not undo them.
"""

import asyncio
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_common.datetime_utils import utc_now
from src.pp_common.enums import MarketStatus, Outcome
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition


class InMemoryMarketRepository:
    def __init__(self) -> None:
        self._markets: dict[str, Market] = {}
        self._stakes: dict[str, StakePosition] = {}
        self._lps: dict[str, LiquidityPosition] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Seeding helpers (not part of the Protocol; stakes are created upstream)
    # ------------------------------------------------------------------

    def add_market(self, market: Market) -> Market:
        self._markets[market.id] = replace(market)
        return replace(market)

    def add_stake_position(self, position: StakePosition) -> StakePosition:
        self._stakes[position.id] = replace(position)
        return replace(position)

    def add_liquidity_position(self, lp: LiquidityPosition) -> LiquidityPosition:
        self._lps[lp.id] = replace(lp)
        return replace(lp)

    # ------------------------------------------------------------------
    # markets
    # ------------------------------------------------------------------

    async def get_market(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> Market | None:
        market = self._markets.get(market_id)
        return replace(market) if market else None

    async def get_markets_by_ids(
        self, db: AsyncSession, market_ids: list[str]
    ) -> list[Market]:
        return [replace(self._markets[mid]) for mid in market_ids if mid in self._markets]

    async def transition_market_status(
        self,
        db: AsyncSession,
        market_id: str,
        status: MarketStatus,
        outcome: Outcome,
        resolved_at: datetime,
    ) -> Market | None:
        async with self._lock:
            market = self._markets.get(market_id)
            if market is None or market.status != MarketStatus.ACTIVE:
                return None
            market.status = status
            market.outcome = outcome
            market.resolved_at = resolved_at
            market.updated_at = resolved_at
            return replace(market)

    async def apply_liquidity_deposit(
        self,
        db: AsyncSession,
        market_id: str,
        yes_increment: Decimal,
        no_increment: Decimal,
        shares: Decimal,
    ) -> Market | None:
        async with self._lock:
            market = self._markets.get(market_id)
            if market is None or market.status != MarketStatus.ACTIVE:
                return None
            market.yes_pool += yes_increment
            market.no_pool += no_increment
            market.total_lp_shares += shares
            market.updated_at = utc_now()
            return replace(market)

    # ------------------------------------------------------------------
    # stake positions
    # ------------------------------------------------------------------

    async def get_stake_position(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        position = self._stakes.get(position_id)
        return replace(position) if position else None

    async def list_stake_positions_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[StakePosition]:
        return [replace(p) for p in self._stakes.values() if p.market_id == market_id]

    async def list_stake_positions_by_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[StakePosition]:
        return [replace(p) for p in self._stakes.values() if p.owner_id == owner_id]

    async def reserve_stake_claim(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        async with self._lock:
            position = self._stakes.get(position_id)
            if position is None or position.claimed:
                return None
            position.claimed = True
            return replace(position)

    async def release_stake_claim(
        self, db: AsyncSession, position_id: str
    ) -> StakePosition | None:
        async with self._lock:
            position = self._stakes.get(position_id)
            if position is None or not position.claimed:
                return None
            position.claimed = False
            return replace(position)

    # ------------------------------------------------------------------
    # liquidity positions
    # ------------------------------------------------------------------

    async def get_liquidity_position(
        self, db: AsyncSession, lp_position_id: str
    ) -> LiquidityPosition | None:
        lp = self._lps.get(lp_position_id)
        return replace(lp) if lp else None

    async def list_liquidity_positions_by_market(
        self, db: AsyncSession, market_id: str
    ) -> list[LiquidityPosition]:
        return [replace(lp) for lp in self._lps.values() if lp.market_id == market_id]

    async def list_liquidity_positions_by_owner(
        self, db: AsyncSession, owner_id: str
    ) -> list[LiquidityPosition]:
        return [replace(lp) for lp in self._lps.values() if lp.owner_id == owner_id]

    async def insert_liquidity_position(
        self,
        db: AsyncSession,
        market_id: str,
        owner_id: str,
        deposited_amount: Decimal,
        shares: Decimal,
    ) -> LiquidityPosition:
        lp = LiquidityPosition(
            id=f"lp_{uuid.uuid4().hex}",
            market_id=market_id,
            owner_id=owner_id,
            deposited_amount=deposited_amount,
            shares=shares,
            created_at=utc_now(),
        )
        self._lps[lp.id] = lp
        return replace(lp)

    async def reserve_liquidity_withdrawal(
        self, db: AsyncSession, lp_position_id: str, withdrawn_at: datetime
    ) -> LiquidityPosition | None:
        async with self._lock:
            lp = self._lps.get(lp_position_id)
            if lp is None or lp.withdrawn_at is not None:
                return None
            lp.withdrawn_at = withdrawn_at
            return replace(lp)

    async def release_liquidity_withdrawal(
        self, db: AsyncSession, lp_position_id: str
    ) -> LiquidityPosition | None:
        async with self._lock:
            lp = self._lps.get(lp_position_id)
            if lp is None or lp.withdrawn_at is None:
                return None
            lp.withdrawn_at = None
            return replace(lp)
