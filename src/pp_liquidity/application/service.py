"""LiquidityService — LP deposits into an active pool.

A deposit locks the market row, mints shares against the pool it joins, grows
the pool and then inserts the LP record, in one transaction. The pool update
is guarded by status = 'active', so a deposit racing a resolution either lands
before it or is rejected before any LP row exists. A deposit that would mint
0 shares (stakes in the pool, no LP shares yet) is refused.
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pp_common.amounts import ZERO, quantize_amount
from src.pp_common.errors import (
    AppError,
    InvalidAmountError,
    MarketNotActiveError,
    MarketNotFoundError,
    PersistenceError,
)
from src.pp_liquidity.application.schemas import (
    AddLiquidityResponse,
    LiquidityPositionOut,
    PoolLiquidityResponse,
    SharePreviewResponse,
)
from src.pp_liquidity.domain.shares import mint_lp_shares, split_deposit
from src.pp_market.domain.models import Market
from src.pp_market.domain.repository import MarketRepositoryProtocol
from src.pp_market.infrastructure.factory import build_market_repository

logger = logging.getLogger(__name__)


class LiquidityService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        initial_share_rate: Decimal | None = None,
        min_amount: Decimal | None = None,
        max_amount: Decimal | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or build_market_repository()
        self._initial_share_rate = initial_share_rate or settings.INITIAL_SHARE_RATE
        self._min_amount = settings.MIN_LIQUIDITY_AMOUNT if min_amount is None else min_amount
        self._max_amount = settings.MAX_LIQUIDITY_AMOUNT if max_amount is None else max_amount

    async def add_liquidity(
        self, db: AsyncSession, market_id: str, owner_id: str, amount: Decimal
    ) -> AddLiquidityResponse:
        amount = self._validate_amount(amount)
        try:
            market = await self._load_active_market(db, market_id, for_update=True)
            shares = mint_lp_shares(amount, market, self._initial_share_rate)
            if shares <= 0:
                raise InvalidAmountError(
                    "Pool holds stakes but no LP shares; deposit would mint 0 shares"
                )
            # Pool first: the LP row is only written once the guarded update landed.
            yes_part, no_part = split_deposit(amount)
            updated = await self._repo.apply_liquidity_deposit(
                db, market_id, yes_part, no_part, shares
            )
            if updated is None:
                raise MarketNotActiveError(market_id)
            lp = await self._repo.insert_liquidity_position(
                db, market_id, owner_id, amount, shares
            )
            await db.commit()
        except AppError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Liquidity deposit failed to persist: market=%s", market_id)
            raise PersistenceError(f"Failed to add liquidity to market {market_id}") from e

        logger.info(
            "Liquidity added: market=%s owner=%s amount=%s shares=%s pool=%s",
            market_id,
            owner_id,
            amount,
            shares,
            updated.total_pool,
        )
        return AddLiquidityResponse(position=LiquidityPositionOut.from_domain(lp))

    async def preview_shares(
        self, db: AsyncSession, market_id: str, amount: Decimal
    ) -> SharePreviewResponse:
        amount = self._validate_amount(amount)
        market = await self._load_active_market(db, market_id)
        return SharePreviewResponse(
            market_id=market_id,
            amount=amount,
            expected_shares=mint_lp_shares(amount, market, self._initial_share_rate),
            current_total_liquidity=market.total_pool,
        )

    async def get_pool_liquidity(
        self, db: AsyncSession, market_id: str
    ) -> PoolLiquidityResponse:
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        lps = await self._repo.list_liquidity_positions_by_market(db, market_id)
        return PoolLiquidityResponse(
            market_id=market_id,
            total_liquidity=sum((lp.deposited_amount for lp in lps), ZERO),
            total_shares=market.total_lp_shares,
            lp_count=len(lps),
        )

    def _validate_amount(self, amount: Decimal) -> Decimal:
        if not amount.is_finite() or amount <= 0:
            raise InvalidAmountError("Amount must be a positive number")
        if amount < self._min_amount:
            raise InvalidAmountError(f"Minimum liquidity is {self._min_amount}")
        if amount > self._max_amount:
            raise InvalidAmountError(f"Maximum liquidity is {self._max_amount}")
        quantized = quantize_amount(amount)
        if quantized != amount:
            raise InvalidAmountError("Amount supports at most 6 decimal places")
        return quantized

    async def _load_active_market(
        self, db: AsyncSession, market_id: str, for_update: bool = False
    ) -> Market:
        market = await self._repo.get_market(db, market_id, for_update=for_update)
        if market is None:
            raise MarketNotFoundError(market_id)
        if not market.is_active:
            raise MarketNotActiveError(market_id, market.status.value)
        return market
