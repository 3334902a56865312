"""Pydantic schemas for the liquidity API."""

from decimal import Decimal

from pydantic import Field

from src.pp_common.schemas import CamelModel
from src.pp_market.domain.models import LiquidityPosition


class AddLiquidityRequest(CamelModel):
    owner_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class LiquidityPositionOut(CamelModel):
    id: str
    shares: Decimal
    deposited_amount: Decimal

    @classmethod
    def from_domain(cls, lp: LiquidityPosition) -> "LiquidityPositionOut":
        return cls(id=lp.id, shares=lp.shares, deposited_amount=lp.deposited_amount)


class AddLiquidityResponse(CamelModel):
    position: LiquidityPositionOut


class SharePreviewResponse(CamelModel):
    market_id: str
    amount: Decimal
    expected_shares: Decimal
    current_total_liquidity: Decimal


class PoolLiquidityResponse(CamelModel):
    market_id: str
    total_liquidity: Decimal
    total_shares: Decimal
    lp_count: int
