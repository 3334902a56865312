# src/pp_liquidity/api/router.py
"""Liquidity REST API.

POST /markets/{market_id}/liquidity          — deposit liquidity, mint LP shares
GET  /markets/{market_id}/liquidity          — pool liquidity summary
GET  /markets/{market_id}/liquidity/preview  — expected shares for an amount
"""
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_common.database import get_db_session
from src.pp_common.response import ApiResponse, request_id_of, success_response
from src.pp_liquidity.application.schemas import AddLiquidityRequest
from src.pp_liquidity.application.service import LiquidityService

router = APIRouter(prefix="/markets", tags=["liquidity"])
_service = LiquidityService()


@router.post("/{market_id}/liquidity")
async def add_liquidity(
    market_id: str,
    body: AddLiquidityRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.add_liquidity(db, market_id, body.owner_id, body.amount)
    return success_response(result.to_wire(), request_id_of(request))


@router.get("/{market_id}/liquidity")
async def get_pool_liquidity(
    market_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.get_pool_liquidity(db, market_id)
    return success_response(result.to_wire(), request_id_of(request))


@router.get("/{market_id}/liquidity/preview")
async def preview_shares(
    market_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    amount: Decimal = Query(..., gt=0),
) -> ApiResponse:
    result = await _service.preview_shares(db, market_id, amount)
    return success_response(result.to_wire(), request_id_of(request))
