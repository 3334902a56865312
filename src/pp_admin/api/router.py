# src/pp_admin/api/router.py
"""Resolution REST API.

POST /resolve              — finalize a market outcome (yes | no | cancelled)
GET  /resolve?marketId=    — read-only resolution status / summary preview
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_admin.application.schemas import ResolveRequest
from src.pp_admin.application.service import ResolutionService
from src.pp_common.database import get_db_session
from src.pp_common.response import ApiResponse, request_id_of, success_response

router = APIRouter(prefix="/resolve", tags=["resolution"])
_service = ResolutionService()


@router.post("")
async def resolve_market(
    body: ResolveRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.resolve(db, body.market_id, body.outcome, body.authorized_by)
    return success_response(result.to_wire(), request_id_of(request))


@router.get("")
async def get_resolution_status(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    market_id: str = Query(..., alias="marketId", min_length=1),
) -> ApiResponse:
    result = await _service.get_resolution_status(db, market_id)
    return success_response(result.to_wire(), request_id_of(request))
