# src/pp_claim/api/router.py
"""Claim REST API.

POST /claim            — claim one stake position or LP deposit
GET  /claim?owner=     — list everything the owner can claim right now
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pp_claim.application.schemas import ClaimRequest
from src.pp_claim.application.service import ClaimService
from src.pp_common.database import get_db_session
from src.pp_common.response import ApiResponse, request_id_of, success_response

router = APIRouter(prefix="/claim", tags=["claim"])
_service = ClaimService()


@router.post("")
async def claim(
    body: ClaimRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    kind, record_id = body.target()
    result = await _service.claim(db, body.owner_id, record_id, kind)
    return success_response(result.to_wire(), request_id_of(request))


@router.get("")
async def list_claimable(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    owner: str = Query(..., min_length=1),
) -> ApiResponse:
    result = await _service.list_claimable(db, owner)
    return success_response(result.to_wire(), request_id_of(request))
