"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pp_admin.api.router import router as resolve_router
from src.pp_claim.api.router import router as claim_router
from src.pp_common.database import engine, ping_database
from src.pp_common.enums import StoreBackend
from src.pp_common.errors import (
    AppError,
    InvalidOutcomeError,
    RequestValidationFailedError,
)
from src.pp_common.redis_client import close_redis, ping_redis
from src.pp_common.response import error_response, request_id_of
from src.pp_gateway.middleware.rate_limit import RateLimitMiddleware
from src.pp_gateway.middleware.request_log import RequestLogMiddleware
from src.pp_liquidity.api.router import router as liquidity_router
from src.pp_payment.infrastructure.factory import close_payment_dispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: dispose."""
    if StoreBackend(settings.STORE_BACKEND) == StoreBackend.POSTGRES:
        await ping_database()
    else:
        logger.warning("STORE_BACKEND=memory: records live in process memory only")
    if settings.CLAIM_RATE_LIMIT_PER_MINUTE > 0:
        await ping_redis()
    yield
    await close_payment_dispatcher()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Added last = outermost: request_id is set before the rate limiter runs.
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


def _render(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(
        exc.code, exc.message, exc.response_data(), request_id_of(request)
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(mode="json"),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _render(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    for err in errors:
        loc = err.get("loc", ())
        if loc and loc[-1] == "outcome" and err.get("type") != "missing":
            return _render(request, InvalidOutcomeError(str(err.get("input"))))
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
        for err in errors
    )
    return _render(request, RequestValidationFailedError(detail or "Invalid request"))


app.include_router(resolve_router, prefix="/api/v1")
app.include_router(claim_router, prefix="/api/v1")
app.include_router(liquidity_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
