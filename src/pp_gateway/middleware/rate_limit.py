"""Rate limiting middleware for the claim endpoint.

Fixed-window counter in Redis, keyed per client IP:
    key   = "ratelimit:{ip}:claim:{window}"
    count = INCR key            (EXPIRE on the first hit of the window)
    count > limit  ->  429, RateLimitError (9001), Retry-After header

Only POST /api/v1/claim is limited. A limit of 0 disables the middleware.
Claim serialization never depends on this: at-most-once payout is enforced by
the conditional write in the store.
"""

import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config.settings import settings
from src.pp_common.errors import RateLimitError
from src.pp_common.redis_client import incr_window
from src.pp_common.response import error_response, request_id_of

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
LIMITED_ROUTES = {("POST", "/api/v1/claim")}


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limit_per_minute: int | None = None) -> None:
        super().__init__(app)
        self._limit = (
            settings.CLAIM_RATE_LIMIT_PER_MINUTE
            if limit_per_minute is None
            else limit_per_minute
        )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self._limit <= 0 or (request.method, request.url.path) not in LIMITED_ROUTES:
            return await call_next(request)

        window = int(time.time()) // WINDOW_SECONDS
        key = f"ratelimit:{client_ip(request)}:claim:{window}"
        try:
            count = await incr_window(key, WINDOW_SECONDS)
        except RedisError:
            # Limiter unavailable: let the request through, the claim path is safe without it.
            logger.warning("Rate limiter unavailable, skipping check: key=%s", key)
            return await call_next(request)

        if count > self._limit:
            exc = RateLimitError()
            resp = error_response(exc.code, exc.message, request_id=request_id_of(request))
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(mode="json"),
                headers={"Retry-After": str(WINDOW_SECONDS - int(time.time()) % WINDOW_SECONDS)},
            )
        return await call_next(request)
