"""Request logging middleware.

Assigns the request id that ends up in the response envelope and logs one
line per request:

    INFO    [POST] /api/v1/claim → 200 (23ms) req_1a2b3c4d5e6f
    WARNING [POST] /api/v1/claim → 429 (1ms) req_...
    ERROR   [POST] /api/v1/claim → 500 (10012ms) req_...

/health is not logged; load balancers poll it every few seconds.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.pp_common.response import new_request_id

logger = logging.getLogger("pp.request")

QUIET_PATHS = frozenset({"/health"})


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code == 429:
        return logging.WARNING
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = new_request_id()

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if request.url.path not in QUIET_PATHS:
            logger.log(
                _level_for(response.status_code),
                "[%s] %s → %d (%.0fms) %s",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request.state.request_id,
            )
        return response
