"""Response envelope shared by every endpoint and error handler.

{
    "code": 0,                 // 0 on success, AppError.code otherwise
    "message": "success",
    "data": { ... },           // camelCase payload; dispatch failures keep one here too
    "timestamp": "...",
    "request_id": "req_..."    // same id the request log line carries
}

Money and share values inside `data` are decimal strings.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def request_id_of(request: Request) -> str:
    """Id assigned by RequestLogMiddleware, or a fresh one outside it."""
    return getattr(request.state, "request_id", None) or new_request_id()


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(data=data)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(
    code: int,
    message: str,
    data: Any = None,
    request_id: str | None = None,
) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, data=data)
    if request_id:
        resp.request_id = request_id
    return resp
