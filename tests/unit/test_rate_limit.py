"""Tests for RateLimitMiddleware — Redis fixed window on the claim route."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from src.pp_gateway.middleware.rate_limit import RateLimitMiddleware


def _app(limit: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, limit_per_minute=limit)

    @app.post("/api/v1/claim")
    async def claim() -> dict[str, str]:
        return {"ok": "yes"}

    @app.get("/api/v1/claim")
    async def listing() -> dict[str, str]:
        return {"ok": "yes"}

    return app


async def _post(app: FastAPI, headers: dict[str, str] | None = None):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        return await ac.post("/api/v1/claim", headers=headers or {})


class TestRateLimitMiddleware:
    @pytest.mark.asyncio
    async def test_under_limit_passes(self) -> None:
        with patch(
            "src.pp_gateway.middleware.rate_limit.incr_window", AsyncMock(return_value=3)
        ):
            resp = await _post(_app(limit=3))
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_over_limit_rejected(self) -> None:
        with patch(
            "src.pp_gateway.middleware.rate_limit.incr_window", AsyncMock(return_value=4)
        ):
            resp = await _post(_app(limit=3))
        assert resp.status_code == 429
        body = resp.json()
        assert body["code"] == 9001
        assert "Retry-After" in resp.headers

    @pytest.mark.asyncio
    async def test_keyed_on_forwarded_ip(self) -> None:
        incr = AsyncMock(return_value=1)
        with patch("src.pp_gateway.middleware.rate_limit.incr_window", incr):
            await _post(_app(limit=3), headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        key = incr.await_args.args[0]
        assert key.startswith("ratelimit:203.0.113.9:claim:")

    @pytest.mark.asyncio
    async def test_get_not_limited(self) -> None:
        incr = AsyncMock(return_value=100)
        with patch("src.pp_gateway.middleware.rate_limit.incr_window", incr):
            async with AsyncClient(
                transport=ASGITransport(app=_app(limit=3)), base_url="http://test"
            ) as ac:
                resp = await ac.get("/api/v1/claim")
        assert resp.status_code == 200
        incr.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_disables(self) -> None:
        incr = AsyncMock(return_value=100)
        with patch("src.pp_gateway.middleware.rate_limit.incr_window", incr):
            resp = await _post(_app(limit=0))
        assert resp.status_code == 200
        incr.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_down_fails_open(self) -> None:
        incr = AsyncMock(side_effect=RedisConnectionError("down"))
        with patch("src.pp_gateway.middleware.rate_limit.incr_window", incr):
            resp = await _post(_app(limit=3))
        assert resp.status_code == 200
