"""Shared test fixtures."""

import os

# Unit tests run against the in-memory store with the Redis limiter off;
# these must be set before config.settings is first imported.
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("CLAIM_RATE_LIMIT_PER_MINUTE", "0")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
