"""Integration-test fixtures.

Run against a migrated PostgreSQL:
    STORE_BACKEND=postgres RUN_INTEGRATION=1 pytest tests/integration

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool stays valid across the entire test session.
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from config.settings import settings
from src.main import app
from src.pp_common.database import async_session_factory

if os.environ.get("RUN_INTEGRATION") != "1" or settings.STORE_BACKEND != "postgres":
    pytest.skip(
        "integration tests need RUN_INTEGRATION=1 and STORE_BACKEND=postgres",
        allow_module_level=True,
    )


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def seeded_market() -> dict[str, str]:
    """Fresh Scenario A market (yes 70 / no 30) with three stakes and one LP deposit."""
    suffix = uuid.uuid4().hex[:8]
    ids = {
        "market": f"mkt-it-{suffix}",
        "p1": f"pos-{suffix}-1",
        "p2": f"pos-{suffix}-2",
        "p3": f"pos-{suffix}-3",
        "lp1": f"lp-{suffix}-1",
        "alice": f"alice-{suffix}",
        "bob": f"bob-{suffix}",
        "carol": f"carol-{suffix}",
    }
    async with async_session_factory() as db:
        await db.execute(
            text("""
                INSERT INTO markets (id, title, yes_pool, no_pool, total_lp_shares)
                VALUES (:id, 'Integration market', 70, 30, 100)
            """),
            {"id": ids["market"]},
        )
        for key, owner, side, staked, shares in [
            ("p1", "alice", "yes", 28, 40),
            ("p2", "bob", "yes", 42, 60),
            ("p3", "alice", "no", 30, 30),
        ]:
            await db.execute(
                text("""
                    INSERT INTO stake_positions
                        (id, market_id, owner_id, side, staked_amount, shares)
                    VALUES (:id, :market_id, :owner_id, :side, :staked, :shares)
                """),
                {
                    "id": ids[key],
                    "market_id": ids["market"],
                    "owner_id": ids[owner],
                    "side": side,
                    "staked": staked,
                    "shares": shares,
                },
            )
        await db.execute(
            text("""
                INSERT INTO liquidity_positions
                    (id, market_id, owner_id, deposited_amount, shares)
                VALUES (:id, :market_id, :owner_id, 10, 100)
            """),
            {"id": ids["lp1"], "market_id": ids["market"], "owner_id": ids["carol"]},
        )
        await db.commit()
    return ids
