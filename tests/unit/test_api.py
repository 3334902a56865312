"""API tests — routers + envelope + error handlers, wired to in-memory stores."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.main import app
from src.pp_admin.application.service import ResolutionService
from src.pp_audit.infrastructure.memory import InMemoryAuditLedger
from src.pp_claim.application.service import ClaimService
from src.pp_common.database import get_db_session
from src.pp_common.enums import MarketStatus, Side
from src.pp_liquidity.application.service import LiquidityService
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition
from src.pp_market.infrastructure.memory import InMemoryMarketRepository
from src.pp_payment.domain.dispatcher import PaymentDispatchError


@pytest.fixture
def repo() -> InMemoryMarketRepository:
    r = InMemoryMarketRepository()
    r.add_market(
        Market(
            id="mkt-1",
            title="Will it rain?",
            yes_pool=Decimal("70"),
            no_pool=Decimal("30"),
            total_lp_shares=Decimal("100"),
            status=MarketStatus.ACTIVE,
        )
    )
    for pid, owner, side, staked, shares in [
        ("p1", "alice", Side.YES, "28", "40"),
        ("p2", "bob", Side.YES, "42", "60"),
        ("p3", "alice", Side.NO, "30", "30"),
    ]:
        r.add_stake_position(
            StakePosition(
                id=pid, market_id="mkt-1", owner_id=owner, side=side,
                staked_amount=Decimal(staked), shares=Decimal(shares),
            )
        )
    r.add_liquidity_position(
        LiquidityPosition(
            id="lp1", market_id="mkt-1", owner_id="carol",
            deposited_amount=Decimal("10"), shares=Decimal("100"),
        )
    )
    return r


@pytest.fixture
def dispatcher() -> MagicMock:
    d = MagicMock()
    d.dispatch = AsyncMock(return_value="pay_api")
    return d


@pytest.fixture(autouse=True)
def wired(monkeypatch, repo, dispatcher):
    ledger = InMemoryAuditLedger()
    monkeypatch.setattr(
        "src.pp_admin.api.router._service",
        ResolutionService(repo=repo, ledger=ledger, resolver_ids=["admin"]),
    )
    monkeypatch.setattr(
        "src.pp_claim.api.router._service",
        ClaimService(repo=repo, ledger=ledger, dispatcher=dispatcher),
    )
    monkeypatch.setattr(
        "src.pp_liquidity.api.router._service",
        LiquidityService(repo=repo),
    )

    async def _session():
        yield AsyncMock()

    app.dependency_overrides[get_db_session] = _session
    yield ledger
    app.dependency_overrides.clear()


async def _resolve(client, outcome: str = "yes", by: str = "admin"):
    return await client.post(
        "/api/v1/resolve",
        json={"marketId": "mkt-1", "outcome": outcome, "authorizedBy": by},
    )


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestResolveApi:
    @pytest.mark.asyncio
    async def test_resolve_returns_summary(self, client) -> None:
        resp = await _resolve(client)
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["request_id"].startswith("req_")
        summary = body["data"]["summary"]
        assert summary["totalPool"] == "100"
        assert summary["totalWinners"] == 2
        assert summary["totalWinnerPayouts"] == "100.000000"
        assert body["data"]["resolvedAt"] is not None

    @pytest.mark.asyncio
    async def test_resolve_twice_conflict(self, client) -> None:
        await _resolve(client)
        resp = await _resolve(client, outcome="no")
        assert resp.status_code == 409
        assert resp.json()["code"] == 3002

    @pytest.mark.asyncio
    async def test_invalid_outcome(self, client) -> None:
        resp = await _resolve(client, outcome="maybe")
        assert resp.status_code == 400
        assert resp.json()["code"] == 1002

    @pytest.mark.asyncio
    async def test_missing_field(self, client) -> None:
        resp = await client.post("/api/v1/resolve", json={"marketId": "mkt-1"})
        assert resp.status_code == 400
        assert resp.json()["code"] == 1001

    @pytest.mark.asyncio
    async def test_unauthorized(self, client) -> None:
        resp = await _resolve(client, by="mallory")
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_market(self, client) -> None:
        resp = await client.post(
            "/api/v1/resolve",
            json={"marketId": "nope", "outcome": "yes", "authorizedBy": "admin"},
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_status_before_and_after(self, client) -> None:
        before = await client.get("/api/v1/resolve", params={"marketId": "mkt-1"})
        assert before.json()["data"]["resolved"] is False
        await _resolve(client, outcome="cancelled")
        after = await client.get("/api/v1/resolve", params={"marketId": "mkt-1"})
        data = after.json()["data"]
        assert data["resolved"] is True
        assert data["status"] == "cancelled"
        assert data["summary"]["totalLpPayouts"] == "10"


class TestClaimApi:
    @pytest.mark.asyncio
    async def test_claim_winner(self, client, wired) -> None:
        await _resolve(client)
        resp = await client.post("/api/v1/claim", json={"ownerId": "alice", "positionId": "p1"})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["amount"] == "40.000000"
        assert data["paymentReference"] == "pay_api"
        assert len(wired.entries) == 2  # resolution + payout

    @pytest.mark.asyncio
    async def test_claim_before_resolution(self, client) -> None:
        resp = await client.post("/api/v1/claim", json={"ownerId": "alice", "positionId": "p1"})
        assert resp.status_code == 400
        assert resp.json()["code"] == 3003

    @pytest.mark.asyncio
    async def test_loser_reports_zero(self, client) -> None:
        await _resolve(client)
        resp = await client.post("/api/v1/claim", json={"ownerId": "alice", "positionId": "p3"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == 5004
        assert body["data"] == {"amount": "0"}

    @pytest.mark.asyncio
    async def test_double_claim(self, client) -> None:
        await _resolve(client)
        payload = {"ownerId": "alice", "positionId": "p1"}
        await client.post("/api/v1/claim", json=payload)
        resp = await client.post("/api/v1/claim", json=payload)
        assert resp.status_code == 400
        assert resp.json()["code"] == 5003

    @pytest.mark.asyncio
    async def test_requires_exactly_one_identifier(self, client) -> None:
        none = await client.post("/api/v1/claim", json={"ownerId": "alice"})
        both = await client.post(
            "/api/v1/claim", json={"ownerId": "alice", "positionId": "p1", "lpPositionId": "lp1"}
        )
        assert none.status_code == 400
        assert none.json()["code"] == 1003
        assert both.json()["code"] == 1003

    @pytest.mark.asyncio
    async def test_dispatch_failure_envelope(self, client, dispatcher) -> None:
        dispatcher.dispatch.side_effect = PaymentDispatchError("rejected")
        await _resolve(client)
        resp = await client.post("/api/v1/claim", json={"ownerId": "alice", "positionId": "p1"})
        assert resp.status_code == 500
        data = resp.json()["data"]
        assert data["amount"] == "40.000000"
        assert data["canManualClaim"] is True
        assert data["pendingReconciliation"] is False

    @pytest.mark.asyncio
    async def test_list_claimable(self, client) -> None:
        await _resolve(client, outcome="cancelled")
        resp = await client.get("/api/v1/claim", params={"owner": "alice"})
        data = resp.json()["data"]
        assert {p["positionId"] for p in data["claimablePositions"]} == {"p1", "p3"}
        assert data["claimableLPPositions"] == []
        assert data["totalClaimable"] == "58"


class TestLiquidityApi:
    @pytest.mark.asyncio
    async def test_add_liquidity(self, client) -> None:
        resp = await client.post(
            "/api/v1/markets/mkt-1/liquidity", json={"ownerId": "dave", "amount": "10"}
        )
        assert resp.status_code == 200
        position = resp.json()["data"]["position"]
        assert position["id"].startswith("lp_")
        assert Decimal(position["shares"]) == Decimal("10")
        assert position["depositedAmount"] == "10.000000"

    @pytest.mark.asyncio
    async def test_add_liquidity_after_resolution(self, client) -> None:
        await _resolve(client)
        resp = await client.post(
            "/api/v1/markets/mkt-1/liquidity", json={"ownerId": "dave", "amount": "10"}
        )
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_amount_out_of_range(self, client) -> None:
        resp = await client.post(
            "/api/v1/markets/mkt-1/liquidity", json={"ownerId": "dave", "amount": "5000"}
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == 1004

    @pytest.mark.asyncio
    async def test_pool_summary_and_preview(self, client) -> None:
        summary = await client.get("/api/v1/markets/mkt-1/liquidity")
        assert summary.json()["data"]["lpCount"] == 1
        preview = await client.get(
            "/api/v1/markets/mkt-1/liquidity/preview", params={"amount": "50"}
        )
        assert Decimal(preview.json()["data"]["expectedShares"]) == Decimal("50")
