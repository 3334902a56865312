"""Tests for InMemoryMarketRepository — copy-on-read and compare-and-swap writes."""

import asyncio
from decimal import Decimal

import pytest

from src.pp_common.datetime_utils import utc_now
from src.pp_common.enums import MarketStatus, Outcome, Side
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition
from src.pp_market.infrastructure.memory import InMemoryMarketRepository

DB = None  # the in-memory store ignores the session


@pytest.fixture
def repo() -> InMemoryMarketRepository:
    r = InMemoryMarketRepository()
    r.add_market(
        Market(
            id="mkt-1",
            title="Test",
            yes_pool=Decimal("10"),
            no_pool=Decimal("10"),
            total_lp_shares=Decimal("0"),
            status=MarketStatus.ACTIVE,
        )
    )
    r.add_stake_position(
        StakePosition(
            id="pos-1",
            market_id="mkt-1",
            owner_id="alice",
            side=Side.YES,
            staked_amount=Decimal("10"),
            shares=Decimal("10"),
        )
    )
    r.add_liquidity_position(
        LiquidityPosition(
            id="lp-1",
            market_id="mkt-1",
            owner_id="bob",
            deposited_amount=Decimal("5"),
            shares=Decimal("500"),
        )
    )
    return r


class TestReads:
    @pytest.mark.asyncio
    async def test_reads_return_copies(self, repo) -> None:
        market = await repo.get_market(DB, "mkt-1")
        market.yes_pool = Decimal("999")
        again = await repo.get_market(DB, "mkt-1")
        assert again.yes_pool == Decimal("10")

    @pytest.mark.asyncio
    async def test_missing_market(self, repo) -> None:
        assert await repo.get_market(DB, "nope") is None

    @pytest.mark.asyncio
    async def test_get_markets_by_ids_skips_unknown(self, repo) -> None:
        markets = await repo.get_markets_by_ids(DB, ["mkt-1", "nope"])
        assert [m.id for m in markets] == ["mkt-1"]

    @pytest.mark.asyncio
    async def test_lists_by_owner_and_market(self, repo) -> None:
        assert [p.id for p in await repo.list_stake_positions_by_owner(DB, "alice")] == ["pos-1"]
        assert await repo.list_stake_positions_by_owner(DB, "bob") == []
        lps = await repo.list_liquidity_positions_by_market(DB, "mkt-1")
        assert [lp.id for lp in lps] == ["lp-1"]


class TestMarketTransitions:
    @pytest.mark.asyncio
    async def test_transition_once(self, repo) -> None:
        now = utc_now()
        first = await repo.transition_market_status(
            DB, "mkt-1", MarketStatus.RESOLVED, Outcome.YES, now
        )
        second = await repo.transition_market_status(
            DB, "mkt-1", MarketStatus.CANCELLED, Outcome.CANCELLED, now
        )
        assert first is not None
        assert first.outcome == Outcome.YES
        assert first.resolved_at == now
        assert second is None

    @pytest.mark.asyncio
    async def test_deposit_rejected_after_resolution(self, repo) -> None:
        await repo.transition_market_status(
            DB, "mkt-1", MarketStatus.RESOLVED, Outcome.NO, utc_now()
        )
        result = await repo.apply_liquidity_deposit(
            DB, "mkt-1", Decimal("1"), Decimal("1"), Decimal("10")
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_deposit_grows_pool(self, repo) -> None:
        market = await repo.apply_liquidity_deposit(
            DB, "mkt-1", Decimal("1"), Decimal("2"), Decimal("30")
        )
        assert market.yes_pool == Decimal("11")
        assert market.no_pool == Decimal("12")
        assert market.total_lp_shares == Decimal("30")


class TestClaimFlags:
    @pytest.mark.asyncio
    async def test_reserve_then_release_stake(self, repo) -> None:
        reserved = await repo.reserve_stake_claim(DB, "pos-1")
        assert reserved.claimed is True
        assert await repo.reserve_stake_claim(DB, "pos-1") is None
        released = await repo.release_stake_claim(DB, "pos-1")
        assert released.claimed is False
        assert await repo.release_stake_claim(DB, "pos-1") is None

    @pytest.mark.asyncio
    async def test_concurrent_reserve_single_winner(self, repo) -> None:
        results = await asyncio.gather(
            *(repo.reserve_stake_claim(DB, "pos-1") for _ in range(10))
        )
        assert sum(r is not None for r in results) == 1

    @pytest.mark.asyncio
    async def test_reserve_then_release_lp(self, repo) -> None:
        now = utc_now()
        reserved = await repo.reserve_liquidity_withdrawal(DB, "lp-1", now)
        assert reserved.withdrawn_at == now
        assert await repo.reserve_liquidity_withdrawal(DB, "lp-1", now) is None
        released = await repo.release_liquidity_withdrawal(DB, "lp-1")
        assert released.withdrawn_at is None

    @pytest.mark.asyncio
    async def test_insert_liquidity_position(self, repo) -> None:
        lp = await repo.insert_liquidity_position(
            DB, "mkt-1", "carol", Decimal("2"), Decimal("200")
        )
        assert lp.id.startswith("lp_")
        stored = await repo.get_liquidity_position(DB, lp.id)
        assert stored.owner_id == "carol"
        assert stored.withdrawn_at is None
