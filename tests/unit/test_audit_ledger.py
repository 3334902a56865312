"""Tests for the audit ledger implementations."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.pp_audit.domain.models import AuditEntry
from src.pp_audit.infrastructure.memory import InMemoryAuditLedger
from src.pp_audit.infrastructure.persistence import AuditLedgerRepository
from src.pp_common.enums import RecordKind, TransactionStatus, TransactionType

ENTRY = AuditEntry(
    owner_id="alice",
    market_id="mkt-1",
    type=TransactionType.PAYOUT,
    amount=Decimal("40.000000"),
    reference="sim_abc",
    record_kind=RecordKind.STAKE,
    record_id="pos-1",
)


class TestInMemoryAuditLedger:
    @pytest.mark.asyncio
    async def test_append_and_list(self) -> None:
        ledger = InMemoryAuditLedger()
        tx = await ledger.append(None, ENTRY)
        assert tx.id.startswith("tx_")
        assert tx.status == TransactionStatus.CONFIRMED
        assert await ledger.list_by_market(None, "mkt-1") == [tx]
        assert await ledger.list_by_market(None, "mkt-2") == []


class TestAuditLedgerRepository:
    @pytest.mark.asyncio
    async def test_append_binds_enum_values(self) -> None:
        row = MagicMock(
            id="tx_1",
            owner_id="alice",
            market_id="mkt-1",
            type="payout",
            amount=Decimal("40.000000"),
            reference="sim_abc",
            status="pending",
            record_kind="stake",
            record_id="pos-1",
            created_at=datetime.now(UTC),
        )
        result_mock = MagicMock()
        result_mock.fetchone.return_value = row
        db = MagicMock()
        db.execute = AsyncMock(return_value=result_mock)

        tx = await AuditLedgerRepository().append(db, ENTRY)

        params = db.execute.call_args.args[1]
        assert params["type"] == "payout"
        assert params["status"] == "confirmed"
        assert params["record_kind"] == "stake"
        assert params["id"].startswith("tx_")
        assert tx.status == TransactionStatus.PENDING
        assert tx.record_kind == RecordKind.STAKE

    @pytest.mark.asyncio
    async def test_resolution_entry_has_no_record(self) -> None:
        row = MagicMock(
            id="tx_2", owner_id="admin", market_id="mkt-1", type="resolution",
            amount=Decimal("0"), reference="manual-resolution:yes", status="confirmed",
            record_kind=None, record_id=None, created_at=datetime.now(UTC),
        )
        result_mock = MagicMock()
        result_mock.fetchone.return_value = row
        db = MagicMock()
        db.execute = AsyncMock(return_value=result_mock)

        entry = AuditEntry(
            owner_id="admin", market_id="mkt-1", type=TransactionType.RESOLUTION,
            amount=Decimal("0"), reference="manual-resolution:yes",
        )
        tx = await AuditLedgerRepository().append(db, entry)

        assert db.execute.call_args.args[1]["record_kind"] is None
        assert tx.record_kind is None
