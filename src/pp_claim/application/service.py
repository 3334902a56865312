"""ClaimService — per-record claim workflow with at-most-once payout.

Flow for one record (stake or LP deposit):
  1. load + ownership check             -> PositionNotFoundError
  2. claimed / withdrawn already        -> AlreadyClaimedError
  3. market resolved or cancelled       -> MarketNotResolvedError
  4. recompute the owed amount from the full current record set
  5. losing stake (owed 0)              -> NotAWinnerError, nothing dispatched
  6. reserve: conditional write claimed=false -> true, committed BEFORE dispatch;
     only one concurrent caller can win this write
  7. dispatch with a deterministic idempotency key, time-bounded
  8. success      -> confirmed audit entry
     definitive   -> compensating release, PayoutDispatchFailedError (retry allowed)
     ambiguous    -> (unknown outcome, timeout, cancellation, any unexpected error)
                     record stays reserved, pending audit entry,
                     PayoutDispatchFailedError(pending_reconciliation=True);
                     a cancelled request re-raises the cancellation instead

An LP deposit whose residual share is 0 is closed out without a dispatch.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pp_audit.domain.models import AuditEntry
from src.pp_audit.domain.repository import AuditLedgerProtocol
from src.pp_audit.infrastructure.factory import build_audit_ledger
from src.pp_claim.application.schemas import (
    ClaimableLPPositionOut,
    ClaimablePositionOut,
    ClaimableResponse,
    ClaimResponse,
)
from src.pp_common.amounts import ZERO, quantize_amount
from src.pp_common.datetime_utils import utc_now
from src.pp_common.enums import (
    MarketStatus,
    RecordKind,
    TransactionStatus,
    TransactionType,
)
from src.pp_common.errors import (
    AlreadyClaimedError,
    AppError,
    LiquidityPositionNotFoundError,
    MarketNotFoundError,
    MarketNotResolvedError,
    NotAWinnerError,
    PayoutDispatchFailedError,
    PersistenceError,
    PositionNotFoundError,
)
from src.pp_market.domain.models import Market
from src.pp_market.domain.repository import MarketRepositoryProtocol
from src.pp_market.infrastructure.factory import build_market_repository
from src.pp_payment.domain.dispatcher import (
    PaymentDispatchError,
    PaymentDispatcherProtocol,
    PaymentOutcomeUnknownError,
    idempotency_key_for,
)
from src.pp_payment.infrastructure.factory import build_payment_dispatcher
from src.pp_settlement.domain.models import ResolutionSummary
from src.pp_settlement.domain.payouts import (
    build_resolution_summary,
    find_lp_payout,
    find_position_payout,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Claim:
    kind: RecordKind
    record_id: str
    owner_id: str
    market_id: str
    amount: Decimal
    tx_type: TransactionType


class ClaimService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        ledger: AuditLedgerProtocol | None = None,
        dispatcher: PaymentDispatcherProtocol | None = None,
        dispatch_timeout: float | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or build_market_repository()
        self._ledger: AuditLedgerProtocol = ledger or build_audit_ledger()
        self._dispatcher: PaymentDispatcherProtocol = (
            dispatcher or build_payment_dispatcher()
        )
        self._dispatch_timeout = (
            settings.PAYMENT_DISPATCH_TIMEOUT_SECONDS
            if dispatch_timeout is None
            else dispatch_timeout
        )

    # ------------------------------------------------------------------
    # claim
    # ------------------------------------------------------------------

    async def claim(
        self,
        db: AsyncSession,
        owner_id: str,
        record_id: str,
        kind: RecordKind,
    ) -> ClaimResponse:
        if kind == RecordKind.STAKE:
            claim = await self._prepare_stake_claim(db, owner_id, record_id)
        else:
            claim = await self._prepare_liquidity_claim(db, owner_id, record_id)
        return await self._settle(db, claim)

    async def _prepare_stake_claim(
        self, db: AsyncSession, owner_id: str, position_id: str
    ) -> _Claim:
        position = await self._repo.get_stake_position(db, position_id)
        if position is None or position.owner_id != owner_id:
            raise PositionNotFoundError(position_id)
        if position.claimed:
            raise AlreadyClaimedError(position_id)

        market = await self._load_settleable_market(db, position.market_id)
        summary = await self._summary_for(db, market)
        amount = find_position_payout(summary, position.id)
        if amount <= 0:
            raise NotAWinnerError(position_id)

        return _Claim(
            kind=RecordKind.STAKE,
            record_id=position.id,
            owner_id=owner_id,
            market_id=market.id,
            amount=amount,
            tx_type=(
                TransactionType.REFUND
                if market.status == MarketStatus.CANCELLED
                else TransactionType.PAYOUT
            ),
        )

    async def _prepare_liquidity_claim(
        self, db: AsyncSession, owner_id: str, lp_position_id: str
    ) -> _Claim:
        lp = await self._repo.get_liquidity_position(db, lp_position_id)
        if lp is None or lp.owner_id != owner_id:
            raise LiquidityPositionNotFoundError(lp_position_id)
        if lp.is_withdrawn:
            raise AlreadyClaimedError(lp_position_id)

        market = await self._load_settleable_market(db, lp.market_id)
        summary = await self._summary_for(db, market)
        return _Claim(
            kind=RecordKind.LIQUIDITY,
            record_id=lp.id,
            owner_id=owner_id,
            market_id=market.id,
            amount=find_lp_payout(summary, lp.id),
            tx_type=TransactionType.LP_WITHDRAWAL,
        )

    async def _settle(self, db: AsyncSession, claim: _Claim) -> ClaimResponse:
        await self._reserve(db, claim)

        if claim.amount == 0:
            # Nothing owed (LP with no residual): close the record, no dispatch.
            await self._write_audit(db, claim, "no-payout", TransactionStatus.CONFIRMED)
            return self._response(claim, None)

        key = idempotency_key_for(claim.kind.value, claim.record_id)
        try:
            reference = await asyncio.wait_for(
                self._dispatcher.dispatch(claim.owner_id, claim.amount, key),
                timeout=self._dispatch_timeout,
            )
        except PaymentDispatchError as e:
            logger.warning(
                "Payout failed, releasing claim: %s=%s amount=%s reason=%s",
                claim.kind.value,
                claim.record_id,
                claim.amount,
                e.reason,
            )
            await self._release(db, claim)
            raise PayoutDispatchFailedError(claim.record_id, claim.amount) from e
        except (PaymentOutcomeUnknownError, asyncio.TimeoutError) as e:
            raise await self._hold_for_reconciliation(db, claim, key, repr(e)) from e
        except asyncio.CancelledError:
            # Caller went away mid-dispatch; money may have moved. Record it, then
            # let the cancellation propagate.
            await asyncio.shield(self._hold_for_reconciliation(db, claim, key, "cancelled"))
            raise
        except Exception as e:
            logger.exception(
                "Unexpected dispatch error: %s=%s key=%s", claim.kind.value, claim.record_id, key
            )
            raise await self._hold_for_reconciliation(db, claim, key, repr(e)) from e

        await self._write_audit(db, claim, reference, TransactionStatus.CONFIRMED)
        logger.info(
            "Payout confirmed: %s=%s owner=%s amount=%s ref=%s",
            claim.kind.value,
            claim.record_id,
            claim.owner_id,
            claim.amount,
            reference,
        )
        return self._response(claim, reference)

    async def _hold_for_reconciliation(
        self, db: AsyncSession, claim: _Claim, key: str, reason: str
    ) -> PayoutDispatchFailedError:
        """Outcome unknown: keep the reservation, leave a pending audit entry."""
        logger.error(
            "Payout outcome unknown, claim stays reserved: %s=%s amount=%s key=%s reason=%s",
            claim.kind.value,
            claim.record_id,
            claim.amount,
            key,
            reason,
        )
        await self._write_audit(db, claim, key, TransactionStatus.PENDING)
        return PayoutDispatchFailedError(
            claim.record_id, claim.amount, pending_reconciliation=True
        )

    async def _reserve(self, db: AsyncSession, claim: _Claim) -> None:
        """Conditional claimed/withdrawn write, committed before any dispatch."""
        try:
            if claim.kind == RecordKind.STAKE:
                reserved = await self._repo.reserve_stake_claim(db, claim.record_id)
            else:
                reserved = await self._repo.reserve_liquidity_withdrawal(
                    db, claim.record_id, utc_now()
                )
            if reserved is None:
                raise AlreadyClaimedError(claim.record_id)
            await db.commit()
        except AppError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise PersistenceError(f"Failed to reserve claim {claim.record_id}") from e

    async def _release(self, db: AsyncSession, claim: _Claim) -> None:
        """Compensating write after a definitive dispatch failure."""
        try:
            if claim.kind == RecordKind.STAKE:
                await self._repo.release_stake_claim(db, claim.record_id)
            else:
                await self._repo.release_liquidity_withdrawal(db, claim.record_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception(
                "Release failed, claim needs manual reset: %s=%s",
                claim.kind.value,
                claim.record_id,
            )
            raise PersistenceError(f"Failed to release claim {claim.record_id}") from e

    async def _write_audit(
        self,
        db: AsyncSession,
        claim: _Claim,
        reference: str,
        status: TransactionStatus,
    ) -> None:
        try:
            await self._ledger.append(
                db,
                AuditEntry(
                    owner_id=claim.owner_id,
                    market_id=claim.market_id,
                    type=claim.tx_type,
                    amount=claim.amount,
                    reference=reference,
                    status=status,
                    record_kind=claim.kind,
                    record_id=claim.record_id,
                ),
            )
            await db.commit()
        except SQLAlchemyError:
            # The record is already reserved and money may have moved; the
            # claim itself stands. The gap is left for reconciliation.
            await db.rollback()
            logger.exception(
                "Audit write failed: %s=%s amount=%s ref=%s status=%s",
                claim.kind.value,
                claim.record_id,
                claim.amount,
                reference,
                status.value,
            )

    @staticmethod
    def _response(claim: _Claim, reference: str | None) -> ClaimResponse:
        return ClaimResponse(
            record_id=claim.record_id,
            record_kind=claim.kind,
            amount=claim.amount,
            payment_reference=reference,
        )

    # ------------------------------------------------------------------
    # list_claimable
    # ------------------------------------------------------------------

    async def list_claimable(self, db: AsyncSession, owner_id: str) -> ClaimableResponse:
        """Read-only dashboard of everything the owner could claim right now."""
        positions = await self._repo.list_stake_positions_by_owner(db, owner_id)
        lp_positions = await self._repo.list_liquidity_positions_by_owner(db, owner_id)

        market_ids = sorted(
            {p.market_id for p in positions} | {lp.market_id for lp in lp_positions}
        )
        markets = {
            m.id: m
            for m in await self._repo.get_markets_by_ids(db, market_ids)
            if m.is_settleable
        }
        summaries: dict[str, ResolutionSummary] = {}

        claimable_positions: list[ClaimablePositionOut] = []
        for p in positions:
            if p.claimed or p.market_id not in markets:
                continue
            summary = await self._cached_summary(db, markets[p.market_id], summaries)
            amount = find_position_payout(summary, p.id)
            if amount > 0:
                claimable_positions.append(
                    ClaimablePositionOut(
                        position_id=p.id,
                        market_id=p.market_id,
                        side=p.side,
                        original_amount=p.staked_amount,
                        payout_amount=amount,
                        profit=quantize_amount(amount - p.staked_amount),
                    )
                )

        claimable_lps: list[ClaimableLPPositionOut] = []
        for lp in lp_positions:
            if lp.is_withdrawn or lp.market_id not in markets:
                continue
            summary = await self._cached_summary(db, markets[lp.market_id], summaries)
            amount = find_lp_payout(summary, lp.id)
            if amount > 0:
                claimable_lps.append(
                    ClaimableLPPositionOut(
                        lp_position_id=lp.id,
                        market_id=lp.market_id,
                        original_amount=lp.deposited_amount,
                        payout_amount=amount,
                        profit=quantize_amount(amount - lp.deposited_amount),
                    )
                )

        total = sum((c.payout_amount for c in claimable_positions), ZERO) + sum(
            (c.payout_amount for c in claimable_lps), ZERO
        )
        return ClaimableResponse(
            claimable_positions=claimable_positions,
            claimable_lp_positions=claimable_lps,
            total_claimable=total,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    async def _load_settleable_market(self, db: AsyncSession, market_id: str) -> Market:
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if not market.is_settleable or market.outcome is None:
            raise MarketNotResolvedError(market_id)
        return market

    async def _summary_for(self, db: AsyncSession, market: Market) -> ResolutionSummary:
        """Always from the full current record set, never a cached resolution."""
        assert market.outcome is not None
        positions = await self._repo.list_stake_positions_by_market(db, market.id)
        lp_positions = await self._repo.list_liquidity_positions_by_market(db, market.id)
        return build_resolution_summary(market, positions, lp_positions, market.outcome)

    async def _cached_summary(
        self,
        db: AsyncSession,
        market: Market,
        cache: dict[str, ResolutionSummary],
    ) -> ResolutionSummary:
        if market.id not in cache:
            cache[market.id] = await self._summary_for(db, market)
        return cache[market.id]
