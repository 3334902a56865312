# src/pp_admin/application/service.py
"""ResolutionService — the only component allowed to finalize a market outcome.

State machine over Market.status:  active --resolve(outcome)--> resolved | cancelled
(terminal). Resolution fixes the outcome and makes records claimable; it never
dispatches payouts.

The status write is a compare-and-swap on status = 'active', so two concurrent
resolutions cannot both succeed: the loser sees MarketNotActiveError.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pp_admin.application.schemas import (
    ResolutionStatusResponse,
    ResolveResponse,
    SummaryOut,
)
from src.pp_audit.domain.models import AuditEntry
from src.pp_audit.domain.repository import AuditLedgerProtocol
from src.pp_audit.infrastructure.factory import build_audit_ledger
from src.pp_common.amounts import ZERO
from src.pp_common.datetime_utils import to_iso, utc_now
from src.pp_common.enums import MarketStatus, Outcome, TransactionType
from src.pp_common.errors import (
    AppError,
    MarketNotActiveError,
    MarketNotFoundError,
    PersistenceError,
    UnauthorizedResolverError,
)
from src.pp_market.domain.models import Market
from src.pp_market.domain.repository import MarketRepositoryProtocol
from src.pp_market.infrastructure.factory import build_market_repository
from src.pp_settlement.domain.invariants import check_summary_invariants, is_dead_pool
from src.pp_settlement.domain.models import ResolutionSummary
from src.pp_settlement.domain.payouts import build_resolution_summary

logger = logging.getLogger(__name__)


class ResolutionService:
    def __init__(
        self,
        repo: MarketRepositoryProtocol | None = None,
        ledger: AuditLedgerProtocol | None = None,
        resolver_ids: list[str] | None = None,
    ) -> None:
        self._repo: MarketRepositoryProtocol = repo or build_market_repository()
        self._ledger: AuditLedgerProtocol = ledger or build_audit_ledger()
        self._resolver_ids = (
            settings.RESOLVER_IDS if resolver_ids is None else resolver_ids
        )

    async def resolve(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: Outcome,
        authorized_by: str,
    ) -> ResolveResponse:
        if self._resolver_ids and authorized_by not in self._resolver_ids:
            raise UnauthorizedResolverError(authorized_by)

        try:
            market = await self._repo.get_market(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if not market.is_active:
                raise MarketNotActiveError(market_id, market.status.value)

            summary = await self._summarize(db, market, outcome)

            new_status = (
                MarketStatus.CANCELLED if outcome == Outcome.CANCELLED else MarketStatus.RESOLVED
            )
            resolved = await self._repo.transition_market_status(
                db, market_id, new_status, outcome, utc_now()
            )
            if resolved is None:
                # Lost the compare-and-swap to a concurrent resolution.
                raise MarketNotActiveError(market_id)

            await self._ledger.append(
                db,
                AuditEntry(
                    owner_id=authorized_by,
                    market_id=market_id,
                    type=TransactionType.RESOLUTION,
                    amount=ZERO,
                    reference=f"manual-resolution:{outcome.value}",
                ),
            )
            await db.commit()
        except AppError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Resolution failed to persist: market=%s", market_id)
            raise PersistenceError(f"Failed to resolve market {market_id}") from e

        logger.info(
            "Market resolved: market=%s outcome=%s by=%s pool=%s winners=%d",
            market_id,
            outcome.value,
            authorized_by,
            summary.total_pool,
            summary.total_winners,
        )
        return ResolveResponse(
            summary=SummaryOut.from_domain(summary),
            resolved_at=to_iso(resolved.resolved_at),
        )

    async def get_resolution_status(
        self, db: AsyncSession, market_id: str
    ) -> ResolutionStatusResponse:
        """Read-only: re-derives the summary, never writes."""
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.is_active or market.outcome is None:
            return ResolutionStatusResponse.unresolved(market)
        summary = await self._summarize(db, market, market.outcome)
        return ResolutionStatusResponse.from_domain(market, summary)

    async def _summarize(
        self, db: AsyncSession, market: Market, outcome: Outcome
    ) -> ResolutionSummary:
        positions = await self._repo.list_stake_positions_by_market(db, market.id)
        lp_positions = await self._repo.list_liquidity_positions_by_market(db, market.id)
        summary = build_resolution_summary(market, positions, lp_positions, outcome)
        check_summary_invariants(summary, market, positions, lp_positions)
        if is_dead_pool(summary):
            logger.warning(
                "Pool has no claimant: market=%s outcome=%s pool=%s",
                market.id,
                outcome.value,
                summary.total_pool,
            )
        return summary
