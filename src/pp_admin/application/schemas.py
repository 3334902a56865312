"""Pydantic schemas for the resolution API.

Wire format is camelCase; all monetary fields are decimals serialized as strings.
"""

from decimal import Decimal

from pydantic import Field

from src.pp_common.datetime_utils import to_iso
from src.pp_common.enums import MarketStatus, Outcome
from src.pp_common.schemas import CamelModel
from src.pp_market.domain.models import Market
from src.pp_settlement.domain.models import ResolutionSummary

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ResolveRequest(CamelModel):
    market_id: str = Field(..., min_length=1)
    outcome: Outcome
    authorized_by: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SummaryOut(CamelModel):
    market_id: str
    outcome: Outcome
    total_pool: Decimal
    total_positions: int
    total_winners: int
    total_losers: int
    total_winner_payouts: Decimal
    total_lp_payouts: Decimal

    @classmethod
    def from_domain(cls, s: ResolutionSummary) -> "SummaryOut":
        return cls(
            market_id=s.market_id,
            outcome=s.outcome,
            total_pool=s.total_pool,
            total_positions=s.total_positions,
            total_winners=s.total_winners,
            total_losers=s.total_losers,
            total_winner_payouts=s.total_winner_payouts,
            total_lp_payouts=s.total_lp_payouts,
        )


class ResolveResponse(CamelModel):
    summary: SummaryOut
    resolved_at: str | None


class ResolutionStatusResponse(CamelModel):
    resolved: bool
    status: MarketStatus
    outcome: Outcome | None = None
    resolved_at: str | None = None
    summary: SummaryOut | None = None

    @classmethod
    def unresolved(cls, market: Market) -> "ResolutionStatusResponse":
        return cls(resolved=False, status=market.status)

    @classmethod
    def from_domain(
        cls, market: Market, summary: ResolutionSummary
    ) -> "ResolutionStatusResponse":
        return cls(
            resolved=True,
            status=market.status,
            outcome=market.outcome,
            resolved_at=to_iso(market.resolved_at),
            summary=SummaryOut.from_domain(summary),
        )
