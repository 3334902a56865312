"""Settlement value types — derived, immutable, recomputable at any time."""

from dataclasses import dataclass, field
from decimal import Decimal

from src.pp_common.enums import Outcome, Side


@dataclass(frozen=True)
class PositionPayout:
    position_id: str
    owner_id: str
    side: Side
    staked_amount: Decimal
    shares: Decimal
    payout: Decimal
    profit: Decimal


@dataclass(frozen=True)
class LPPayout:
    lp_position_id: str
    owner_id: str
    deposited_amount: Decimal
    shares: Decimal
    payout: Decimal
    profit: Decimal


@dataclass(frozen=True)
class ResolutionSummary:
    """Pure function of (market, stakes, LP deposits, outcome). Not a source of truth."""

    market_id: str
    outcome: Outcome
    total_pool: Decimal
    total_positions: int
    total_winners: int
    total_losers: int
    total_winner_payouts: Decimal
    total_lp_payouts: Decimal
    position_payouts: tuple[PositionPayout, ...] = field(default_factory=tuple)
    lp_payouts: tuple[LPPayout, ...] = field(default_factory=tuple)
