"""Payout calculator — pure functions over a pool snapshot and its records.

Nothing here touches storage or raises on business conditions: zero winners
and zero liquidity are valid states that produce empty payout lists.

Winner payout   = total_pool * shares / total_winning_shares
LP payout       = max(0, total_pool - total_winner_payouts) * shares / total_lp_shares
Cancelled       = full refund of the original amount, profit 0

Products are taken before the division so no intermediate ratio is rounded;
each record's final amount is quantized once (6 dp, half away from zero).
There is no remainder redistribution between records.
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from src.pp_common.amounts import ZERO, quantize_amount
from src.pp_common.enums import Outcome
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition
from src.pp_settlement.domain.models import LPPayout, PositionPayout, ResolutionSummary


def compute_winner_payouts(
    positions: Iterable[StakePosition],
    market: Market,
    outcome: Outcome,
) -> list[PositionPayout]:
    """Proportional share of the whole pool for every position on the winning side."""
    total_pool = market.total_pool
    winners = [p for p in positions if p.side.value == outcome.value]
    total_winning_shares = sum((p.shares for p in winners), ZERO)

    if total_winning_shares == 0 or total_pool == 0:
        return []

    payouts: list[PositionPayout] = []
    for p in winners:
        payout = quantize_amount(total_pool * p.shares / total_winning_shares)
        payouts.append(
            PositionPayout(
                position_id=p.id,
                owner_id=p.owner_id,
                side=p.side,
                staked_amount=p.staked_amount,
                shares=p.shares,
                payout=payout,
                profit=quantize_amount(payout - p.staked_amount),
            )
        )
    return payouts


def compute_cancelled_payouts(positions: Iterable[StakePosition]) -> list[PositionPayout]:
    """Every position, either side, gets exactly its stake back."""
    return [
        PositionPayout(
            position_id=p.id,
            owner_id=p.owner_id,
            side=p.side,
            staked_amount=p.staked_amount,
            shares=p.shares,
            payout=p.staked_amount,
            profit=ZERO,
        )
        for p in positions
    ]


def compute_lp_payouts(
    lp_positions: Iterable[LiquidityPosition],
    market: Market,
    total_winner_payouts: Decimal,
) -> list[LPPayout]:
    """Residual pool after winners, split by LP share of market.total_lp_shares."""
    remaining_pool = max(ZERO, market.total_pool - total_winner_payouts)
    total_lp_shares = market.total_lp_shares

    if total_lp_shares == 0:
        return []

    payouts: list[LPPayout] = []
    for lp in lp_positions:
        payout = quantize_amount(remaining_pool * lp.shares / total_lp_shares)
        payouts.append(
            LPPayout(
                lp_position_id=lp.id,
                owner_id=lp.owner_id,
                deposited_amount=lp.deposited_amount,
                shares=lp.shares,
                payout=payout,
                profit=quantize_amount(payout - lp.deposited_amount),
            )
        )
    return payouts


def compute_lp_cancelled_payouts(
    lp_positions: Iterable[LiquidityPosition],
) -> list[LPPayout]:
    return [
        LPPayout(
            lp_position_id=lp.id,
            owner_id=lp.owner_id,
            deposited_amount=lp.deposited_amount,
            shares=lp.shares,
            payout=lp.deposited_amount,
            profit=ZERO,
        )
        for lp in lp_positions
    ]


def build_resolution_summary(
    market: Market,
    positions: Sequence[StakePosition],
    lp_positions: Sequence[LiquidityPosition],
    outcome: Outcome,
) -> ResolutionSummary:
    """Single entry point shared by resolve, status preview, claim and claimable listing."""
    if outcome == Outcome.CANCELLED:
        position_payouts = compute_cancelled_payouts(positions)
        lp_payouts = compute_lp_cancelled_payouts(lp_positions)
    else:
        position_payouts = compute_winner_payouts(positions, market, outcome)
        winner_total = sum((p.payout for p in position_payouts), ZERO)
        lp_payouts = compute_lp_payouts(lp_positions, market, winner_total)

    total_winner_payouts = sum((p.payout for p in position_payouts), ZERO)
    total_lp_payouts = sum((lp.payout for lp in lp_payouts), ZERO)

    return ResolutionSummary(
        market_id=market.id,
        outcome=outcome,
        total_pool=market.total_pool,
        total_positions=len(positions),
        total_winners=len(position_payouts),
        total_losers=len(positions) - len(position_payouts),
        total_winner_payouts=total_winner_payouts,
        total_lp_payouts=total_lp_payouts,
        position_payouts=tuple(position_payouts),
        lp_payouts=tuple(lp_payouts),
    )


def find_position_payout(summary: ResolutionSummary, position_id: str) -> Decimal:
    """Owed amount for one stake; 0 when the position has no payout row (a loser)."""
    for p in summary.position_payouts:
        if p.position_id == position_id:
            return p.payout
    return ZERO


def find_lp_payout(summary: ResolutionSummary, lp_position_id: str) -> Decimal:
    for lp in summary.lp_payouts:
        if lp.lp_position_id == lp_position_id:
            return lp.payout
    return ZERO
