"""Settlement invariant checks over a ResolutionSummary.

INV-S1 (conservation):  resolved with winners  ⇒ |Σ winner payouts − pool| ≤ ε·winners
INV-S2 (refunds):       cancelled              ⇒ Σ refunds == Σ stakes (and deposits), exactly
INV-S3 (LP residual):   every LP share present ⇒ |Σ LP payouts − max(0, pool − Σ winners)| ≤ ε·LPs

ε is one rounding quantum per record. Violations are returned, not raised.
"""

import logging
from collections.abc import Sequence

from src.pp_common.amounts import AMOUNT_QUANTUM, ZERO
from src.pp_common.enums import Outcome
from src.pp_market.domain.models import LiquidityPosition, Market, StakePosition
from src.pp_settlement.domain.models import ResolutionSummary

logger = logging.getLogger(__name__)


def check_summary_invariants(
    summary: ResolutionSummary,
    market: Market,
    positions: Sequence[StakePosition],
    lp_positions: Sequence[LiquidityPosition],
) -> list[str]:
    """Return a list of violation strings (empty when the summary is sound)."""
    violations: list[str] = []

    if summary.outcome == Outcome.CANCELLED:
        staked = sum((p.staked_amount for p in positions), ZERO)
        if summary.total_winner_payouts != staked:
            violations.append(
                f"INV-S2 violated: refunds={summary.total_winner_payouts} != stakes={staked}"
            )
    elif summary.total_winners > 0:
        tolerance = AMOUNT_QUANTUM * summary.total_winners
        drift = abs(summary.total_winner_payouts - summary.total_pool)
        if drift > tolerance:
            violations.append(
                f"INV-S1 violated: winner payouts={summary.total_winner_payouts} "
                f"pool={summary.total_pool} drift={drift} > {tolerance}"
            )

    lp_shares = sum((lp.shares for lp in lp_positions), ZERO)
    if summary.outcome == Outcome.CANCELLED:
        deposited = sum((lp.deposited_amount for lp in lp_positions), ZERO)
        if summary.total_lp_payouts != deposited:
            violations.append(
                f"INV-S2 violated: LP refunds={summary.total_lp_payouts} != deposits={deposited}"
            )
    elif summary.lp_payouts and lp_shares == market.total_lp_shares:
        residual = max(ZERO, summary.total_pool - summary.total_winner_payouts)
        tolerance = AMOUNT_QUANTUM * len(summary.lp_payouts)
        drift = abs(summary.total_lp_payouts - residual)
        if drift > tolerance:
            violations.append(
                f"INV-S3 violated: LP payouts={summary.total_lp_payouts} "
                f"residual={residual} drift={drift} > {tolerance}"
            )

    if violations:
        for msg in violations:
            logger.error("market=%s %s", summary.market_id, msg)
    else:
        logger.debug("Settlement invariants OK: market=%s", summary.market_id)
    return violations


def is_dead_pool(summary: ResolutionSummary) -> bool:
    """Resolved pool with neither winners nor LP payouts: funds have no claimant."""
    return (
        summary.outcome != Outcome.CANCELLED
        and summary.total_pool > 0
        and summary.total_winners == 0
        and not summary.lp_payouts
    )
