"""LP share minting — pure function of the deposit and the pool it joins.

First deposit seeds the exchange rate; later deposits mint in proportion to
the pool they join:

    shares = amount * total_lp_shares / total_pool     (total_pool > 0)
    shares = amount * initial_share_rate               (empty pool)

A pool that holds stakes but no LP shares yet mints 0 here; the liquidity
service refuses such deposits.
"""

from decimal import ROUND_DOWN, Decimal

from src.pp_common.amounts import AMOUNT_QUANTUM, ZERO, quantize_shares
from src.pp_market.domain.models import Market


def mint_lp_shares(
    amount: Decimal, market: Market, initial_share_rate: Decimal
) -> Decimal:
    if amount <= 0:
        return ZERO
    total_pool = market.total_pool
    if total_pool > 0:
        # Multiply before dividing; only the final figure is rounded.
        return quantize_shares(amount * market.total_lp_shares / total_pool)
    return quantize_shares(amount * initial_share_rate)


def split_deposit(amount: Decimal) -> tuple[Decimal, Decimal]:
    """Half to each side of the pool; the odd micro-unit goes to the no side."""
    yes_part = (amount / 2).quantize(AMOUNT_QUANTUM, rounding=ROUND_DOWN)
    return yes_part, amount - yes_part
