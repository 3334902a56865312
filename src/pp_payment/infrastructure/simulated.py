"""SimulatedPaymentDispatcher — no money moves; used when PAYMENT_SERVICE_URL is unset.

The reference is derived from the idempotency key, so repeating a dispatch for
the same record yields the same reference, like the real service would.
"""

import hashlib
import logging
from decimal import Decimal

logger = logging.getLogger(__name__)


class SimulatedPaymentDispatcher:
    async def dispatch(
        self, destination: str, amount: Decimal, idempotency_key: str
    ) -> str:
        digest = hashlib.sha256(idempotency_key.encode()).hexdigest()[:16]
        reference = f"sim_{digest}"
        logger.info(
            "Simulated payout: dest=%s amount=%s key=%s ref=%s",
            destination,
            amount,
            idempotency_key,
            reference,
        )
        return reference
