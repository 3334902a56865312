"""Payment Dispatcher Protocol — the external money-movement collaborator.

dispatch() returns a payment reference on success and raises:
  - PaymentDispatchError on a definitive failure (nothing was sent; safe to
    release the claim and let the owner retry);
  - PaymentOutcomeUnknownError when the request may have been executed.
A caller-side timeout is ambiguous in the same way: the record stays reserved
until someone reconciles it.

Callers pass a deterministic idempotency key so a retried dispatch for the
same record cannot pay twice on the dispatcher side.
"""

from decimal import Decimal
from typing import Protocol


class PaymentDispatchError(Exception):
    """Definitive failure: the dispatcher confirms no funds moved."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class PaymentOutcomeUnknownError(Exception):
    """Ambiguous failure: the request may have been executed. Never auto-release."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class PaymentDispatcherProtocol(Protocol):
    async def dispatch(
        self, destination: str, amount: Decimal, idempotency_key: str
    ) -> str: ...


def idempotency_key_for(record_kind: str, record_id: str) -> str:
    """Same key for every attempt on the same record."""
    return f"claim:{record_kind}:{record_id}"
