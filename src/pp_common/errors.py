"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation / authorization
  3xxx: Market
  5xxx: Position / claim
  6xxx: Payment
  9xxx: System

`retryable` separates "retry later" (dispatch, persistence) from
"never retry" (already claimed, not a winner, wrong lifecycle stage).
"""

from decimal import Decimal
from typing import Any


class AppError(Exception):
    """Base application error."""

    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)

    def response_data(self) -> dict[str, Any] | None:
        """Extra payload rendered into the error envelope's `data` field."""
        return None


# --- Taxonomy roots ---

class ValidationError(AppError):
    """Malformed input, rejected before any record is touched."""


class NotFoundError(AppError):
    pass


class InvalidStateError(AppError):
    """Wrong lifecycle stage (resolving twice, claiming before resolution)."""


class DispatchError(AppError):
    retryable = True


class PersistenceError(AppError):
    retryable = True

    def __init__(self, detail: str = "Persistence failure") -> None:
        super().__init__(9003, detail, 500)


# --- 1xxx: Validation / authorization ---

class RequestValidationFailedError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Invalid request: {detail}", 400)


class InvalidOutcomeError(ValidationError):
    def __init__(self, outcome: str) -> None:
        super().__init__(
            1002, f'Outcome must be "yes", "no", or "cancelled", got {outcome!r}', 400
        )


class MissingIdentifierError(ValidationError):
    def __init__(self) -> None:
        super().__init__(1003, "Exactly one of positionId or lpPositionId is required", 400)


class InvalidAmountError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1004, f"Invalid amount: {detail}", 400)


class UnauthorizedResolverError(AppError):
    def __init__(self, authorized_by: str) -> None:
        super().__init__(1005, f"Not authorized to resolve markets: {authorized_by}", 403)


# --- 3xxx: Market ---

class MarketNotFoundError(NotFoundError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotActiveError(InvalidStateError):
    def __init__(self, market_id: str, status: str | None = None) -> None:
        detail = f" (status={status})" if status else ""
        super().__init__(3002, f"Market is not active: {market_id}{detail}", 409)


class MarketNotResolvedError(InvalidStateError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market not yet resolved: {market_id}", 400)


# --- 5xxx: Position / claim ---

class PositionNotFoundError(NotFoundError):
    def __init__(self, position_id: str) -> None:
        super().__init__(
            5001, f"Position not found or not owned by caller: {position_id}", 404
        )


class LiquidityPositionNotFoundError(NotFoundError):
    def __init__(self, lp_position_id: str) -> None:
        super().__init__(
            5002, f"LP position not found or not owned by caller: {lp_position_id}", 404
        )


class AlreadyClaimedError(AppError):
    def __init__(self, record_id: str) -> None:
        super().__init__(5003, f"Already claimed: {record_id}", 400)


class NotAWinnerError(AppError):
    def __init__(self, position_id: str) -> None:
        super().__init__(5004, f"Position did not win: {position_id}", 400)

    def response_data(self) -> dict[str, Any] | None:
        return {"amount": "0"}


# --- 6xxx: Payment ---

class PayoutDispatchFailedError(DispatchError):
    """Amount is owed but the automated payout did not complete."""

    def __init__(
        self,
        record_id: str,
        amount: Decimal,
        pending_reconciliation: bool = False,
    ) -> None:
        self.record_id = record_id
        self.amount = amount
        self.can_manual_claim = True
        self.pending_reconciliation = pending_reconciliation
        message = (
            "Payout outcome unknown; pending manual reconciliation"
            if pending_reconciliation
            else "Automated payout failed. Please contact support."
        )
        super().__init__(6001, message, 500)

    def response_data(self) -> dict[str, Any] | None:
        return {
            "recordId": self.record_id,
            "amount": str(self.amount),
            "canManualClaim": self.can_manual_claim,
            "pendingReconciliation": self.pending_reconciliation,
        }


# --- 9xxx: System ---

class RateLimitError(AppError):
    retryable = True

    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)
