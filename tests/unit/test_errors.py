"""Tests for pp_common.errors and pp_common.response."""

from decimal import Decimal

from src.pp_common.errors import (
    AlreadyClaimedError,
    AppError,
    DispatchError,
    InvalidStateError,
    MarketNotActiveError,
    MarketNotFoundError,
    MarketNotResolvedError,
    MissingIdentifierError,
    NotAWinnerError,
    NotFoundError,
    PayoutDispatchFailedError,
    PersistenceError,
    PositionNotFoundError,
    RateLimitError,
    UnauthorizedResolverError,
    ValidationError,
)
from src.pp_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.retryable is False
        assert err.response_data() is None

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestTaxonomy:
    def test_market_not_found(self) -> None:
        err = MarketNotFoundError("mkt-123")
        assert isinstance(err, NotFoundError)
        assert err.code == 3001
        assert err.http_status == 404

    def test_market_not_active_is_conflict(self) -> None:
        err = MarketNotActiveError("mkt-123", "resolved")
        assert isinstance(err, InvalidStateError)
        assert err.http_status == 409
        assert "resolved" in err.message

    def test_market_not_resolved(self) -> None:
        err = MarketNotResolvedError("mkt-123")
        assert isinstance(err, InvalidStateError)
        assert err.code == 3003
        assert err.http_status == 400

    def test_position_not_found(self) -> None:
        err = PositionNotFoundError("pos-1")
        assert err.code == 5001
        assert err.http_status == 404

    def test_missing_identifier(self) -> None:
        err = MissingIdentifierError()
        assert isinstance(err, ValidationError)
        assert err.http_status == 400

    def test_unauthorized_resolver(self) -> None:
        assert UnauthorizedResolverError("mallory").http_status == 403

    def test_never_retry_errors(self) -> None:
        assert AlreadyClaimedError("pos-1").retryable is False
        assert NotAWinnerError("pos-1").retryable is False
        assert MarketNotResolvedError("mkt-1").retryable is False

    def test_retry_later_errors(self) -> None:
        assert PersistenceError().retryable is True
        assert PayoutDispatchFailedError("pos-1", Decimal("1")).retryable is True
        assert RateLimitError().http_status == 429


class TestResponseData:
    def test_not_a_winner_reports_zero(self) -> None:
        err = NotAWinnerError("pos-1")
        assert err.code == 5004
        assert err.response_data() == {"amount": "0"}

    def test_dispatch_failure_payload(self) -> None:
        err = PayoutDispatchFailedError("pos-1", Decimal("12.500000"))
        assert isinstance(err, DispatchError)
        assert err.http_status == 500
        assert err.response_data() == {
            "recordId": "pos-1",
            "amount": "12.500000",
            "canManualClaim": True,
            "pendingReconciliation": False,
        }

    def test_pending_reconciliation_message(self) -> None:
        err = PayoutDispatchFailedError("lp-1", Decimal("3"), pending_reconciliation=True)
        assert err.response_data()["pendingReconciliation"] is True
        assert "reconciliation" in err.message


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"amount": "1.000000"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"amount": "1.000000"}
        assert resp.request_id.startswith("req_")

    def test_error_with_payload(self) -> None:
        resp = error_response(5004, "Position did not win", {"amount": "0"})
        assert resp.code == 5004
        assert resp.data == {"amount": "0"}

    def test_serializes(self) -> None:
        dumped = ApiResponse().model_dump(mode="json")
        assert set(dumped) == {"code", "message", "data", "timestamp", "request_id"}
