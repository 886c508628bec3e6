"""Tests for gb_common.errors and gb_common.response."""

from src.gb_common.errors import (
    AppError,
    BetNotFoundError,
    BetValidationError,
    ConcurrencyConflictError,
    DownstreamFailureError,
    DuplicateParticipantError,
    IllegalTransitionError,
    InternalError,
    PaymentNotAllowedError,
    PaymentObligationNotFoundError,
    UnknownSideError,
)
from src.gb_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestSpecificErrors:
    def test_bet_not_found(self) -> None:
        err = BetNotFoundError("BET-1")
        assert (err.code, err.http_status) == (3001, 404)
        assert "BET-1" in err.message

    def test_illegal_transition_carries_context(self) -> None:
        err = IllegalTransitionError(
            "resolve", "pending", required_status="awaiting_resolution",
            required_role="creator or neutral party",
        )
        assert (err.code, err.http_status) == (3003, 422)
        assert err.current_status == "pending"
        assert err.required_role == "creator or neutral party"
        assert "awaiting_resolution" in err.message

    def test_validation_family(self) -> None:
        dup = DuplicateParticipantError("BET-1", "bob")
        side = UnknownSideError("Draw")
        assert isinstance(dup, BetValidationError)
        assert isinstance(side, BetValidationError)
        assert (dup.code, dup.http_status) == (3005, 409)
        assert (side.code, side.http_status) == (3006, 422)
        assert BetValidationError("bad").code == 3004

    def test_concurrency_conflict(self) -> None:
        err = ConcurrencyConflictError("BET-1")
        assert (err.code, err.http_status) == (3007, 409)

    def test_payment_errors(self) -> None:
        assert PaymentObligationNotFoundError("PAY-1").code == 4001
        assert PaymentNotAllowedError("no").http_status == 403

    def test_internal_error(self) -> None:
        err = InternalError()
        assert (err.code, err.http_status) == (9002, 500)

    def test_downstream_failure(self) -> None:
        err = DownstreamFailureError("notification", "timeout")
        assert err.code == 9003
        assert err.target == "notification"
        assert err.message == "notification failed: timeout"


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"bet_id": "BET-1"})
        assert resp.code == 0
        assert resp.data == {"bet_id": "BET-1"}
        assert resp.request_id.startswith("req_")

    def test_error(self) -> None:
        resp = error_response(3001, "Bet not found: BET-1")
        assert isinstance(resp, ApiResponse)
        assert resp.data is None
        assert resp.code == 3001
