"""Tests for core/result and the exception hierarchy."""

import pytest

from pikup.constants import ERROR_COPY, INSURANCE_GENERIC_ERROR, NETWORK_ERROR_MESSAGE
from pikup.core.exceptions import (
    BookingPersistFailedError,
    InsuranceUnavailableError,
    NetworkError,
    PaymentIntentFailedError,
    ValidationError,
)
from pikup.core.result import Failure, Success, err, ok


class TestResult:
    """Tests for Success and Failure."""

    def test_ok(self):
        result = ok(42)
        assert isinstance(result, Success)
        assert result.is_success()
        assert result.unwrap() == 42
        assert result.map(lambda x: x + 1).unwrap() == 43

    def test_err_carries_kind_and_code(self):
        result = err(PaymentIntentFailedError("declined", code="INSURANCE_REQUIRED"))
        assert isinstance(result, Failure)
        assert result.is_failure()
        assert result.kind == "PaymentIntentFailedError"
        assert result.code == "INSURANCE_REQUIRED"
        assert result.error == "declined"
        assert result.unwrap_or("fallback") == "fallback"

    def test_unwrap_failure_raises_carried_exception(self):
        with pytest.raises(NetworkError):
            err(NetworkError("down")).unwrap()

    def test_unwrap_bare_failure(self):
        with pytest.raises(RuntimeError):
            Failure("no exception").unwrap()

    def test_map_on_failure_is_noop(self):
        failure = err(NetworkError())
        assert failure.map(lambda x: x * 2) is failure


class TestExceptions:
    """Tests for user messages and serialization."""

    def test_code_maps_to_copy(self):
        error = PaymentIntentFailedError("rejected", code="INSURANCE_REQUIRED")
        assert error.user_message == ERROR_COPY["INSURANCE_REQUIRED"]

    def test_unknown_code_uses_default(self):
        error = InsuranceUnavailableError("boom", code="SOMETHING_ELSE")
        assert error.user_message == INSURANCE_GENERIC_ERROR

    def test_explicit_user_message_wins(self):
        error = InsuranceUnavailableError("down", code=None, user_message=NETWORK_ERROR_MESSAGE)
        assert error.user_message == NETWORK_ERROR_MESSAGE

    def test_validation_error_field(self):
        error = ValidationError("must be positive", field="amount")
        assert error.field == "amount"
        assert "amount" in str(error)
        assert error.recoverable is False

    def test_to_dict(self):
        error = BookingPersistFailedError("store down", payment_intent_id="pi_123")
        data = error.to_dict()
        assert data["error"] == "BookingPersistFailedError"
        assert data["details"] == {"payment_intent_id": "pi_123"}
        assert "contact support" in data["user_message"]
