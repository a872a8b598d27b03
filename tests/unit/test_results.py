"""
Unit tests for the Result types module.
"""

import pytest

from gasproof_toolkit.shared.exceptions import InclusionFailure
from gasproof_toolkit.shared.results import (
    ErrorSeverity,
    ProcessingError,
    Result,
    VerificationSummary,
)


class TestProcessingError:
    """Tests for ProcessingError dataclass."""

    def test_create_error(self):
        error = ProcessingError(
            source="inclusion",
            message="Test error message",
            severity=ErrorSeverity.ERROR,
        )
        assert error.source == "inclusion"
        assert error.context == {}
        assert error.exception is None

    def test_create_error_with_exception(self):
        original_exception = InclusionFailure("bad proof", index=3)
        error = ProcessingError(
            source="inclusion",
            message="Wrapped error",
            severity=ErrorSeverity.ERROR,
            context={"index": 3},
            exception=original_exception,
        )
        assert error.exception is original_exception
        assert error.context["index"] == 3

    def test_to_dict(self):
        error = ProcessingError(
            source="confidence",
            message="Test warning",
            severity=ErrorSeverity.WARNING,
            context={"confidence": 5},
            exception=ValueError("not serialized"),
        )
        assert error.to_dict() == {
            "source": "confidence",
            "message": "Test warning",
            "severity": "warning",
            "context": {"confidence": 5},
        }


class TestResult:
    """Tests for Result[T] generic class."""

    def test_ok_result(self):
        result = Result.ok({"data": "test"})
        assert result.success is True
        assert result.data == {"data": "test"}
        assert result.errors == []
        assert result.unwrap() == {"data": "test"}

    def test_fail_result(self):
        error = ProcessingError(
            source="soundness",
            message="Test error",
            severity=ErrorSeverity.ERROR,
        )
        result = Result.fail(error)
        assert result.success is False
        assert result.data is None
        assert result.errors == [error]

    def test_fail_with_message(self):
        result = Result.fail_with_message(
            source="precheck",
            message="Quick error",
            context={"key": "value"},
        )
        assert result.success is False
        assert result.errors[0].severity == ErrorSeverity.ERROR
        assert result.errors[0].context["key"] == "value"

    def test_add_warning_keeps_success(self):
        result = Result.ok("data")
        returned = result.add_warning(source="confidence", message="warning")
        assert returned is result
        assert result.success is True
        assert result.has_warnings() is True
        assert result.has_errors() is False

    def test_has_errors_with_critical(self):
        result = Result.fail_with_message(
            source="stale_history", message="critical", severity=ErrorSeverity.CRITICAL
        )
        assert result.has_errors() is True

    def test_unwrap_failure_raises_with_messages(self):
        result = Result.fail_with_message(source="inclusion", message="first")
        result.add_warning(source="confidence", message="second")
        with pytest.raises(RuntimeError, match="first; second"):
            result.unwrap()


class TestVerificationSummary:
    """Tests for VerificationSummary dataclass."""

    def test_create_summary(self):
        summary = VerificationSummary()
        assert summary.claims_verified == 0
        assert summary.claims_rejected == 0
        assert summary.total_cgas_confirmed == 0
        assert summary.errors == []

    def test_add_error_from_result(self):
        summary = VerificationSummary()
        result = Result.fail_with_message(source="inclusion", message="e1")
        result.add_warning(source="confidence", message="w1")
        summary.add_error_from_result(result)
        assert len(summary.errors) == 2

    def test_rejection_reasons_skip_warnings(self):
        summary = VerificationSummary()
        for source in ("inclusion", "inclusion", "soundness"):
            summary.add_error_from_result(
                Result.fail_with_message(source=source, message=source)
            )
        summary.add_error_from_result(
            Result.ok(None).add_warning(source="confidence", message="w")
        )
        assert summary.rejection_reasons() == {"inclusion": 2, "soundness": 1}

    def test_to_dict(self):
        summary = VerificationSummary(
            claims_verified=3, claims_rejected=1, total_cgas_confirmed=1234
        )
        summary.rejected_claims = [{"reason": "soundness"}] * 150
        d = summary.to_dict()
        assert d["success_rate"] == "3/4"
        assert d["counts"] == {"claims_verified": 3, "claims_rejected": 1}
        assert d["total_cgas_confirmed"] == 1234
        assert len(d["rejected_claims"]) == 100

    def test_to_dict_with_no_totals(self):
        assert VerificationSummary().to_dict()["success_rate"] == "N/A"
