"""
Result types for explicit success/failure tracking in claim verification.

The verification core raises on the first failing check; the service layer
turns those exceptions into Result values so callers processing many claims
never lose track of why one was rejected.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class ErrorSeverity(Enum):
    """Severity levels for processing errors."""

    WARNING = "warning"  # Continue processing, log issue
    ERROR = "error"  # Reject this claim, continue others
    CRITICAL = "critical"  # Stop processing entirely


@dataclass
class ProcessingError:
    """
    Represents a single processing error with context.

    Attributes:
        source: Failure reason (e.g., "position_binding", "inclusion")
        message: Human-readable error description
        severity: How severe the error is (affects control flow)
        context: Additional context like sample index, block number
        exception: Original exception if available
    """

    source: str
    message: str
    severity: ErrorSeverity
    context: Dict[str, Any] = field(default_factory=dict)
    exception: Optional[Exception] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
        }


@dataclass
class Result(Generic[T]):
    """
    Result type that carries success/failure information.

    Attributes:
        success: Whether the operation succeeded
        data: The result data if successful
        errors: List of errors encountered (can have errors even on success for warnings)
    """

    success: bool
    data: Optional[T] = None
    errors: List[ProcessingError] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        """Create a successful result with data."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: ProcessingError) -> "Result[T]":
        """Create a failed result with an error."""
        return cls(success=False, errors=[error])

    @classmethod
    def fail_with_message(
        cls,
        source: str,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        exception: Optional[Exception] = None,
    ) -> "Result[T]":
        """Create a failed result with a message (convenience method)."""
        error = ProcessingError(
            source=source,
            message=message,
            severity=severity,
            context=context or {},
            exception=exception,
        )
        return cls(success=False, errors=[error])

    def add_warning(
        self,
        source: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> "Result[T]":
        """Add a warning to the result (convenience method)."""
        self.errors.append(
            ProcessingError(
                source=source,
                message=message,
                severity=ErrorSeverity.WARNING,
                context=context or {},
            )
        )
        return self

    def has_errors(self) -> bool:
        """Check if result has any ERROR or CRITICAL level errors."""
        return any(
            e.severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
            for e in self.errors
        )

    def has_warnings(self) -> bool:
        return any(e.severity == ErrorSeverity.WARNING for e in self.errors)

    def get_error_messages(self) -> List[str]:
        return [e.message for e in self.errors]

    def unwrap(self) -> T:
        """Return the data, raising RuntimeError if the result failed."""
        if not self.success:
            raise RuntimeError("; ".join(self.get_error_messages()))
        return self.data


@dataclass
class VerificationSummary:
    """
    Summary of a batch verification run.

    Tracks how many claims were confirmed or rejected, the total confirmed
    gas, and why each rejection happened.
    """

    claims_verified: int = 0
    claims_rejected: int = 0
    total_cgas_confirmed: int = 0

    errors: List[ProcessingError] = field(default_factory=list)
    rejected_claims: List[Dict[str, Any]] = field(default_factory=list)

    def add_error_from_result(self, result: Result) -> None:
        """Add all errors from a Result to the summary."""
        self.errors.extend(result.errors)

    def rejection_reasons(self) -> Dict[str, int]:
        """Count rejections per failure reason."""
        counts: Dict[str, int] = {}
        for e in self.errors:
            if e.severity == ErrorSeverity.WARNING:
                continue
            counts[e.source] = counts.get(e.source, 0) + 1
        return counts

    def _calculate_rate(self, success: int, failed: int) -> str:
        total = success + failed
        if total == 0:
            return "N/A"
        return f"{success}/{total}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert summary to dictionary for JSON serialization."""
        return {
            "success_rate": self._calculate_rate(
                self.claims_verified, self.claims_rejected
            ),
            "counts": {
                "claims_verified": self.claims_verified,
                "claims_rejected": self.claims_rejected,
            },
            "total_cgas_confirmed": self.total_cgas_confirmed,
            "rejection_reasons": self.rejection_reasons(),
            "errors": [e.to_dict() for e in self.errors],
            "rejected_claims": self.rejected_claims[:100],
        }
