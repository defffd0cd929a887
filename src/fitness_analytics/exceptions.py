"""
Custom exceptions for the fitness analytics engine.

This module defines a hierarchy of exceptions used across the engine.
Each exception includes:
- A descriptive message
- An error code for API responses
- HTTP status code mapping
- Optional details for debugging

Degenerate numeric input (short series, zero variance, mismatched lengths)
is never raised; it resolves to neutral results inside the calculators.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for consistent API error responses."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Request errors
    UNKNOWN_METRIC = "UNKNOWN_METRIC"
    UNSUPPORTED_ANALYSIS = "UNSUPPORTED_ANALYSIS"

    # Collaborator errors
    DATA_UNAVAILABLE = "DATA_UNAVAILABLE"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    WORKOUT_NOT_FOUND = "WORKOUT_NOT_FOUND"


class FitnessAnalyticsError(Exception):
    """
    Base exception for all fitness analytics errors.

    Attributes:
        message: Human-readable error message
        code: Error code from ErrorCode enum
        status_code: HTTP status code for API responses
        details: Optional dictionary with additional error details
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        result: Dict[str, Any] = {
            "error": {
                "code": self.code.value,
                "message": self.message,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


# ============================================================================
# Validation Errors (400)
# ============================================================================

class ValidationError(FitnessAnalyticsError):
    """Raised when request arguments are invalid."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=error_details,
        )


class UnknownMetricError(ValidationError):
    """Raised when a metric name has no registered extractor."""

    def __init__(self, metric: str, details: Optional[Dict[str, Any]] = None) -> None:
        error_details = details or {}
        error_details["metric"] = metric
        super().__init__(
            message=f"Unknown metric '{metric}'",
            field="metric",
            details=error_details,
        )
        self.code = ErrorCode.UNKNOWN_METRIC


class UnsupportedAnalysisError(ValidationError):
    """Raised when an analysis or prediction kind is not supported."""

    def __init__(self, kind: str, details: Optional[Dict[str, Any]] = None) -> None:
        error_details = details or {}
        error_details["kind"] = kind
        super().__init__(
            message=f"Unsupported analysis kind '{kind}'",
            field="kind",
            details=error_details,
        )
        self.code = ErrorCode.UNSUPPORTED_ANALYSIS


# ============================================================================
# Not Found Errors (404)
# ============================================================================

class NotFoundError(FitnessAnalyticsError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        message = f"{resource_type} with ID '{resource_id}' not found"
        error_details = details or {}
        error_details["resource_type"] = resource_type
        error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            details=error_details,
        )


class UserNotFoundError(NotFoundError):
    """Raised when the user store returns no user."""

    def __init__(self, user_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="User",
            resource_id=user_id,
            details=details,
        )
        self.code = ErrorCode.USER_NOT_FOUND


class WorkoutNotFoundError(NotFoundError):
    """Raised when a prediction subject workout is not in the user's history."""

    def __init__(self, workout_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            resource_type="Workout",
            resource_id=workout_id,
            details=details,
        )
        self.code = ErrorCode.WORKOUT_NOT_FOUND


# ============================================================================
# Collaborator Errors (503)
# ============================================================================

class DataUnavailableError(FitnessAnalyticsError):
    """
    Raised when an upstream data collaborator fails or returns nothing.

    The engine does not retry; retry policy belongs to the collaborator.
    """

    def __init__(
        self,
        source: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["source"] = source
        super().__init__(
            message=message or f"Data unavailable from {source}",
            code=ErrorCode.DATA_UNAVAILABLE,
            status_code=503,
            details=error_details,
        )
