"""
Consolidated exception system with error codes and context.

This module provides the exception hierarchy for the package. Every error
carries a standardized error code, an HTTP-style status code that callers
can map straight onto a response, and a context dictionary naming the
offending field and value.

The package raises these errors but never logs them; reporting is the
calling application's concern.
"""

import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    TYPE_MISMATCH = "2003"
    CONSTRAINT_VIOLATION = "2004"


class BaseError(Exception):
    """Base exception with context, error codes and error chaining."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        super().__init__(message)

    def to_dict(
        self, include_cause: bool = False, include_traceback: bool = False
    ) -> Dict[str, Any]:
        """
        Convert to dict for API responses.

        Args:
            include_cause: Include cause information (useful for debugging)
            include_traceback: Include full traceback (only in debug mode)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "code": self.error_code.value,
                "message": self.message,
                "timestamp": self.timestamp,
                "context": {
                    k: v for k, v in self.context.items() if k not in ["cause", "error_id"]
                },
            }
        }

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }
            if include_traceback:
                result["error"]["cause"]["traceback"] = self.context["cause"]["traceback"]

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self

    @property
    def error_chain(self) -> List[Exception]:
        """Get the full chain of errors."""
        chain: List[Exception] = [self]
        current = self.cause
        while current:
            chain.append(current)
            current = getattr(current, "cause", None)
        return chain


class ValidationError(BaseError):
    """Validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        status_code: int = 400,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        super().__init__(message, error_code, status_code, cause, **context)


class ShapeError(ValidationError, TypeError):
    """A field is missing, has the wrong type, or holds an unknown enum value."""

    def __init__(self, message: str, field: Optional[str] = None, **context):
        super().__init__(
            message, field=field, error_code=ErrorCode.TYPE_MISMATCH, status_code=400, **context
        )


class PolicyError(ValidationError, ValueError):
    """A well-formed value violates a business rule."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.CONSTRAINT_VIOLATION,
        **context,
    ):
        super().__init__(message, field=field, error_code=error_code, status_code=422, **context)


class FormatError(ValidationError, ValueError):
    """Malformed IP address, CIDR block, domain or date text."""

    def __init__(self, message: str, field: Optional[str] = None, **context):
        super().__init__(
            message, field=field, error_code=ErrorCode.INVALID_FORMAT, status_code=400, **context
        )


class KeyGenerationError(BaseError):
    """Raised when the random identifier source fails."""

    def __init__(self, message: str = "Failed to generate identifier", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.INTERNAL_ERROR, status_code=500, **kwargs
        )


# Factory functions for common error patterns
def type_mismatch(field: str, value: Any, expected: str) -> ShapeError:
    """
    Factory for shape errors.

    Args:
        field: Field that failed validation
        value: The invalid value
        expected: Description of what was expected (e.g. 'a boolean')

    Returns:
        Configured ShapeError instance
    """
    return ShapeError(
        f'"{field}" must be {expected}. Received: {value!r}',
        field=field,
        value=repr(value),
        expected=expected,
    )


def invalid_format(field: str, value: Any, kind: str) -> FormatError:
    """
    Factory for format errors.

    Args:
        field: Field that failed validation
        value: The malformed value
        kind: What the value should have been (e.g. 'IP address or CIDR')

    Returns:
        Configured FormatError instance
    """
    return FormatError(
        f'Invalid {kind} for "{field}": {value!r}',
        field=field,
        value=repr(value),
        expected=kind,
    )


def policy_violation(
    field: str, value: Any, reason: str, error_code: ErrorCode = ErrorCode.CONSTRAINT_VIOLATION
) -> PolicyError:
    """
    Factory for range/policy errors.

    Args:
        field: Field that violated the rule
        value: The rejected value
        reason: Which rule was violated

    Returns:
        Configured PolicyError instance
    """
    return PolicyError(
        f'"{field}" {reason}. Received: {value!r}',
        field=field,
        error_code=error_code,
        value=repr(value),
        reason=reason,
    )
