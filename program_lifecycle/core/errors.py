"""Error Hierarchy — typed, categorized exceptions for every program/enrollment failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are recoverable; infrastructure errors (5xx) are critical
    - to_response() produces the REST envelope used by the global handler
    - CapacityExceededError IS an InvalidStateError (callers may catch either)

Design Decisions:
    - Single hierarchy with LifecycleError base: FastAPI global handler catches all
    - Core transitions RETURN these instances instead of raising; unwrap() raises them
      at the shell boundary, so one taxonomy serves both styles
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T")


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    AUTHORIZATION = "authorization"
    AUTHENTICATION = "authentication"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    program_id: str | None = None
    enrollment_id: str | None = None
    user_id: str | None = None
    debug_info: dict[str, Any] | None = None


class LifecycleError(Exception):
    """Base exception for all program lifecycle errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "program_id": self.context.program_id,
                    "enrollment_id": self.context.enrollment_id,
                    "user_id": self.context.user_id,
                },
            }
        }


# ─── Domain Errors (4xx) ─────────────────────────────────────────

class ValidationError(LifecycleError):
    """An entity invariant would be violated by construction or mutation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class NotFoundError(LifecycleError):
    """Referenced program or enrollment does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class InvalidStateError(LifecycleError):
    """State-machine transition attempted from a state that does not permit it."""
    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        code: str = "INVALID_STATE",
    ):
        super().__init__(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )


class CapacityExceededError(InvalidStateError):
    """Admission denied because the program is full."""
    def __init__(
        self, message: str = "Program is full", context: ErrorContext | None = None,
    ):
        super().__init__(message, context, code="PROGRAM_FULL")


class AuthorizationError(LifecycleError):
    """Acting user does not own the resource."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NOT_AUTHORIZED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class AuthenticationRequiredError(LifecycleError):
    """No acting user supplied with the request."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Authentication required", "AUTHENTICATION_REQUIRED",
            ErrorCategory.AUTHENTICATION, ErrorSeverity.WARNING, context, 401,
        )


# ─── Infrastructure Errors ───────────────────────────────────────

class ConcurrencyError(LifecycleError):
    """Concurrent modification detected (lost a uniqueness race)."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class DatabaseError(LifecycleError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


def unwrap(result: T | LifecycleError) -> T:
    """Return a transition's new value, or raise the failure it returned."""
    if isinstance(result, LifecycleError):
        raise result
    return result
