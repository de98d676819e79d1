"""Error Hierarchy — typed, categorized exceptions for all CoopVote failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (4xx) are recoverable; infrastructure errors (5xx) are critical
    - to_response() produces the REST envelope consumed by api/error_handlers.py
    - A scope mismatch is reported as ResourceNotFoundError, never as a 403

Design Decisions:
    - Single hierarchy with CoopVoteError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    CONCURRENCY = "concurrency"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resolution_id: str | None = None
    scope_id: str | None = None
    member_id: str | None = None
    retry_after_ms: int | None = None


class CoopVoteError(Exception):
    """Base exception for all CoopVote errors."""

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
                    "resolution_id": self.context.resolution_id,
                    "scope_id": self.context.scope_id,
                    "member_id": self.context.member_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidInputError(CoopVoteError):
    """Request data failed a domain validation rule."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [{"field": self.field, "message": self.message}]
        return response


class AuthenticationError(CoopVoteError):
    """Caller identity missing or access token rejected."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "AUTHENTICATION_REQUIRED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(CoopVoteError):
    """Caller is authenticated but lacks the capability for this operation."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PERMISSION_DENIED", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class ResourceNotFoundError(CoopVoteError):
    """Requested resource does not exist (or lives in another scope)."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class ResolutionClosedError(CoopVoteError):
    """Mutation attempted after the resolution's voting window ended."""
    def __init__(self, resolution_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Resolution '{resolution_id}' is closed",
            "RESOLUTION_CLOSED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class SelfDelegationError(CoopVoteError):
    """Member tried to name themselves as their own proxy."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "A member cannot delegate their vote to themselves",
            "SELF_DELEGATION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class IneligibleDelegateError(CoopVoteError):
    """Proxy target is not an eligible member of the resolution's scope."""
    def __init__(self, delegate_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Member '{delegate_id}' cannot act as a delegate in this cooperative",
            "INELIGIBLE_DELEGATE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.delegate_id = delegate_id


class ConcurrencyError(CoopVoteError):
    """Optimistic update kept losing races until retries ran out."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONCURRENCY,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(CoopVoteError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
