"""Error Type — a single AppError with named constructors per HTTP status family.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity), http_status
    - 4xx constructors are ERROR (unauthorized: WARNING); 5xx constructors are CRITICAL
    - to_response() produces the REST envelope consumed by the global handler
    - internal/database errors never leak their message to clients (public_message is generic)

Design Decisions:
    - One class + classmethod constructors instead of a subclass per failure:
      services write AppError.not_found("User", id) and the handler maps by http_status
    - code override on every constructor: services expose specific codes
      (EMAIL_TAKEN, ONBOARDING_ACTIVE) without new types
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    user_id: str | None = None
    onboarding_id: str | None = None
    debug_info: dict[str, Any] | None = None


_GENERIC_MESSAGES = {
    ErrorCategory.INTERNAL: "An unexpected error occurred",
    ErrorCategory.DATABASE: "The database is temporarily unavailable",
}


class AppError(Exception):
    """Application error — raised by services, mapped to HTTP by the global handler."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.http_status = http_status
        self.details = details
        self.context = context or ErrorContext()

    def __repr__(self) -> str:
        return f"AppError({self.http_status}, {self.code!r}, {self.message!r})"

    @property
    def public_message(self) -> str:
        """Message safe to return to clients."""
        return _GENERIC_MESSAGES.get(self.category, self.message)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.public_message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "details": self.details,
            }
        }

    # ─── Client Errors (400-level) ──────────────────────────────

    @classmethod
    def bad_request(
        cls, message: str, code: str = "BAD_REQUEST",
        details: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            message, code, ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, 400, details, context,
        )

    @classmethod
    def unauthorized(
        cls, message: str = "Authentication failed", code: str = "UNAUTHORIZED",
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            message, code, ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, 401, None, context,
        )

    @classmethod
    def not_found(
        cls, resource: str, resource_id: Any, code: str = "NOT_FOUND",
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            f"{resource} '{resource_id}' not found", code,
            ErrorCategory.RESOURCE_NOT_FOUND, ErrorSeverity.ERROR, 404,
            {"resource": resource, "id": str(resource_id)}, context,
        )

    @classmethod
    def conflict(
        cls, message: str, code: str = "CONFLICT",
        details: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            message, code, ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, 409, details, context,
        )

    @classmethod
    def unprocessable_entity(
        cls, message: str, code: str = "UNPROCESSABLE_ENTITY",
        details: dict[str, Any] | None = None,
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            message, code, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, 422, details, context,
        )

    # ─── Server Errors (500-level) ──────────────────────────────

    @classmethod
    def internal(
        cls, message: str, code: str = "INTERNAL_ERROR",
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            message, code, ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, 500, None, context,
        )

    @classmethod
    def database(
        cls, message: str, operation: str, code: str = "DATABASE_ERROR",
        context: ErrorContext | None = None,
    ) -> "AppError":
        return cls(
            f"Database {operation} failed: {message}", code,
            ErrorCategory.DATABASE, ErrorSeverity.CRITICAL, 503,
            {"operation": operation}, context,
        )

    @classmethod
    def provider(
        cls, provider: str, message: str, code: str = "PROVIDER_ERROR",
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ) -> "AppError":
        details: dict[str, Any] = {"provider": provider}
        if retry_after_ms is not None:
            details["retry_after_ms"] = retry_after_ms
        return cls(
            f"{provider} error: {message}", code,
            ErrorCategory.EXTERNAL_API, ErrorSeverity.CRITICAL, 502,
            details, context,
        )
