"""Error Hierarchy — typed, categorized exceptions for all order-placement failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Caller errors (400-level) are user-fixable; storage errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages
    - AccessDeniedError never says whether the order exists

Design Decisions:
    - Single hierarchy with FiatRampError base: FastAPI global handler catches all
    - ErrorContext as dataclass: observability fields without coupling to logging
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


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
    ACCESS = "access"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Request-scoped context attached to an error for logs and responses."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    order_id: str | None = None
    quote_id: str | None = None
    operation: str | None = None


class FiatRampError(Exception):
    """Base exception for all FiatRamp errors."""

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
                    "order_id": self.context.order_id,
                    "quote_id": self.context.quote_id,
                },
            }
        }


# ─── Caller Errors (400-level) ──────────────────────────────────

class InvalidRequestError(FiatRampError):
    """Caller input is missing or malformed."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_REQUEST", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class QuoteExpiredError(FiatRampError):
    """Quote lapsed or was never valid. Caller must re-quote."""
    def __init__(self, quote_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.quote_id = quote_id
        super().__init__(
            "Quote has expired or is invalid",
            "QUOTE_EXPIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 410,
        )


class QuoteNotFoundError(FiatRampError):
    """Quote passed validation but could not be fetched afterwards."""
    def __init__(self, quote_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.quote_id = quote_id
        super().__init__(
            "Quote not found",
            "QUOTE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, ctx, 404,
        )


class OrderNotFoundError(FiatRampError):
    """No order with the requested id."""
    def __init__(self, order_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.order_id = order_id
        super().__init__(
            "Order not found",
            "ORDER_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, ctx, 404,
        )


class AccessDeniedError(FiatRampError):
    """Order belongs to a different identity."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Access denied",
            "ACCESS_DENIED", ErrorCategory.ACCESS,
            ErrorSeverity.WARNING, context, 403,
        )

    def to_response(self) -> dict:
        # The order id is omitted so a denial reads the same for any id.
        response = super().to_response()
        response["error"]["context"] = {}
        return response


# ─── Storage Errors (500-level) ─────────────────────────────────

class PersistenceError(FiatRampError):
    """Storage or transaction failure. Safe for the caller to retry."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Database {operation} failed: {message}",
            "PERSISTENCE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.operation = operation


class IdentityResolutionError(FiatRampError):
    """Anonymous identity upsert returned no row."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "IDENTITY_RESOLUTION_FAILED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
