"""Error Hierarchy: typed, categorized exceptions for all vanity custody failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope used by api/error_handlers.py
    - No secrets or internal details in user-facing messages

Design Decisions:
    - Single hierarchy with VanityError base: one handler in the HTTP layer catches all
    - Lookup misses are NOT errors: stores return None / empty collections instead
    - LedgerSubmissionError never escapes OwnershipTransfer; it only shapes a TransferResult
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
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    LEDGER = "ledger"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    application_id: str | None = None
    origin: str | None = None
    account: str | None = None
    operation: str | None = None
    debug_info: dict[str, Any] | None = None


class VanityError(Exception):
    """Base exception for all vanity custody errors."""

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
                    "application_id": self.context.application_id,
                    "origin": self.context.origin,
                    "account": self.context.account,
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(VanityError):
    """Input rejected at the service boundary."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class OrderingViolationError(VanityError):
    """Master key disable requested before the regular key was handed over."""
    def __init__(self, account: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.account = account
        super().__init__(
            f"Regular key of {account} must be transferred before disabling the master key",
            "REKEY_REQUIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ctx, 409,
        )


class RateConversionError(VanityError):
    """Exchange rate missing or not numeric."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "RATE_CONVERSION_FAILED", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 422,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(VanityError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class UpstreamUnavailableError(VanityError):
    """Ledger node could not be reached."""
    def __init__(self, service: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"{service} unavailable: {message}",
            "UPSTREAM_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.service = service


class InventoryServiceError(VanityError):
    """Vanity inventory service answered with a non-2xx status or was unreachable."""
    def __init__(
        self,
        operation: str,
        status_code: int | None,
        message: str = "",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.operation = operation
        detail = f"status {status_code}" if status_code is not None else "no response"
        super().__init__(
            f"Inventory {operation} failed ({detail}){': ' + message if message else ''}",
            "INVENTORY_SERVICE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 502,
        )
        self.operation = operation
        self.status_code = status_code


class LedgerSubmissionError(VanityError):
    """Ledger rejected a submission or the prepare/sign/submit chain raised."""
    def __init__(
        self, message: str, result_code: str | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "LEDGER_SUBMISSION_FAILED", ErrorCategory.LEDGER,
            ErrorSeverity.ERROR, context, 502,
        )
        self.result_code = result_code
