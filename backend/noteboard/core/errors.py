"""Error Hierarchy — typed, categorized exceptions for all Noteboard failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are never retried; StorageUnavailableError is transient
    - to_response() produces REST envelope; to_ws_event() produces realtime envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with NoteboardError base: FastAPI global handler catches all
    - Duplicate signature is its own class, not a DB error code: core never
      depends on a storage engine's uniqueness-violation conventions
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
    CONFLICT = "conflict"
    STORAGE = "storage"
    DELIVERY = "delivery"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    signature: str | None = None
    connection_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class NoteboardError(Exception):
    """Base exception for all Noteboard errors."""

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
                "retry_after_ms": self.context.retry_after_ms,
            }
        }

    def to_ws_event(self) -> dict:
        """Convert to realtime channel error frame."""
        return {
            "type": "error",
            "error": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NoteValidationError(NoteboardError):
    """Note fields missing, oversized, mistyped, or outside the palette."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class DuplicateSignatureError(NoteboardError):
    """A note with this signature is already stored."""
    def __init__(self, signature: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.signature = signature
        super().__init__(
            "Note with this signature already exists",
            "DUPLICATE_SIGNATURE", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 400,
        )
        self.signature = signature


class RateLimitExceededError(NoteboardError):
    """Client exceeded the request budget for the current window."""
    def __init__(self, retry_after_ms: int, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            "Too many requests from this IP, please try again later.",
            "RATE_LIMITED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ctx, 429,
        )


class PayloadTooLargeError(NoteboardError):
    """Request body exceeds the configured size cap."""
    def __init__(self, limit_bytes: int, context: ErrorContext | None = None):
        super().__init__(
            f"Request body exceeds {limit_bytes} bytes",
            "PAYLOAD_TOO_LARGE", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 413,
        )
        self.limit_bytes = limit_bytes


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageUnavailableError(NoteboardError):
    """Note store unreachable, failing, or timed out."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_UNAVAILABLE", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.operation = operation


class DeliveryError(NoteboardError):
    """Send to one connection failed. Logged by the registry, never raised to submitters."""
    def __init__(self, connection_id: str, reason: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.connection_id = connection_id
        super().__init__(
            f"Delivery to connection {connection_id} failed: {reason}",
            "DELIVERY_FAILURE", ErrorCategory.DELIVERY,
            ErrorSeverity.WARNING, ctx, 500,
        )
        self.reason = reason
