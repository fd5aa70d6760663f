"""Error Hierarchy — typed, categorized exceptions for every tabulation failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are expected and never retried internally
    - TabulationFailure (503) always means the transaction was rolled back — safe to retry
    - to_response() never contains the raw voter key (only voter_hash)

Design Decisions:
    - Single hierarchy with AccentVoteError base: one HTTP handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - InvalidCategoryError subclasses ValidationError: callers catching malformed input catch both
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
    PERMISSION = "permission"
    RATE_LIMIT = "rate_limit"
    CONFLICT = "conflict"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    item_id: int | None = None
    category_id: int | None = None
    vote_id: int | None = None
    voter_hash: str | None = None
    stage: str | None = None
    retry_after_seconds: int | None = None
    debug_info: dict[str, Any] | None = None


class AccentVoteError(Exception):
    """Base exception for all accentvote errors."""

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
                    "item_id": self.context.item_id,
                    "category_id": self.context.category_id,
                    "vote_id": self.context.vote_id,
                    "retry_after_seconds": self.context.retry_after_seconds,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(AccentVoteError):
    """Malformed input."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class InvalidCategoryError(ValidationError):
    """Category id is neither a category nor a category option of the item."""
    def __init__(
        self, item_id: int, category_id: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Category {category_id} is not selectable for item {item_id}",
            "category_id", context,
        )
        self.code = "INVALID_CATEGORY"
        self.item_id = item_id
        self.category_id = category_id


class DuplicateVoteError(AccentVoteError):
    """Voter already has a vote on this item."""
    def __init__(self, item_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"A vote for item {item_id} has already been recorded",
            "DUPLICATE_VOTE", ErrorCategory.CONFLICT,
            ErrorSeverity.INFO, context, 409,
        )
        self.item_id = item_id


class RateLimitExceeded(AccentVoteError):
    """Submitter exceeded the sliding-window attempt cap."""
    def __init__(
        self, action: str, retry_after_seconds: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many '{action}' attempts. Try again later.",
            "RATE_LIMIT_EXCEEDED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.INFO, ctx, 429,
        )
        self.action = action


class RetractionWindowExpired(AccentVoteError):
    """Vote is older than the retraction window."""
    def __init__(
        self, vote_id: int, window_hours: int, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Vote {vote_id} can no longer be retracted "
            f"(more than {window_hours}h since submission)",
            "RETRACTION_WINDOW_EXPIRED", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, context, 400,
        )
        self.vote_id = vote_id


class ForbiddenError(AccentVoteError):
    """Voter does not own the vote it tries to retract."""
    def __init__(self, vote_id: int, context: ErrorContext | None = None):
        super().__init__(
            f"Not allowed to retract vote {vote_id}",
            "FORBIDDEN", ErrorCategory.PERMISSION,
            ErrorSeverity.WARNING, context, 403,
        )
        self.vote_id = vote_id


class NotFoundError(AccentVoteError):
    """Requested vote, item or region does not exist."""
    def __init__(
        self, resource_type: str, resource_id: object,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.WARNING, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ─── Infrastructure Errors (500-level) ──────────────────────────

class TabulationFailure(AccentVoteError):
    """Unexpected failure inside the vote transaction. Nothing was persisted."""
    def __init__(
        self, message: str, cause: BaseException | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Tabulation failed: {message}",
            "TABULATION_FAILURE", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.cause = cause


class DatabaseError(AccentVoteError):
    """Database operation failed on a read path."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
