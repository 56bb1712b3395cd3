"""Errors — the typed failures the Crate API can report, and their JSON shape.

Invariants:
    - Each error class fixes its code, category, severity and HTTP status
    - 4xx errors describe the request; 5xx errors describe a dependency
      (database, crate target) and are logged at ERROR
    - to_response() is the only wire form; messages never embed SQL or stack traces

Design Decisions:
    - Class attributes instead of per-instance constructor plumbing: a subclass
      is a declaration of code/status plus its default message
    - ErrorContext carries collection/entity ids so the error handler can log
      them next to the failure
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_TARGET = "external_target"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    collection_id: str | None = None
    entity_id: str | None = None
    debug_info: dict[str, Any] | None = None


class CrateApiError(Exception):
    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self, message: str | None = None, context: ErrorContext | None = None,
    ):
        self.message = message or self.default_message
        self.context = context or ErrorContext()
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "session_id": self.context.session_id,
                    "collection_id": self.context.collection_id,
                    "entity_id": self.context.entity_id,
                },
            },
        }


# ─── Request errors ─────────────────────────────────────────────

class BadRequestError(CrateApiError):
    """Malformed request, or a write the data layer refused."""
    code = "BAD_REQUEST"
    category = ErrorCategory.VALIDATION
    http_status = 400
    default_message = "Bad request"


class UnauthorizedError(CrateApiError):
    code = "UNAUTHORIZED"
    category = ErrorCategory.AUTHENTICATION
    severity = ErrorSeverity.WARNING
    http_status = 401
    default_message = "Authentication required"


class ForbiddenError(CrateApiError):
    """Valid session, but no loaded collection (or a read the data layer refused)."""
    code = "FORBIDDEN"
    category = ErrorCategory.AUTHORIZATION
    severity = ErrorSeverity.WARNING
    http_status = 403
    default_message = "Forbidden"


class ResourceNotFoundError(CrateApiError):
    code = "RESOURCE_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404

    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(f"{resource_type} '{resource_id}' not found", context)
        self.resource_type = resource_type
        self.resource_id = resource_id


class RootDatasetNotFoundError(CrateApiError):
    """No entity with eid './' and etype 'Dataset' in the collection."""
    code = "ROOT_DATASET_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404
    default_message = "Root dataset not found"

    def __init__(self, context: ErrorContext | None = None):
        super().__init__(None, context)


class ConflictError(CrateApiError):
    code = "CONFLICT"
    category = ErrorCategory.CONFLICT
    http_status = 409
    default_message = "Conflicting write"


# ─── Dependency errors ──────────────────────────────────────────

class CrateSaveError(CrateApiError):
    code = "CRATE_SAVE_ERROR"
    category = ErrorCategory.EXTERNAL_TARGET
    severity = ErrorSeverity.CRITICAL
    http_status = 502
    default_message = "Error saving the crate back to the target"


class DatabaseError(CrateApiError):
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation
