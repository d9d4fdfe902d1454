"""Custom exception hierarchy.

Every error raised by the relation engine carries a stable ``code`` and a
human-readable message. The HTTP layer turns these into the
``{success: false, error: {...}}`` envelope.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base exception for application errors."""

    code = "APP_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        original_error: Exception = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ConfigurationError(AppError):
    """Raised when the entity registry or relation types are misconfigured."""

    code = "CONFIGURATION_ERROR"


class ValidationError(AppError):
    """Raised when input validation fails."""

    code = "VALIDATION_ERROR"


class RelationNotFoundError(ValidationError):
    """Raised when one or more referenced relations do not exist."""

    code = "RELATION_NOT_FOUND"


class ConstraintViolationError(AppError):
    """Raised when a mutation would break relation type conformance."""

    code = "CONSTRAINT_VIOLATION"


class StoreError(AppError):
    """Raised when the relational store is unreachable or a query fails."""

    code = "STORE_ERROR"


class OperationTimeoutError(AppError):
    """Raised when a scan or remediation exceeds its time budget."""

    code = "OPERATION_TIMEOUT"
