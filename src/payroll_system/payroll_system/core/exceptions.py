from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    error_type = "domain"


class ValidationError(DomainError):
    """Raised when input data is malformed, missing or violates domain rules."""

    status_code = 400
    error_type = "validation"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthorizationError(DomainError):
    """Raised when the caller lacks permission for an action."""

    status_code = 403
    error_type = "authorization"


class NotFoundError(DomainError):
    """Referenced record is absent or not owned by the caller's business."""

    status_code = 404
    error_type = "not_found"


class ConflictError(DomainError):
    """Duplicate row, insufficient balance or overlapping request."""

    status_code = 409
    error_type = "conflict"


class StateError(DomainError):
    """Attempted transition out of, or mutation of, a terminal record."""

    status_code = 409
    error_type = "state"


class PersistenceError(DomainError):
    """Storage round-trip failed; the active transaction was rolled back."""

    status_code = 500
    error_type = "persistence"
