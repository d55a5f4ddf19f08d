"""
Domain errors raised by the taxonomy, association and attachment services.

The route layer translates these into HTTP responses (see catalog_core.api.main);
everything else lets them propagate.
"""
from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base domain error."""

    error_type = "domain_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DomainError):
    """Raised when a request is malformed for the domain (hierarchy, scope, enum)."""

    error_type = "validation_error"


class ConflictError(DomainError):
    """Raised when a write would violate a uniqueness or reference rule."""

    error_type = "conflict"


class NotFoundError(DomainError):
    """Raised when the requested record does not exist."""

    error_type = "not_found"
