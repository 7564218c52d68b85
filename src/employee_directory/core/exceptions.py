from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    """Raised when an id-targeted operation finds no record."""


class AccessDeniedError(DomainError):
    """Raised when a principal lacks rights for a record or operation."""


class ConflictError(DomainError):
    """Raised on unique-constraint violations (duplicate email, username)."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InternalError(DomainError):
    """Raised on unexpected persistence failures."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or no session exists."""
