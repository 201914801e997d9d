"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from datetime import datetime
from typing import Any, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class ConflictError(ServiceError):
    """Raised when an operation conflicts with existing state."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class AccountClosedError(ServiceError):
    """Raised when a soft-deleted account tries to sign in after the grace window.

    Within the window the account is reactivated instead; past it the
    account stays closed and only awaits purging.
    """

    def __init__(self, user_guid: str, deleted_at: datetime):
        self.user_guid = user_guid
        self.deleted_at = deleted_at
        self.message = (
            f"Account {user_guid} was deleted on {deleted_at:%Y-%m-%d} "
            "and can no longer be reactivated."
        )
        super().__init__(self.message)
