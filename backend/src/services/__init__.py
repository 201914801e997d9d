"""
Service layer for business logic.

This module exports all service classes for use in API endpoints.
"""

from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ConflictError,
    ValidationError,
    AccountClosedError,
)
from backend.src.services.guid import GuidService
from backend.src.services.user_service import UserService
from backend.src.services.group_service import GroupService
from backend.src.services.account_service import (
    AccountDeletionService,
    AccountDeletionPreview,
    GroupDecision,
    GroupOwnershipInfo,
    MemberInfo,
)

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "AccountClosedError",
    "GuidService",
    "UserService",
    "GroupService",
    # Account deletion
    "AccountDeletionService",
    "AccountDeletionPreview",
    "GroupDecision",
    "GroupOwnershipInfo",
    "MemberInfo",
]
