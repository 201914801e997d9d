"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.account import (
    MemberSummary,
    GroupOwnershipResponse,
    AccountDeletionPreviewResponse,
    AccountDeletedResponse,
    GroupDecisionRequest,
    DeleteAccountRequest,
    preview_to_response,
)

__all__ = [
    "MemberSummary",
    "GroupOwnershipResponse",
    "AccountDeletionPreviewResponse",
    "AccountDeletedResponse",
    "GroupDecisionRequest",
    "DeleteAccountRequest",
    "preview_to_response",
]
