"""
SQLAlchemy models for the Call Time backend.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

# All models inherit from this Base class
Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# This is required for Alembic autogenerate to detect models

# Identity
from backend.src.models.user import User

# Groups and membership
from backend.src.models.group import Group, INVITE_CODE_ALPHABET, INVITE_CODE_LENGTH
from backend.src.models.group_membership import GroupMembership, GroupRole

# Content
from backend.src.models.availability_request import AvailabilityRequest, AvailabilityStatus
from backend.src.models.availability_response import (
    AvailabilityResponse,
    AvailabilityResponseValue,
)
from backend.src.models.event import Event, EventType
from backend.src.models.event_assignment import EventAssignment, AssignmentStatus

__all__ = [
    "Base",
    "User",
    "Group",
    "INVITE_CODE_ALPHABET",
    "INVITE_CODE_LENGTH",
    "GroupMembership",
    "GroupRole",
    "AvailabilityRequest",
    "AvailabilityStatus",
    "AvailabilityResponse",
    "AvailabilityResponseValue",
    "Event",
    "EventType",
    "EventAssignment",
    "AssignmentStatus",
]
