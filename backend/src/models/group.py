"""
Group model for ensembles that schedule together.

Design Rationale:
- invite_code is an 8-character code from an alphabet without I, O, 0 or 1
  so it can be read out loud and typed without confusion
- created_by_id records the current owner of record; it is reassigned when
  ownership changes hands, so it is not necessarily the original creator
- Deleting a group cascades to memberships, events and availability requests
"""

import secrets
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin

if TYPE_CHECKING:
    from backend.src.models.user import User


INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8


class Group(Base, GuidMixin):
    """
    Group model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (grp_xxx, inherited from GuidMixin)
        name: Display name
        description: Optional free text
        invite_code: Unique join code (8 characters)
        created_by_id: Owner of record (FK to users)
        members_can_create_requests: Non-admins may create availability requests
        members_can_create_events: Non-admins may create events
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Relationships:
        created_by: User currently attributed as owner (many-to-one)
        memberships: Membership rows (one-to-many, cascade delete)
        events: Events scheduled in this group (one-to-many, cascade delete)
        availability_requests: Polls in this group (one-to-many, cascade delete)
    """

    __tablename__ = "groups"

    GUID_PREFIX = "grp"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    invite_code = Column(String(INVITE_CODE_LENGTH), unique=True, nullable=False, index=True)

    created_by_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_groups_created_by_id"),
        nullable=False,
        index=True
    )

    # Permissions
    members_can_create_requests = Column(Boolean, default=False, nullable=False)
    members_can_create_events = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    created_by = relationship("User", foreign_keys=[created_by_id], lazy="select")
    memberships = relationship(
        "GroupMembership",
        back_populates="group",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    events = relationship(
        "Event",
        back_populates="group",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    availability_requests = relationship(
        "AvailabilityRequest",
        back_populates="group",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @staticmethod
    def generate_invite_code() -> str:
        """
        Generate a random invite code.

        Returns:
            8 characters drawn from INVITE_CODE_ALPHABET

        Example:
            >>> code = Group.generate_invite_code()
            >>> len(code)
            8
        """
        return "".join(
            secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH)
        )

    def __repr__(self) -> str:
        return (
            f"<Group("
            f"id={self.id}, "
            f"name='{self.name}', "
            f"invite_code='{self.invite_code}'"
            f")>"
        )

    def __str__(self) -> str:
        return self.name
