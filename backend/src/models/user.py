"""
User model for people using the scheduling service.

Design Rationale:
- Email is globally unique and stored lowercase
- Accounts are soft-deleted via deleted_at so that content they authored
  can still reference the row (and so the account can be reactivated
  within the grace window)
- Users are never hard-deleted while content references them
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin

if TYPE_CHECKING:
    from backend.src.models.group_membership import GroupMembership


class User(Base, GuidMixin):
    """
    User model representing an account.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (usr_xxx, inherited from GuidMixin)
        email: Login email (unique, lowercase)
        name: Display name
        timezone: IANA timezone name (optional)
        email_verified: Whether the email address has been confirmed
        created_at: Creation timestamp
        updated_at: Last update timestamp
        deleted_at: Soft-delete marker (None while the account is active)

    Relationships:
        memberships: Group memberships of this user (one-to-many)
    """

    __tablename__ = "users"

    GUID_PREFIX = "usr"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Identity
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    timezone = Column(String(100), nullable=True)
    email_verified = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )
    deleted_at = Column(DateTime, nullable=True, index=True)

    memberships = relationship(
        "GroupMembership",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_deleted(self) -> bool:
        """True once the account has been soft-deleted."""
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return (
            f"<User("
            f"id={self.id}, "
            f"email='{self.email}', "
            f"deleted={self.is_deleted}"
            f")>"
        )

    def __str__(self) -> str:
        return self.name or self.email
