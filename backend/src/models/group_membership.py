"""
Group membership join table.

Every group must keep at least one ADMIN membership at all times. The model
does not enforce that on its own; GroupService and AccountDeletionService
check admin counts before removing or demoting an admin.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class GroupRole(enum.Enum):
    """Role of a user inside a group."""
    ADMIN = "admin"
    MEMBER = "member"


class GroupMembership(Base, GuidMixin):
    """
    Membership of a user in a group.

    Attributes:
        id: Primary key (internal)
        uuid/guid: External identifier (mem_xxx)
        group_id: Group (FK, cascade on group delete)
        user_id: Member (FK, cascade on user delete)
        role: admin or member
        joined_at: When the user joined; orders successor selection

    Constraints:
        - (group_id, user_id) is unique
    """

    __tablename__ = "group_memberships"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_memberships_group_user"),
    )

    GUID_PREFIX = "mem"

    id = Column(Integer, primary_key=True, autoincrement=True)

    group_id = Column(
        Integer,
        ForeignKey("groups.id", name="fk_group_memberships_group_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", name="fk_group_memberships_user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    role = Column(
        Enum(
            GroupRole,
            name="group_role",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        default=GroupRole.MEMBER,
        nullable=False,
        index=True
    )
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    group = relationship("Group", back_populates="memberships", lazy="joined")
    user = relationship("User", back_populates="memberships", lazy="joined")

    @property
    def is_admin(self) -> bool:
        return self.role == GroupRole.ADMIN

    def __repr__(self) -> str:
        return (
            f"<GroupMembership("
            f"group_id={self.group_id}, "
            f"user_id={self.user_id}, "
            f"role={self.role.value if self.role else None}"
            f")>"
        )
