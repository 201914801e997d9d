"""
Group service for group lifecycle and membership.

Design:
- Creating a group makes the creator its first admin in the same commit
- Invite codes are random; collisions are retried a bounded number of times
- Every group keeps at least one admin: removing or demoting the last
  admin is refused with ConflictError
"""

from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func

from backend.src.config.settings import get_settings
from backend.src.models import Group, GroupMembership, GroupRole, User
from backend.src.utils.logging_config import get_logger
from backend.src.services.exceptions import NotFoundError, ConflictError, ValidationError
from backend.src.services.guid import GuidService


logger = get_logger("services")


class GroupService:
    """
    Service for managing groups and their memberships.

    Usage:
        >>> service = GroupService(db_session)
        >>> group = service.create(user_id=1, name="Late Night Improv")
        >>> service.join(user_id=2, invite_code=group.invite_code)
    """

    def __init__(self, db: Session):
        """
        Initialize group service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.max_attempts = get_settings().invite_code_max_attempts

    @staticmethod
    def generate_invite_code() -> str:
        """Generate a random 8-character invite code."""
        return Group.generate_invite_code()

    def _invite_code_taken(self, code: str) -> bool:
        return (
            self.db.query(Group.id).filter(Group.invite_code == code).first()
            is not None
        )

    def create(
        self,
        user_id: int,
        name: str,
        description: Optional[str] = None,
    ) -> Group:
        """
        Create a group with the creator as its first admin.

        Args:
            user_id: Creator (becomes admin and owner of record)
            name: Group name
            description: Optional description

        Returns:
            Created Group instance

        Raises:
            NotFoundError: If the creator does not exist or is deleted
            ValidationError: If the name is empty or too long
            ConflictError: If no unique invite code could be generated
        """
        if not name or not name.strip():
            raise ValidationError("Group name cannot be empty", field="name")
        name = name.strip()
        if len(name) > 255:
            raise ValidationError("Group name cannot exceed 255 characters", field="name")

        creator = self.db.query(User).filter(User.id == user_id).first()
        if not creator or creator.is_deleted:
            raise NotFoundError("User", user_id)

        description = description.strip() if description else None

        for attempt in range(1, self.max_attempts + 1):
            code = self.generate_invite_code()
            if self._invite_code_taken(code):
                continue
            try:
                group = Group(
                    name=name,
                    description=description or None,
                    invite_code=code,
                    created_by_id=user_id,
                )
                self.db.add(group)
                self.db.flush()
                self.db.add(GroupMembership(
                    group_id=group.id,
                    user_id=user_id,
                    role=GroupRole.ADMIN,
                ))
                self.db.commit()
                self.db.refresh(group)

                logger.info(f"Created group: {group.name} ({group.guid})")
                return group

            except IntegrityError as e:
                # A concurrent insert took the same code; try another
                self.db.rollback()
                logger.warning(f"Invite code collision on attempt {attempt}: {e}")

        raise ConflictError("Failed to generate a unique invite code")

    def get_by_id(self, group_id: int) -> Group:
        """
        Get a group by internal ID.

        Raises:
            NotFoundError: If group not found
        """
        group = self.db.query(Group).filter(Group.id == group_id).first()
        if not group:
            raise NotFoundError("Group", group_id)
        return group

    def get_by_guid(self, guid: str) -> Group:
        """
        Get a group by GUID.

        Raises:
            NotFoundError: If the GUID is malformed or the group is not found
        """
        try:
            uuid_value = GuidService.parse_guid(guid, "grp")
        except ValueError:
            raise NotFoundError("Group", guid)

        group = self.db.query(Group).filter(Group.uuid == uuid_value).first()
        if not group:
            raise NotFoundError("Group", guid)
        return group

    def get_membership(self, group_id: int, user_id: int) -> Optional[GroupMembership]:
        return (
            self.db.query(GroupMembership)
            .filter(GroupMembership.group_id == group_id)
            .filter(GroupMembership.user_id == user_id)
            .first()
        )

    def get_role(self, user_id: int, group_id: int) -> Optional[GroupRole]:
        """Role of the user in the group, or None if not a member."""
        membership = self.get_membership(group_id, user_id)
        return membership.role if membership else None

    def is_member(self, user_id: int, group_id: int) -> bool:
        return self.get_membership(group_id, user_id) is not None

    def is_admin(self, user_id: int, group_id: int) -> bool:
        return self.get_role(user_id, group_id) == GroupRole.ADMIN

    def count_admins(self, group_id: int) -> int:
        """Number of admin memberships in the group."""
        return (
            self.db.query(func.count(GroupMembership.id))
            .filter(GroupMembership.group_id == group_id)
            .filter(GroupMembership.role == GroupRole.ADMIN)
            .scalar()
        )

    def join(self, user_id: int, invite_code: str) -> GroupMembership:
        """
        Join a group using its invite code.

        Args:
            user_id: Joining user
            invite_code: Code as typed by the user (case and whitespace tolerant)

        Returns:
            New member-role membership

        Raises:
            NotFoundError: If the invite code is unknown
            ConflictError: If the user is already a member
        """
        code = (invite_code or "").strip().upper()
        group = self.db.query(Group).filter(Group.invite_code == code).first()
        if not group:
            raise NotFoundError("Invite code", code)

        if self.is_member(user_id, group.id):
            raise ConflictError("You're already a member of this group")

        try:
            membership = GroupMembership(
                group_id=group.id,
                user_id=user_id,
                role=GroupRole.MEMBER,
            )
            self.db.add(membership)
            self.db.commit()
            self.db.refresh(membership)

            logger.info(f"User {user_id} joined group {group.guid}")
            return membership

        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to join group {group.guid}: {e}")
            raise ConflictError("You're already a member of this group")

    def set_role(self, group_id: int, user_id: int, role: GroupRole) -> GroupMembership:
        """
        Promote or demote a member.

        Raises:
            NotFoundError: If the user is not a member
            ConflictError: If this would demote the last admin
        """
        membership = self.get_membership(group_id, user_id)
        if not membership:
            raise NotFoundError("Membership", f"{group_id}/{user_id}")

        if (
            membership.role == GroupRole.ADMIN
            and role != GroupRole.ADMIN
            and self.count_admins(group_id) <= 1
        ):
            raise ConflictError("Cannot demote the only admin")

        membership.role = role
        self.db.commit()
        self.db.refresh(membership)

        logger.info(f"Set role {role.value} for user {user_id} in group {group_id}")
        return membership

    def remove_member(self, group_id: int, user_id: int) -> None:
        """
        Remove a member from a group (kick or leave).

        Raises:
            NotFoundError: If the user is not a member
            ConflictError: If the user is the only admin
        """
        membership = self.get_membership(group_id, user_id)
        if not membership:
            raise NotFoundError("Membership", f"{group_id}/{user_id}")

        if membership.role == GroupRole.ADMIN and self.count_admins(group_id) <= 1:
            raise ConflictError("Cannot remove the only admin")

        self.db.delete(membership)
        self.db.commit()

        logger.info(f"Removed user {user_id} from group {group_id}")

    def regenerate_invite_code(self, group_id: int) -> str:
        """
        Replace the group's invite code; the old code stops working.

        Raises:
            NotFoundError: If group not found
            ConflictError: If no unique code could be generated
        """
        group = self.get_by_id(group_id)

        for attempt in range(1, self.max_attempts + 1):
            code = self.generate_invite_code()
            if code == group.invite_code or self._invite_code_taken(code):
                continue
            try:
                group.invite_code = code
                self.db.commit()
                logger.info(f"Regenerated invite code for group {group.guid}")
                return code
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"Invite code collision on attempt {attempt}: {e}")

        raise ConflictError("Failed to generate a unique invite code")
