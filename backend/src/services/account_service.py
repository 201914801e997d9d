"""
Account deletion service.

Deleting an account must never leave a group without an admin, and must
never leave content attributed to a user who no longer exists. The flow has
two halves:

- compute_deletion_preview: classify every group the user belongs to as
  sole-admin, shared-admin or member-only, and count authored content
- execute_deletion: apply one caller decision (transfer or delete) per
  sole-admin group, hand the user's remaining attribution to a successor
  admin, remove the user's memberships, responses and assignments, and
  soft-delete the user row, all in a single transaction

Design:
- Decisions carry GUIDs; the executor re-derives internal ids from a fresh
  preview so a stale client view is rejected instead of half-applied
- Bulk statements use affected row counts to detect rows that vanished
  between preview and execution (NotFoundError, transaction rolled back)
- Audit log lines are emitted only after commit
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.src.models import (
    AvailabilityRequest,
    AvailabilityResponse,
    Event,
    EventAssignment,
    Group,
    GroupMembership,
    GroupRole,
    User,
)
from backend.src.utils.logging_config import get_logger
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.guid import GuidService


logger = get_logger("services")


ACTION_TRANSFER = "transfer"
ACTION_DELETE = "delete"
VALID_ACTIONS = (ACTION_TRANSFER, ACTION_DELETE)


# ============================================================================
# Preview data
# ============================================================================


@dataclass
class MemberInfo:
    """A group member as shown in the deletion preview."""
    id: int
    guid: str
    name: str


@dataclass
class GroupOwnershipInfo:
    """
    The departing user's position in one group.

    member_count includes the departing user; other_admins and other_members
    exclude them and are ordered by join time.
    """
    group_id: int
    group_guid: str
    group_name: str
    role: GroupRole
    is_sole_admin: bool
    member_count: int
    other_admins: List[MemberInfo] = field(default_factory=list)
    other_members: List[MemberInfo] = field(default_factory=list)

    def find_other_member(self, user_guid: str) -> Optional[MemberInfo]:
        """Another member (admin or not) of this group with the given GUID."""
        for member in self.other_admins + self.other_members:
            if member.guid == user_guid:
                return member
        return None


@dataclass
class AccountDeletionPreview:
    """Everything the caller must know before confirming a deletion."""
    sole_admin_groups: List[GroupOwnershipInfo] = field(default_factory=list)
    shared_admin_groups: List[GroupOwnershipInfo] = field(default_factory=list)
    member_only_groups: List[GroupOwnershipInfo] = field(default_factory=list)
    created_request_count: int = 0
    created_event_count: int = 0

    @property
    def requires_decisions(self) -> bool:
        """True when at least one group needs a transfer-or-delete decision."""
        return len(self.sole_admin_groups) > 0

    def find_sole_admin_group(self, group_guid: str) -> Optional[GroupOwnershipInfo]:
        for info in self.sole_admin_groups:
            if info.group_guid == group_guid:
                return info
        return None


@dataclass
class GroupDecision:
    """
    What to do with one sole-admin group.

    Wire shape:
        {"action": "transfer", "groupId": "grp_...", "newAdminId": "usr_..."}
        {"action": "delete", "groupId": "grp_..."}
    """
    action: str
    group_guid: str
    new_admin_guid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroupDecision":
        """
        Parse a decision from its wire shape.

        Raises:
            ValidationError: On unknown actions or missing fields
        """
        if not isinstance(data, dict):
            raise ValidationError("Each decision must be an object", field="decisions")

        action = data.get("action")
        if action not in VALID_ACTIONS:
            raise ValidationError(
                f"Unknown decision action: {action!r}. "
                f"Valid actions: {', '.join(VALID_ACTIONS)}",
                field="action",
            )

        group_guid = data.get("groupId")
        if not group_guid or not isinstance(group_guid, str):
            raise ValidationError("Decision is missing groupId", field="groupId")

        new_admin_guid = data.get("newAdminId")
        if action == ACTION_TRANSFER:
            if not new_admin_guid or not isinstance(new_admin_guid, str):
                raise ValidationError(
                    f"Transfer decision for group {group_guid} is missing newAdminId",
                    field="newAdminId",
                )
        else:
            new_admin_guid = None

        return cls(action=action, group_guid=group_guid, new_admin_guid=new_admin_guid)


# ============================================================================
# Service
# ============================================================================


class AccountDeletionService:
    """
    Service for previewing and executing account deletion.

    Usage:
        >>> service = AccountDeletionService(db_session)
        >>> preview = service.compute_deletion_preview(user.id)
        >>> decisions = [GroupDecision("delete", g.group_guid) for g in preview.sole_admin_groups]
        >>> service.execute_deletion(user.id, decisions)
    """

    def __init__(self, db: Session):
        """
        Initialize account deletion service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def _get_active_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user or user.is_deleted:
            raise NotFoundError("User", user_id)
        return user

    def _group_members(self, group_id: int) -> List[Tuple[User, GroupRole]]:
        rows = (
            self.db.query(User, GroupMembership.role)
            .join(GroupMembership, GroupMembership.user_id == User.id)
            .filter(GroupMembership.group_id == group_id)
            .order_by(GroupMembership.joined_at.asc(), GroupMembership.id.asc())
            .all()
        )
        return [(user, role) for user, role in rows]

    # ------------------------------------------------------------------------
    # Resolver
    # ------------------------------------------------------------------------

    def compute_deletion_preview(self, user_id: int) -> AccountDeletionPreview:
        """
        Classify the user's groups and count the content they authored.

        Pure read; repeated calls without intervening writes give the same
        result.

        Args:
            user_id: Internal ID of the departing user

        Returns:
            AccountDeletionPreview

        Raises:
            NotFoundError: If the user does not exist or is already deleted
        """
        self._get_active_user(user_id)

        memberships = (
            self.db.query(GroupMembership.role, Group)
            .join(Group, Group.id == GroupMembership.group_id)
            .filter(GroupMembership.user_id == user_id)
            .order_by(Group.name.asc(), Group.id.asc())
            .all()
        )

        preview = AccountDeletionPreview()

        for role, group in memberships:
            members = self._group_members(group.id)
            other_admins = []
            other_members = []
            for member, member_role in members:
                if member.id == user_id:
                    continue
                info = MemberInfo(id=member.id, guid=member.guid, name=member.name)
                if member_role == GroupRole.ADMIN:
                    other_admins.append(info)
                else:
                    other_members.append(info)

            is_admin = role == GroupRole.ADMIN
            ownership = GroupOwnershipInfo(
                group_id=group.id,
                group_guid=group.guid,
                group_name=group.name,
                role=role,
                is_sole_admin=is_admin and not other_admins,
                member_count=len(members),
                other_admins=other_admins,
                other_members=other_members,
            )

            if not is_admin:
                preview.member_only_groups.append(ownership)
            elif ownership.is_sole_admin:
                preview.sole_admin_groups.append(ownership)
            else:
                preview.shared_admin_groups.append(ownership)

        preview.created_event_count = (
            self.db.query(func.count(Event.id))
            .filter(Event.created_by_id == user_id)
            .scalar()
        )
        preview.created_request_count = (
            self.db.query(func.count(AvailabilityRequest.id))
            .filter(AvailabilityRequest.created_by_id == user_id)
            .scalar()
        )

        return preview

    # ------------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------------

    def validate_decisions(
        self,
        preview: AccountDeletionPreview,
        decisions: Sequence[GroupDecision],
    ) -> None:
        """
        Check the decisions against a preview before anything is written.

        Raises:
            ValidationError: If a sole-admin group has no decision, a group is
                decided twice, a decision names a group that is not a
                sole-admin group, or a transfer target is not another member
                of the group
        """
        seen = set()
        for decision in decisions:
            if decision.group_guid in seen:
                raise ValidationError(
                    f"Duplicate decision for group {decision.group_guid}",
                    field="decisions",
                )
            seen.add(decision.group_guid)

            info = preview.find_sole_admin_group(decision.group_guid)
            if info is None:
                raise ValidationError(
                    f"Group {decision.group_guid} does not need a decision",
                    field="decisions",
                )

            if decision.action == ACTION_TRANSFER:
                if not decision.new_admin_guid or not info.find_other_member(decision.new_admin_guid):
                    raise ValidationError(
                        f"New admin for group '{info.group_name}' must be another member of the group",
                        field="newAdminId",
                    )
            elif decision.action != ACTION_DELETE:
                raise ValidationError(
                    f"Unknown decision action: {decision.action!r}",
                    field="action",
                )

        missing = [g.group_name for g in preview.sole_admin_groups if g.group_guid not in seen]
        if missing:
            raise ValidationError(
                f"Missing decision for group(s): {', '.join(missing)}",
                field="decisions",
            )

    # ------------------------------------------------------------------------
    # Executor
    # ------------------------------------------------------------------------

    def _resolve_group_id(self, preview: AccountDeletionPreview, group_guid: str) -> int:
        info = preview.find_sole_admin_group(group_guid)
        if info is not None:
            return info.group_id
        try:
            uuid_value = GuidService.parse_guid(group_guid, "grp")
        except ValueError:
            raise NotFoundError("Group", group_guid)
        row = self.db.query(Group.id).filter(Group.uuid == uuid_value).first()
        if row is None:
            raise NotFoundError("Group", group_guid)
        return row[0]

    def _resolve_user_id(self, preview: AccountDeletionPreview, group_guid: str, user_guid: str) -> int:
        info = preview.find_sole_admin_group(group_guid)
        member = info.find_other_member(user_guid) if info else None
        if member is not None:
            return member.id
        try:
            uuid_value = GuidService.parse_guid(user_guid, "usr")
        except ValueError:
            raise NotFoundError("User", user_guid)
        row = self.db.query(User.id).filter(User.uuid == uuid_value).first()
        if row is None:
            raise NotFoundError("User", user_guid)
        return row[0]

    def _reassign_content(self, group_id: int, from_user_id: int, to_user_id: int) -> None:
        """Point the group's events and availability requests at another user."""
        self.db.query(Event).filter(
            Event.group_id == group_id,
            Event.created_by_id == from_user_id,
        ).update({Event.created_by_id: to_user_id}, synchronize_session=False)

        self.db.query(AvailabilityRequest).filter(
            AvailabilityRequest.group_id == group_id,
            AvailabilityRequest.created_by_id == from_user_id,
        ).update({AvailabilityRequest.created_by_id: to_user_id}, synchronize_session=False)

    def _transfer_group(
        self,
        user_id: int,
        group_id: int,
        group_guid: str,
        new_admin_id: int,
        now: datetime,
    ) -> None:
        promoted = self.db.query(GroupMembership).filter(
            GroupMembership.group_id == group_id,
            GroupMembership.user_id == new_admin_id,
        ).update({GroupMembership.role: GroupRole.ADMIN}, synchronize_session=False)
        if promoted == 0:
            raise NotFoundError("Membership", f"{group_guid}/{new_admin_id}")

        updated = self.db.query(Group).filter(Group.id == group_id).update(
            {Group.created_by_id: new_admin_id, Group.updated_at: now},
            synchronize_session=False,
        )
        if updated == 0:
            raise NotFoundError("Group", group_guid)

        self._reassign_content(group_id, user_id, new_admin_id)

        self.db.query(GroupMembership).filter(
            GroupMembership.group_id == group_id,
            GroupMembership.user_id == user_id,
        ).delete(synchronize_session=False)

    def _delete_group(self, group_id: int, group_guid: str) -> None:
        # Memberships, events, assignments, requests and responses go with it
        deleted = self.db.query(Group).filter(Group.id == group_id).delete(
            synchronize_session=False
        )
        if deleted == 0:
            raise NotFoundError("Group", group_guid)

    def _touched_group_ids(self, user_id: int) -> List[int]:
        """Groups still holding an admin membership or attribution for the user."""
        group_ids = set()
        group_ids.update(
            row[0] for row in self.db.query(GroupMembership.group_id).filter(
                GroupMembership.user_id == user_id,
                GroupMembership.role == GroupRole.ADMIN,
            )
        )
        group_ids.update(
            row[0] for row in self.db.query(Group.id).filter(Group.created_by_id == user_id)
        )
        group_ids.update(
            row[0] for row in self.db.query(Event.group_id)
            .filter(Event.created_by_id == user_id)
            .distinct()
        )
        group_ids.update(
            row[0] for row in self.db.query(AvailabilityRequest.group_id)
            .filter(AvailabilityRequest.created_by_id == user_id)
            .distinct()
        )
        return sorted(group_ids)

    def _find_successor(self, group_id: int, user_id: int) -> Optional[int]:
        """Earliest-joined admin of the group other than the given user."""
        row = (
            self.db.query(GroupMembership.user_id)
            .filter(GroupMembership.group_id == group_id)
            .filter(GroupMembership.role == GroupRole.ADMIN)
            .filter(GroupMembership.user_id != user_id)
            .order_by(GroupMembership.joined_at.asc(), GroupMembership.id.asc())
            .first()
        )
        return row[0] if row else None

    def execute_deletion(
        self,
        user_id: int,
        decisions: Sequence[GroupDecision],
        now: Optional[datetime] = None,
    ) -> None:
        """
        Delete an account in one transaction.

        Steps:
            1. Apply decisions in order (transfer or delete each sole-admin group)
            2. Hand remaining group and content attribution to the
               earliest-joined other admin of each affected group
            3. Remove the user's remaining memberships
            4. Remove the user's availability responses and event assignments
            5. Soft-delete the user row

        Args:
            user_id: Internal ID of the departing user
            decisions: One decision per sole-admin group
            now: Deletion timestamp (defaults to utcnow)

        Raises:
            ValidationError: If the decisions do not match a fresh preview
            NotFoundError: If the user, a group, a membership or a successor
                admin is missing at execution time (nothing is written)
        """
        preview = self.compute_deletion_preview(user_id)
        self.validate_decisions(preview, decisions)

        user_guid = GuidService.encode_uuid(
            self.db.query(User.uuid).filter(User.id == user_id).scalar(), "usr"
        )
        now = now or datetime.utcnow()
        audit: List[Tuple[str, Dict[str, Any]]] = []
        current_group: Optional[str] = None

        try:
            # Step 1: caller decisions
            for decision in decisions:
                current_group = decision.group_guid
                group_id = self._resolve_group_id(preview, decision.group_guid)

                if decision.action == ACTION_TRANSFER:
                    new_admin_id = self._resolve_user_id(
                        preview, decision.group_guid, decision.new_admin_guid
                    )
                    self._transfer_group(user_id, group_id, decision.group_guid, new_admin_id, now)
                    audit.append((
                        "Transferred group ownership during account deletion",
                        {
                            "user_guid": user_guid,
                            "group_guid": decision.group_guid,
                            "new_admin_guid": decision.new_admin_guid,
                        },
                    ))
                elif decision.action == ACTION_DELETE:
                    self._delete_group(group_id, decision.group_guid)
                    audit.append((
                        "Deleted group during account deletion",
                        {"user_guid": user_guid, "group_guid": decision.group_guid},
                    ))
                else:
                    raise ValidationError(
                        f"Unknown decision action: {decision.action!r}",
                        field="action",
                    )

            # Step 2: successor attribution in every other group the user touched
            for group_id in self._touched_group_ids(user_id):
                group_guid = GuidService.encode_uuid(
                    self.db.query(Group.uuid).filter(Group.id == group_id).scalar(), "grp"
                )
                current_group = group_guid

                successor_id = self._find_successor(group_id, user_id)
                if successor_id is None:
                    raise NotFoundError("Successor admin for group", group_guid)

                self.db.query(Group).filter(
                    Group.id == group_id,
                    Group.created_by_id == user_id,
                ).update(
                    {Group.created_by_id: successor_id, Group.updated_at: now},
                    synchronize_session=False,
                )
                self._reassign_content(group_id, user_id, successor_id)
                audit.append((
                    "Reassigned content attribution during account deletion",
                    {
                        "user_guid": user_guid,
                        "group_guid": group_guid,
                        "successor_user_id": successor_id,
                    },
                ))
            current_group = None

            # Step 3: remaining memberships
            self.db.query(GroupMembership).filter(
                GroupMembership.user_id == user_id
            ).delete(synchronize_session=False)

            # Step 4: responses and assignments
            self.db.query(AvailabilityResponse).filter(
                AvailabilityResponse.user_id == user_id
            ).delete(synchronize_session=False)
            self.db.query(EventAssignment).filter(
                EventAssignment.user_id == user_id
            ).delete(synchronize_session=False)

            # Step 5: soft delete
            soft_deleted = self.db.query(User).filter(
                User.id == user_id,
                User.deleted_at.is_(None),
            ).update(
                {User.deleted_at: now, User.updated_at: now},
                synchronize_session=False,
            )
            if soft_deleted == 0:
                raise NotFoundError("User", user_guid)

            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Account deletion failed: {e}",
                extra={"user_guid": user_guid, "group_guid": current_group},
            )
            raise

        # Identity map still holds pre-deletion state
        self.db.expire_all()

        for message, extra in audit:
            logger.info(message, extra=extra)
        logger.info("Account soft-deleted", extra={"user_guid": user_guid})

    def delete_account(
        self,
        user_id: int,
        decisions: Sequence[Union[GroupDecision, Dict[str, Any]]],
    ) -> None:
        """
        Delete an account from caller-supplied decisions.

        Accepts decisions in wire shape (dicts) or as GroupDecision objects,
        validates them against a fresh preview and executes.

        Raises:
            ValidationError: If a decision is malformed or does not match
            NotFoundError: If state changed since the caller's preview
        """
        parsed = [
            d if isinstance(d, GroupDecision) else GroupDecision.from_dict(d)
            for d in decisions or []
        ]
        self.execute_deletion(user_id, parsed)
