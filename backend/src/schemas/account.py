"""
Account Pydantic schemas for API request/response validation.

Defines schemas for the account deletion preview and the deletion request.
Field names are snake_case in Python and camelCase on the wire.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from backend.src.services.account_service import (
    AccountDeletionPreview,
    GroupOwnershipInfo,
    MemberInfo,
)


_CAMEL_CONFIG = {"populate_by_name": True}


# ============================================================================
# Response Schemas
# ============================================================================


class MemberSummary(BaseModel):
    """Another member of a group, as offered for ownership transfer."""

    id: str = Field(..., description="User GUID (usr_xxx)")
    name: str = Field(..., description="Display name")


class GroupOwnershipResponse(BaseModel):
    """The user's position in one group."""

    group_id: str = Field(..., alias="groupId", description="Group GUID (grp_xxx)")
    group_name: str = Field(..., alias="groupName")
    role: str = Field(..., description="admin or member")
    is_sole_admin: bool = Field(..., alias="isSoleAdmin")
    member_count: int = Field(..., alias="memberCount", description="Members including the user")
    other_admins: List[MemberSummary] = Field(default_factory=list, alias="otherAdmins")
    other_members: List[MemberSummary] = Field(default_factory=list, alias="otherMembers")

    model_config = _CAMEL_CONFIG


class AccountDeletionPreviewResponse(BaseModel):
    """What deleting the account would affect."""

    sole_admin_groups: List[GroupOwnershipResponse] = Field(default_factory=list, alias="soleAdminGroups")
    shared_admin_groups: List[GroupOwnershipResponse] = Field(default_factory=list, alias="sharedAdminGroups")
    member_only_groups: List[GroupOwnershipResponse] = Field(default_factory=list, alias="memberOnlyGroups")
    created_request_count: int = Field(0, alias="createdRequestCount")
    created_event_count: int = Field(0, alias="createdEventCount")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "soleAdminGroups": [{
                    "groupId": "grp_01hgw2bbg0000000000000001",
                    "groupName": "Late Night Improv",
                    "role": "admin",
                    "isSoleAdmin": True,
                    "memberCount": 2,
                    "otherAdmins": [],
                    "otherMembers": [{"id": "usr_01hgw2bbg0000000000000002", "name": "Bea"}],
                }],
                "sharedAdminGroups": [],
                "memberOnlyGroups": [],
                "createdRequestCount": 1,
                "createdEventCount": 3,
            }
        },
    }


class AccountDeletedResponse(BaseModel):
    deleted: bool = True


# ============================================================================
# Request Schemas
# ============================================================================


class GroupDecisionRequest(BaseModel):
    """
    Decision for one sole-admin group.

    Action values are checked by the service so that an unknown action is a
    400 with a readable message rather than a schema error.
    """

    action: str = Field(..., description="transfer or delete")
    group_id: str = Field(..., alias="groupId", description="Group GUID (grp_xxx)")
    new_admin_id: Optional[str] = Field(None, alias="newAdminId", description="User GUID for transfer")

    model_config = _CAMEL_CONFIG

    def to_wire(self) -> dict:
        data = {"action": self.action, "groupId": self.group_id}
        if self.new_admin_id is not None:
            data["newAdminId"] = self.new_admin_id
        return data


class DeleteAccountRequest(BaseModel):
    """Request body for deleting the signed-in account."""

    confirm_email: str = Field(..., alias="confirmEmail", description="Must match the account email")
    decisions: List[GroupDecisionRequest] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "confirmEmail": "ada@example.com",
                "decisions": [
                    {"action": "transfer", "groupId": "grp_01hgw2bbg0000000000000001",
                     "newAdminId": "usr_01hgw2bbg0000000000000002"},
                ],
            }
        },
    }


# ============================================================================
# Conversion helpers
# ============================================================================


def _member_to_summary(member: MemberInfo) -> MemberSummary:
    return MemberSummary(id=member.guid, name=member.name)


def _ownership_to_response(info: GroupOwnershipInfo) -> GroupOwnershipResponse:
    return GroupOwnershipResponse(
        group_id=info.group_guid,
        group_name=info.group_name,
        role=info.role.value,
        is_sole_admin=info.is_sole_admin,
        member_count=info.member_count,
        other_admins=[_member_to_summary(m) for m in info.other_admins],
        other_members=[_member_to_summary(m) for m in info.other_members],
    )


def preview_to_response(preview: AccountDeletionPreview) -> AccountDeletionPreviewResponse:
    """Convert a service preview into its API representation (GUIDs only)."""
    return AccountDeletionPreviewResponse(
        sole_admin_groups=[_ownership_to_response(g) for g in preview.sole_admin_groups],
        shared_admin_groups=[_ownership_to_response(g) for g in preview.shared_admin_groups],
        member_only_groups=[_ownership_to_response(g) for g in preview.member_only_groups],
        created_request_count=preview.created_request_count,
        created_event_count=preview.created_event_count,
    )
