"""
Unit tests for AccountDeletionService.

Covers the deletion preview (group classification and content counts),
decision parsing and validation, and the deletion transaction: ownership
transfer, group deletion, successor attribution, cleanup and rollback.
"""

from datetime import datetime
from unittest.mock import patch

import pytest

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
from backend.src.services.account_service import (
    AccountDeletionService,
    GroupDecision,
)
from backend.src.services.exceptions import NotFoundError, ValidationError


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def account_service(test_db_session):
    """Create an AccountDeletionService instance for testing."""
    return AccountDeletionService(test_db_session)


@pytest.fixture
def scenario_a(sample_user, sample_group, sample_membership, sample_event, sample_request):
    """
    Departing user is sole admin of X (two other members) and shares admin
    of Y with one other admin.
    """
    departing = sample_user(name="Ada")
    bea = sample_user(name="Bea")
    cy = sample_user(name="Cy")
    dee = sample_user(name="Dee")

    x = sample_group(departing, name="X Players")
    sample_membership(x, bea)
    sample_membership(x, cy)

    y = sample_group(dee, name="Y Ensemble")
    sample_membership(y, departing, role=GroupRole.ADMIN)

    x_event = sample_event(x, departing)
    x_request = sample_request(x, departing)
    y_event = sample_event(y, departing, title="Show night")
    y_request = sample_request(y, departing)

    return {
        "departing": departing, "bea": bea, "cy": cy, "dee": dee,
        "x": x, "y": y,
        "x_event_id": x_event.id, "x_request_id": x_request.id,
        "y_event_id": y_event.id, "y_request_id": y_request.id,
    }


def _admin_ids(db, group_id):
    return {
        m.user_id for m in db.query(GroupMembership).filter(
            GroupMembership.group_id == group_id,
            GroupMembership.role == GroupRole.ADMIN,
        )
    }


def _assert_no_references(db, user_id):
    assert db.query(GroupMembership).filter(GroupMembership.user_id == user_id).count() == 0
    assert db.query(AvailabilityResponse).filter(AvailabilityResponse.user_id == user_id).count() == 0
    assert db.query(EventAssignment).filter(EventAssignment.user_id == user_id).count() == 0
    assert db.query(Group).filter(Group.created_by_id == user_id).count() == 0
    assert db.query(Event).filter(Event.created_by_id == user_id).count() == 0
    assert db.query(AvailabilityRequest).filter(AvailabilityRequest.created_by_id == user_id).count() == 0


def _assert_every_group_has_admin(db):
    for group in db.query(Group).all():
        assert len(_admin_ids(db, group.id)) >= 1, f"{group.name} has no admin"


# ============================================================================
# Preview Tests
# ============================================================================


class TestDeletionPreview:
    """Tests for compute_deletion_preview."""

    def test_preview_classifies_groups(self, account_service, scenario_a, sample_group, sample_membership, sample_user):
        """Test sole-admin, shared-admin and member-only classification."""
        owner = sample_user(name="Eve")
        z = sample_group(owner, name="Z Choir")
        sample_membership(z, scenario_a["departing"])

        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        assert [g.group_name for g in preview.sole_admin_groups] == ["X Players"]
        assert [g.group_name for g in preview.shared_admin_groups] == ["Y Ensemble"]
        assert [g.group_name for g in preview.member_only_groups] == ["Z Choir"]
        assert preview.requires_decisions is True

    def test_preview_member_lists(self, account_service, scenario_a):
        """Test other admins and members exclude the user and keep join order."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        x_info = preview.sole_admin_groups[0]
        assert x_info.is_sole_admin is True
        assert x_info.role == GroupRole.ADMIN
        assert x_info.member_count == 3
        assert x_info.other_admins == []
        assert [m.name for m in x_info.other_members] == ["Bea", "Cy"]
        assert x_info.other_members[0].guid == scenario_a["bea"].guid

        y_info = preview.shared_admin_groups[0]
        assert y_info.is_sole_admin is False
        assert [m.name for m in y_info.other_admins] == ["Dee"]
        assert y_info.other_members == []

    def test_preview_content_counts(self, account_service, scenario_a):
        """Test authored events and requests are counted across groups."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        assert preview.created_event_count == 2
        assert preview.created_request_count == 2

    def test_preview_is_idempotent(self, account_service, scenario_a):
        """Test two previews without writes in between are identical."""
        first = account_service.compute_deletion_preview(scenario_a["departing"].id)
        second = account_service.compute_deletion_preview(scenario_a["departing"].id)

        assert first == second

    def test_preview_user_without_groups(self, account_service, sample_user):
        """Test a user with no memberships gets an empty preview."""
        loner = sample_user()

        preview = account_service.compute_deletion_preview(loner.id)

        assert preview.sole_admin_groups == []
        assert preview.shared_admin_groups == []
        assert preview.member_only_groups == []
        assert preview.created_event_count == 0
        assert preview.created_request_count == 0
        assert preview.requires_decisions is False

    def test_preview_unknown_user(self, account_service):
        """Test preview of a missing user raises NotFoundError."""
        with pytest.raises(NotFoundError):
            account_service.compute_deletion_preview(99999)

    def test_preview_deleted_user(self, account_service, sample_user):
        """Test preview of a soft-deleted user raises NotFoundError."""
        gone = sample_user(deleted_at=datetime(2026, 1, 1))

        with pytest.raises(NotFoundError):
            account_service.compute_deletion_preview(gone.id)

    def test_find_sole_admin_group(self, account_service, scenario_a):
        """Test lookup of a sole-admin group by GUID."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        assert preview.find_sole_admin_group(scenario_a["x"].guid).group_name == "X Players"
        assert preview.find_sole_admin_group(scenario_a["y"].guid) is None


# ============================================================================
# Decision Parsing Tests
# ============================================================================


class TestGroupDecisionFromDict:
    """Tests for GroupDecision.from_dict."""

    def test_parse_transfer(self):
        """Test parsing a transfer decision."""
        decision = GroupDecision.from_dict(
            {"action": "transfer", "groupId": "grp_a", "newAdminId": "usr_b"}
        )

        assert decision.action == "transfer"
        assert decision.group_guid == "grp_a"
        assert decision.new_admin_guid == "usr_b"

    def test_parse_delete_ignores_new_admin(self):
        """Test a delete decision drops any newAdminId."""
        decision = GroupDecision.from_dict(
            {"action": "delete", "groupId": "grp_a", "newAdminId": "usr_b"}
        )

        assert decision.action == "delete"
        assert decision.new_admin_guid is None

    @pytest.mark.parametrize("payload", [
        {"action": "archive", "groupId": "grp_a"},
        {"groupId": "grp_a"},
        {"action": "delete"},
        {"action": "transfer", "groupId": "grp_a"},
        "delete",
    ])
    def test_parse_invalid(self, payload):
        """Test malformed decisions raise ValidationError."""
        with pytest.raises(ValidationError):
            GroupDecision.from_dict(payload)


# ============================================================================
# Validation Tests
# ============================================================================


class TestValidateDecisions:
    """Tests for validate_decisions."""

    def test_valid_transfer(self, account_service, scenario_a):
        """Test a transfer to another member passes."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        account_service.validate_decisions(preview, [
            GroupDecision("transfer", scenario_a["x"].guid, scenario_a["bea"].guid),
        ])

    def test_missing_decision(self, account_service, scenario_a):
        """Test a sole-admin group without a decision is rejected."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        with pytest.raises(ValidationError, match="Missing decision"):
            account_service.validate_decisions(preview, [])

    def test_duplicate_decision(self, account_service, scenario_a):
        """Test two decisions for one group are rejected."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)
        x_guid = scenario_a["x"].guid

        with pytest.raises(ValidationError, match="Duplicate"):
            account_service.validate_decisions(preview, [
                GroupDecision("delete", x_guid),
                GroupDecision("transfer", x_guid, scenario_a["bea"].guid),
            ])

    def test_decision_for_shared_admin_group(self, account_service, scenario_a):
        """Test a decision naming a group that is not sole-admin is rejected."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        with pytest.raises(ValidationError, match="does not need a decision"):
            account_service.validate_decisions(preview, [
                GroupDecision("delete", scenario_a["x"].guid),
                GroupDecision("delete", scenario_a["y"].guid),
            ])

    def test_transfer_to_self(self, account_service, scenario_a):
        """Test the departing user cannot be the new admin."""
        preview = account_service.compute_deletion_preview(scenario_a["departing"].id)

        with pytest.raises(ValidationError):
            account_service.validate_decisions(preview, [
                GroupDecision("transfer", scenario_a["x"].guid, scenario_a["departing"].guid),
            ])


# ============================================================================
# Execution Tests
# ============================================================================


class TestExecuteDeletion:
    """Tests for execute_deletion."""

    def test_transfer_and_shared_admin(self, account_service, test_db_session, scenario_a):
        """Test transferring a sole-admin group and leaving a shared-admin group."""
        departing_id = scenario_a["departing"].id
        bea_id = scenario_a["bea"].id
        dee_id = scenario_a["dee"].id
        x_id = scenario_a["x"].id
        y_id = scenario_a["y"].id

        account_service.execute_deletion(departing_id, [
            GroupDecision("transfer", scenario_a["x"].guid, scenario_a["bea"].guid),
        ])

        db = test_db_session
        assert _admin_ids(db, x_id) == {bea_id}
        assert db.get(Group, x_id).created_by_id == bea_id
        assert db.get(Event, scenario_a["x_event_id"]).created_by_id == bea_id
        assert db.get(AvailabilityRequest, scenario_a["x_request_id"]).created_by_id == bea_id

        assert _admin_ids(db, y_id) == {dee_id}
        assert db.get(Event, scenario_a["y_event_id"]).created_by_id == dee_id
        assert db.get(AvailabilityRequest, scenario_a["y_request_id"]).created_by_id == dee_id

        _assert_no_references(db, departing_id)
        _assert_every_group_has_admin(db)
        assert db.get(User, departing_id).deleted_at is not None

    def test_delete_group_removes_scoped_rows(
        self, account_service, test_db_session, sample_user, sample_group,
        sample_event, sample_request, sample_response, sample_assignment,
    ):
        """Test deleting a sole-admin group with no other members."""
        departing = sample_user()
        z = sample_group(departing, name="Z Solo")
        request = sample_request(z, departing)
        event = sample_event(z, departing, request=request)
        sample_response(request, departing)
        sample_assignment(event, departing)
        z_id, event_id, request_id = z.id, event.id, request.id
        departing_id = departing.id

        account_service.execute_deletion(departing_id, [GroupDecision("delete", z.guid)])

        db = test_db_session
        assert db.query(Group).filter(Group.id == z_id).count() == 0
        assert db.query(Event).filter(Event.id == event_id).count() == 0
        assert db.query(AvailabilityRequest).filter(AvailabilityRequest.id == request_id).count() == 0
        assert db.query(GroupMembership).filter(GroupMembership.group_id == z_id).count() == 0
        _assert_no_references(db, departing_id)

    def test_member_only_content_goes_to_earliest_admin(
        self, account_service, test_db_session, sample_user, sample_group,
        sample_membership, sample_event, sample_request,
    ):
        """Test content in a member-only group is reassigned to the earliest-joined admin."""
        owner = sample_user(name="Owner")
        later_admin = sample_user(name="Later")
        departing = sample_user(name="Member")
        g = sample_group(owner)
        sample_membership(g, later_admin, role=GroupRole.ADMIN)
        sample_membership(g, departing)
        event = sample_event(g, departing)
        request = sample_request(g, departing)
        owner_id, departing_id = owner.id, departing.id
        event_id, request_id = event.id, request.id

        account_service.execute_deletion(departing_id, [])

        db = test_db_session
        assert db.get(Event, event_id).created_by_id == owner_id
        assert db.get(AvailabilityRequest, request_id).created_by_id == owner_id
        _assert_no_references(db, departing_id)

    def test_content_in_previously_left_group(
        self, account_service, test_db_session, sample_user, sample_group, sample_event,
    ):
        """Test attribution in a group the user already left is still reassigned."""
        owner = sample_user()
        departing = sample_user()
        g = sample_group(owner)
        event = sample_event(g, departing)
        owner_id, departing_id, event_id = owner.id, departing.id, event.id

        account_service.execute_deletion(departing_id, [])

        assert test_db_session.get(Event, event_id).created_by_id == owner_id

    def test_shared_admin_successor_is_earliest_joined(
        self, account_service, test_db_session, sample_user, sample_group, sample_membership,
    ):
        """Test the earliest-joined other admin inherits group attribution."""
        departing = sample_user()
        first = sample_user()
        second = sample_user()
        g = sample_group(departing)
        sample_membership(g, second, role=GroupRole.ADMIN, joined_at=datetime(2026, 5, 1))
        sample_membership(g, first, role=GroupRole.ADMIN, joined_at=datetime(2026, 4, 1))
        g_id, first_id, departing_id = g.id, first.id, departing.id

        account_service.execute_deletion(departing_id, [])

        assert test_db_session.get(Group, g_id).created_by_id == first_id

    def test_responses_and_assignments_removed(
        self, account_service, test_db_session, sample_user, sample_group, sample_membership,
        sample_event, sample_request, sample_response, sample_assignment,
    ):
        """Test the user's responses and assignments are deleted, others kept."""
        owner = sample_user()
        departing = sample_user()
        g = sample_group(owner)
        sample_membership(g, departing)
        event = sample_event(g, owner)
        request = sample_request(g, owner)
        sample_response(request, departing)
        sample_response(request, owner)
        sample_assignment(event, departing)
        sample_assignment(event, owner)
        owner_id, departing_id = owner.id, departing.id

        account_service.execute_deletion(departing_id, [])

        db = test_db_session
        _assert_no_references(db, departing_id)
        assert db.query(AvailabilityResponse).filter(AvailabilityResponse.user_id == owner_id).count() == 1
        assert db.query(EventAssignment).filter(EventAssignment.user_id == owner_id).count() == 1

    def test_user_row_is_soft_deleted(self, account_service, test_db_session, sample_user):
        """Test the user row persists with deleted_at set."""
        departing = sample_user()
        departing_id = departing.id
        when = datetime(2026, 6, 1, 9, 30)

        account_service.execute_deletion(departing_id, [], now=when)

        user = test_db_session.get(User, departing_id)
        assert user is not None
        assert user.deleted_at == when
        assert user.is_deleted is True

    def test_mixed_decisions(
        self, account_service, test_db_session, sample_user, sample_group, sample_membership,
    ):
        """Test transfer and delete decisions applied together."""
        departing = sample_user()
        heir = sample_user()
        keep = sample_group(departing, name="Keep")
        drop = sample_group(departing, name="Drop")
        sample_membership(keep, heir)
        keep_id, drop_id, heir_id = keep.id, drop.id, heir.id

        account_service.execute_deletion(departing.id, [
            GroupDecision("delete", drop.guid),
            GroupDecision("transfer", keep.guid, heir.guid),
        ])

        db = test_db_session
        assert db.query(Group).filter(Group.id == drop_id).count() == 0
        assert _admin_ids(db, keep_id) == {heir_id}
        _assert_every_group_has_admin(db)


# ============================================================================
# Rejection and Rollback Tests
# ============================================================================


class TestExecuteDeletionRejected:
    """Tests that failed deletions leave every row untouched."""

    def _snapshot(self, db):
        return {
            "groups": db.query(Group).count(),
            "memberships": sorted(
                (m.group_id, m.user_id, m.role.value) for m in db.query(GroupMembership)
            ),
            "events": sorted((e.id, e.created_by_id) for e in db.query(Event)),
            "requests": sorted((r.id, r.created_by_id) for r in db.query(AvailabilityRequest)),
            "deleted_users": db.query(User).filter(User.deleted_at.isnot(None)).count(),
        }

    def test_missing_decision_touches_nothing(self, account_service, test_db_session, scenario_a):
        """Test omitting a sole-admin group decision raises before any write."""
        before = self._snapshot(test_db_session)

        with pytest.raises(ValidationError):
            account_service.execute_deletion(scenario_a["departing"].id, [])

        assert self._snapshot(test_db_session) == before

    def test_non_member_new_admin_touches_nothing(
        self, account_service, test_db_session, scenario_a,
    ):
        """Test naming a non-member as new admin raises before any write."""
        before = self._snapshot(test_db_session)

        with pytest.raises(ValidationError):
            account_service.execute_deletion(scenario_a["departing"].id, [
                GroupDecision("transfer", scenario_a["x"].guid, scenario_a["dee"].guid),
            ])

        assert self._snapshot(test_db_session) == before

    def test_mid_batch_failure_rolls_back(
        self, account_service, test_db_session, sample_user, sample_group, sample_membership,
    ):
        """Test a failure after earlier decisions were applied rolls everything back."""
        departing = sample_user()
        outsider = sample_user()
        first = sample_group(departing, name="First")
        second = sample_group(departing, name="Second")
        departing_id = departing.id
        decisions = [
            GroupDecision("delete", first.guid),
            GroupDecision("transfer", second.guid, outsider.guid),
        ]
        before = self._snapshot(test_db_session)

        with patch.object(AccountDeletionService, "validate_decisions"):
            with pytest.raises(NotFoundError):
                account_service.execute_deletion(departing_id, decisions)

        assert self._snapshot(test_db_session) == before
        assert test_db_session.get(User, departing_id).deleted_at is None

    def test_unknown_group_in_decision(self, account_service, sample_user):
        """Test a decision for a group that no longer exists raises NotFoundError."""
        departing = sample_user()

        with patch.object(AccountDeletionService, "validate_decisions"):
            with pytest.raises(NotFoundError):
                account_service.execute_deletion(departing.id, [
                    GroupDecision("delete", "grp_01hgw2bbg00000000000000001"),
                ])

    def test_no_successor_admin(
        self, account_service, test_db_session, sample_user, sample_group, sample_event,
    ):
        """Test attribution with no admin to inherit it raises NotFoundError."""
        creator = sample_user()
        departing = sample_user()
        g = sample_group(creator, with_admin=False)
        sample_event(g, departing)
        departing_id = departing.id

        with pytest.raises(NotFoundError):
            account_service.execute_deletion(departing_id, [])

        assert test_db_session.get(User, departing_id).deleted_at is None

    def test_already_deleted_user(self, account_service, sample_user):
        """Test deleting an already soft-deleted user raises NotFoundError."""
        gone = sample_user(deleted_at=datetime(2026, 1, 1))

        with pytest.raises(NotFoundError):
            account_service.execute_deletion(gone.id, [])


# ============================================================================
# Facade Tests
# ============================================================================


class TestDeleteAccount:
    """Tests for delete_account with wire-shaped decisions."""

    def test_wire_decisions(self, account_service, test_db_session, scenario_a):
        """Test dict decisions are parsed and executed."""
        departing_id = scenario_a["departing"].id
        x_id, bea_id = scenario_a["x"].id, scenario_a["bea"].id

        account_service.delete_account(departing_id, [
            {"action": "transfer", "groupId": scenario_a["x"].guid, "newAdminId": scenario_a["bea"].guid},
        ])

        assert _admin_ids(test_db_session, x_id) == {bea_id}
        _assert_no_references(test_db_session, departing_id)

    def test_malformed_wire_decision(self, account_service, scenario_a):
        """Test an unknown action is a ValidationError."""
        with pytest.raises(ValidationError):
            account_service.delete_account(scenario_a["departing"].id, [
                {"action": "archive", "groupId": scenario_a["x"].guid},
            ])
