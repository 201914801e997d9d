"""
Integration tests for the account API endpoints.

Tests the deletion preview and deletion endpoints through the FastAPI app,
and session-based authentication through require_user.
"""

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from backend.src.db.database import get_db
from backend.src.middleware.auth import SESSION_USER_KEY, UserContext, require_user
from backend.src.models import Group, GroupMembership, GroupRole, User


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def departing(sample_user):
    return sample_user(name="Ada", email="ada@example.com")


@pytest.fixture
def client(test_db_session, departing):
    """Test client signed in as the departing user."""
    from backend.src.main import app as main_app

    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    def override_require_user():
        return UserContext(
            user_id=departing.id,
            user_guid=departing.guid,
            user_email=departing.email,
        )

    main_app.dependency_overrides[get_db] = override_get_db
    main_app.dependency_overrides[require_user] = override_require_user

    with TestClient(main_app) as test_client:
        yield test_client

    main_app.dependency_overrides.clear()


@pytest.fixture
def sole_admin_group(departing, sample_user, sample_group, sample_membership):
    """Group X where the departing user is the only admin, plus member Bea."""
    group = sample_group(departing, name="X Players")
    bea = sample_user(name="Bea")
    sample_membership(group, bea)
    return group, bea


# ============================================================================
# Preview Endpoint
# ============================================================================


class TestDeletionPreviewEndpoint:
    """Tests for GET /api/account/deletion-preview."""

    def test_preview_camel_case(self, client, sole_admin_group):
        """Test the preview uses camelCase keys and GUIDs."""
        group, bea = sole_admin_group

        response = client.get("/api/account/deletion-preview")

        assert response.status_code == 200
        data = response.json()
        assert data["sharedAdminGroups"] == []
        assert data["memberOnlyGroups"] == []
        assert data["createdEventCount"] == 0
        assert data["createdRequestCount"] == 0

        sole = data["soleAdminGroups"][0]
        assert sole["groupId"] == group.guid
        assert sole["groupName"] == "X Players"
        assert sole["role"] == "admin"
        assert sole["isSoleAdmin"] is True
        assert sole["memberCount"] == 2
        assert sole["otherMembers"] == [{"id": bea.guid, "name": "Bea"}]

    def test_preview_empty(self, client):
        response = client.get("/api/account/deletion-preview")

        assert response.status_code == 200
        assert response.json()["soleAdminGroups"] == []


# ============================================================================
# Delete Endpoint
# ============================================================================


class TestDeleteAccountEndpoint:
    """Tests for POST /api/account/delete."""

    def test_delete_with_transfer(self, client, test_db_session, departing, sole_admin_group):
        """Test a successful deletion transfers the group."""
        group, bea = sole_admin_group
        group_id, bea_id, departing_id = group.id, bea.id, departing.id

        response = client.post("/api/account/delete", json={
            "confirmEmail": "ADA@example.com",
            "decisions": [
                {"action": "transfer", "groupId": group.guid, "newAdminId": bea.guid},
            ],
        })

        assert response.status_code == 200
        assert response.json() == {"deleted": True}

        admins = test_db_session.query(GroupMembership).filter(
            GroupMembership.group_id == group_id,
            GroupMembership.role == GroupRole.ADMIN,
        ).all()
        assert [m.user_id for m in admins] == [bea_id]
        assert test_db_session.get(User, departing_id).deleted_at is not None

    def test_delete_email_mismatch(self, client, test_db_session, departing, sole_admin_group):
        """Test a wrong confirmation email is a 400 and nothing changes."""
        group, _ = sole_admin_group

        response = client.post("/api/account/delete", json={
            "confirmEmail": "someone@example.com",
            "decisions": [{"action": "delete", "groupId": group.guid}],
        })

        assert response.status_code == 400
        assert test_db_session.query(Group).filter(Group.id == group.id).count() == 1

    def test_delete_missing_decision(self, client, sole_admin_group):
        """Test a missing sole-admin decision is a 400."""
        response = client.post("/api/account/delete", json={
            "confirmEmail": "ada@example.com",
            "decisions": [],
        })

        assert response.status_code == 400
        assert "Missing decision" in response.json()["detail"]

    def test_delete_unknown_action(self, client, sole_admin_group):
        group, _ = sole_admin_group

        response = client.post("/api/account/delete", json={
            "confirmEmail": "ada@example.com",
            "decisions": [{"action": "archive", "groupId": group.guid}],
        })

        assert response.status_code == 400

    def test_delete_stale_state_is_conflict(self, client, departing):
        """Test a NotFoundError during execution maps to 409."""
        from unittest.mock import patch
        from backend.src.services.account_service import AccountDeletionService
        from backend.src.services.exceptions import NotFoundError

        with patch.object(
            AccountDeletionService, "execute_deletion",
            side_effect=NotFoundError("Group", "grp_gone"),
        ):
            response = client.post("/api/account/delete", json={
                "confirmEmail": "ada@example.com",
                "decisions": [],
            })

        assert response.status_code == 409

    def test_delete_requires_body(self, client):
        response = client.post("/api/account/delete", json={})

        assert response.status_code == 422


# ============================================================================
# Session Authentication
# ============================================================================


@pytest.fixture
def session_client(test_db_session):
    """Minimal app with signed sessions and a route guarded by require_user."""
    app = FastAPI()
    app.add_middleware(SessionMiddleware, secret_key="test-secret-key-for-integration-tests")

    @app.post("/login/{user_guid}")
    async def login(user_guid: str, request: Request):
        request.session[SESSION_USER_KEY] = user_guid
        return {"ok": True}

    @app.get("/me")
    async def me(ctx: UserContext = Depends(require_user)):
        return {"guid": ctx.user_guid}

    def override_get_db():
        yield test_db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client


class TestRequireUser:
    """Tests for the require_user dependency."""

    def test_no_session(self, session_client):
        assert session_client.get("/me").status_code == 401

    def test_active_user(self, session_client, sample_user):
        user = sample_user()
        session_client.post(f"/login/{user.guid}")

        response = session_client.get("/me")

        assert response.status_code == 200
        assert response.json() == {"guid": user.guid}

    def test_deleted_user_rejected(self, session_client, sample_user):
        from datetime import datetime

        user = sample_user(deleted_at=datetime(2026, 1, 1))
        session_client.post(f"/login/{user.guid}")

        assert session_client.get("/me").status_code == 401

    def test_malformed_guid_rejected(self, session_client):
        session_client.post("/login/not-a-guid")

        assert session_client.get("/me").status_code == 401
