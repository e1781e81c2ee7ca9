"""User tests — tenant-scoped listing/lookup, admin operations, own profile."""

from __future__ import annotations

import uuid

from enxero.auth.security import verify_password
from tests.conftest import TEST_PASSWORD, make_role, make_user

USERS_URL = "/api/v1/users"


class TestListAndGet:

    async def test_list_is_tenant_scoped(self, client, db, auth_headers, company, other_company):
        await make_user(db, company, email="colleague@acme.io")
        await make_user(db, other_company, email="stranger@globex.io")

        resp = await client.get(USERS_URL, headers=auth_headers)
        assert resp.status_code == 200
        emails = {u["email"] for u in resp.json()["data"]}
        assert emails == {"admin@acme.io", "colleague@acme.io"}
        assert resp.json()["meta"]["total"] == 2

    async def test_search(self, client, db, auth_headers, company):
        await make_user(db, company, email="zed@acme.io", username="zed")
        resp = await client.get(f"{USERS_URL}?search=zed", headers=auth_headers)
        assert [u["email"] for u in resp.json()["data"]] == ["zed@acme.io"]

    async def test_get_user_includes_role(self, client, auth_headers, admin_user):
        resp = await client.get(f"{USERS_URL}/{admin_user.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["role"]["permissions"] == ["*"]

    async def test_cross_tenant_lookup_is_not_found(self, client, db, auth_headers, other_company):
        stranger = await make_user(db, other_company)
        resp = await client.get(f"{USERS_URL}/{stranger.id}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "User not found"

    async def test_missing_user_is_not_found(self, client, auth_headers):
        resp = await client.get(f"{USERS_URL}/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_list_needs_permission(self, client, viewer_headers):
        resp = await client.get(USERS_URL, headers=viewer_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "Insufficient permissions"


class TestAdministration:

    async def test_create_with_temporary_password(self, client, db, auth_headers, company):
        resp = await client.post(
            USERS_URL,
            json={"email": "new@acme.io", "username": "newbie", "firstName": "N", "lastName": "B"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["companyId"] == str(company.id)
        temporary = data["temporaryPassword"]
        assert temporary

        login = await client.post("/api/v1/auth/login", json={"email": "newbie", "password": temporary})
        assert login.status_code == 200

    async def test_create_duplicate_email(self, client, auth_headers, admin_user):
        resp = await client.post(
            USERS_URL,
            json={"email": "admin@acme.io", "username": "other", "firstName": "A", "lastName": "B"},
            headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["message"] == "User with this email already exists"

    async def test_create_with_foreign_role(self, client, db, auth_headers, other_company):
        foreign_role = await make_role(db, other_company, name="FOREIGN")
        resp = await client.post(
            USERS_URL,
            json={
                "email": "x@acme.io", "username": "xuser", "firstName": "X", "lastName": "Y",
                "roleId": str(foreign_role.id),
            },
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Role does not belong to this company"

    async def test_update_user(self, client, db, auth_headers, company):
        target = await make_user(db, company)
        resp = await client.put(
            f"{USERS_URL}/{target.id}", json={"firstName": "Renamed"}, headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["firstName"] == "Renamed"

    async def test_status_and_toggle(self, client, db, auth_headers, company):
        target = await make_user(db, company)
        resp = await client.put(
            f"{USERS_URL}/{target.id}/status", json={"isActive": False}, headers=auth_headers,
        )
        assert resp.json()["data"]["isActive"] is False

        resp = await client.patch(f"{USERS_URL}/{target.id}/toggle-active", headers=auth_headers)
        assert resp.json()["data"]["isActive"] is True

    async def test_cannot_deactivate_self(self, client, auth_headers, admin_user):
        resp = await client.patch(f"{USERS_URL}/{admin_user.id}/toggle-active", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "You cannot deactivate your own account"

    async def test_delete_user(self, client, db, auth_headers, company):
        target = await make_user(db, company)
        resp = await client.delete(f"{USERS_URL}/{target.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert (await client.get(f"{USERS_URL}/{target.id}", headers=auth_headers)).status_code == 404

    async def test_cannot_delete_self(self, client, auth_headers, admin_user):
        resp = await client.delete(f"{USERS_URL}/{admin_user.id}", headers=auth_headers)
        assert resp.status_code == 400

    async def test_cannot_touch_other_tenant(self, client, db, auth_headers, other_company):
        stranger = await make_user(db, other_company)
        resp = await client.delete(f"{USERS_URL}/{stranger.id}", headers=auth_headers)
        assert resp.status_code == 404


class TestOwnProfile:

    async def test_get_and_update_profile(self, client, auth_headers):
        resp = await client.put(
            f"{USERS_URL}/profile", json={"firstName": "Ada", "avatar": "a.png"}, headers=auth_headers,
        )
        assert resp.status_code == 200

        resp = await client.get(f"{USERS_URL}/profile", headers=auth_headers)
        data = resp.json()["data"]
        assert data["firstName"] == "Ada"
        assert data["avatar"] == "a.png"

    async def test_change_password(self, client, db, auth_headers, admin_user):
        resp = await client.put(
            f"{USERS_URL}/change-password",
            json={"currentPassword": TEST_PASSWORD, "newPassword": "An0ther-secret"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        await db.refresh(admin_user)
        assert verify_password("An0ther-secret", admin_user.password_hash)

    async def test_change_password_wrong_current(self, client, auth_headers):
        resp = await client.put(
            f"{USERS_URL}/change-password",
            json={"currentPassword": "not-it-at-all", "newPassword": "An0ther-secret"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Current password is incorrect"
