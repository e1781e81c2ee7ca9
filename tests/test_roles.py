"""Role tests — CRUD within the company and role assignment."""

from __future__ import annotations

from tests.conftest import headers_for, make_role, make_user

ROLES_URL = "/api/v1/roles"


class TestRoles:

    async def test_create_and_list(self, client, auth_headers, other_company, db):
        await make_role(db, other_company, name="HIDDEN")
        resp = await client.post(
            ROLES_URL,
            json={"name": "HR", "permissions": ["read:users", "view:leave_requests"]},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["permissions"] == ["read:users", "view:leave_requests"]

        names = {r["name"] for r in (await client.get(ROLES_URL, headers=auth_headers)).json()["data"]}
        assert names == {"ADMIN", "HR"}

    async def test_duplicate_name_conflicts(self, client, auth_headers, admin_role):
        resp = await client.post(ROLES_URL, json={"name": "ADMIN"}, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["message"] == "Role with this name already exists"

    async def test_same_name_in_other_company_is_fine(self, client, other_headers, admin_role):
        resp = await client.post(ROLES_URL, json={"name": "HR"}, headers=other_headers)
        assert resp.status_code == 201

    async def test_update_role(self, client, db, auth_headers, company):
        role = await make_role(db, company, name="OPS", permissions=[])
        resp = await client.put(
            f"{ROLES_URL}/{role.id}", json={"permissions": ["write:all"]}, headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["permissions"] == ["write:all"]

    async def test_cannot_delete_assigned_role(self, client, auth_headers, admin_role):
        resp = await client.delete(f"{ROLES_URL}/{admin_role.id}", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot delete role that is assigned to users"

    async def test_delete_unused_role(self, client, db, auth_headers, company):
        role = await make_role(db, company, name="TEMP", permissions=[])
        resp = await client.delete(f"{ROLES_URL}/{role.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert (await client.get(f"{ROLES_URL}/{role.id}", headers=auth_headers)).status_code == 404

    async def test_foreign_role_not_found(self, client, db, auth_headers, other_company):
        role = await make_role(db, other_company, name="FOREIGN")
        resp = await client.get(f"{ROLES_URL}/{role.id}", headers=auth_headers)
        assert resp.status_code == 404


class TestAssignment:

    async def test_assign_role(self, client, db, auth_headers, company):
        role = await make_role(db, company, name="HR", permissions=["read:users"])
        member = await make_user(db, company)
        resp = await client.post(
            f"{ROLES_URL}/{role.id}/assign", json={"userId": str(member.id)}, headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["roleId"] == str(role.id)

    async def test_assign_to_user_of_other_company(self, client, db, auth_headers, company, other_company):
        role = await make_role(db, company, name="HR")
        stranger = await make_user(db, other_company)
        resp = await client.post(
            f"{ROLES_URL}/{role.id}/assign", json={"userId": str(stranger.id)}, headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "User and role must belong to the same company"

    async def test_assigned_permissions_take_effect(self, client, db, auth_headers, company):
        role = await make_role(db, company, name="READER", permissions=["read:users"])
        member = await make_user(db, company)
        member_headers = headers_for(member)
        assert (await client.get("/api/v1/users", headers=member_headers)).status_code == 403

        await client.post(
            f"{ROLES_URL}/{role.id}/assign", json={"userId": str(member.id)}, headers=auth_headers,
        )
        assert (await client.get("/api/v1/users", headers=member_headers)).status_code == 200
