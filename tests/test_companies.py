"""Company tests — OTP registration, tenant-scoped CRUD, settings, members."""

from __future__ import annotations

import uuid

import pytest
from sqlalchemy import select

from enxero.common.constants import ADMIN_ROLE_NAME, OtpStatus
from enxero.companies.models import Company
from enxero.otp.models import Otp
from enxero.roles.models import Role
from enxero.users.models import User
from tests.conftest import headers_for, make_employee, make_role, make_user

PHONE = "+447700900123"


def _registration(otp_id: str, **overrides) -> dict:
    body = {
        "otpId": otp_id,
        "phoneNumber": PHONE,
        "code": "123456",
        "companyName": "Initech Ltd",
        "shortName": "Initech",
        "countryCode": "gb",
        "email": "owner@initech.io",
        "username": "owner",
        "firstName": "Bill",
        "lastName": "Lumbergh",
        "password": "Str0ng-pass!",
    }
    body.update(overrides)
    return body


@pytest.fixture
def fixed_code(monkeypatch):
    monkeypatch.setattr("enxero.otp.service.generate_otp_code", lambda: "123456")


class TestRegistration:

    async def _initiate(self, client) -> str:
        resp = await client.post(
            "/api/v1/companies/register/initiate",
            json={"phoneNumber": PHONE, "companyName": "Initech Ltd"},
        )
        assert resp.status_code == 200
        return resp.json()["data"]["otpId"]

    async def test_full_registration(self, client, db, fixed_code):
        otp_id = await self._initiate(client)
        resp = await client.post("/api/v1/companies/register/complete", json=_registration(otp_id))
        assert resp.status_code == 201
        data = resp.json()["data"]

        assert data["company"]["identifier"].startswith("GB-INIT-")
        assert data["company"]["countryCode"] == "GB"
        assert data["company"]["status"] == "ACTIVE"
        assert data["user"]["email"] == "owner@initech.io"
        assert data["accessToken"] and data["refreshToken"]

        company_id = uuid.UUID(data["company"]["id"])
        role = (await db.execute(select(Role).where(Role.company_id == company_id))).scalars().one()
        assert role.name == ADMIN_ROLE_NAME
        assert role.permissions == ["*"]

        owner = (await db.execute(select(User).where(User.company_id == company_id))).scalars().one()
        assert owner.role_id == role.id
        assert owner.phone_verified is True

        otp = await db.get(Otp, uuid.UUID(otp_id))
        assert otp.status == OtpStatus.VERIFIED
        assert otp.company_id == company_id

        status = await client.get(f"/api/v1/companies/{company_id}/registration-status")
        assert status.json()["data"]["phoneVerified"] is True

    async def test_token_from_registration_works(self, client, fixed_code):
        otp_id = await self._initiate(client)
        token = (
            await client.post("/api/v1/companies/register/complete", json=_registration(otp_id))
        ).json()["data"]["accessToken"]

        resp = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200
        assert resp.json()["data"]["role"]["name"] == ADMIN_ROLE_NAME

    async def test_wrong_code_creates_nothing(self, client, db, fixed_code):
        otp_id = await self._initiate(client)
        resp = await client.post(
            "/api/v1/companies/register/complete", json=_registration(otp_id, code="999999"),
        )
        assert resp.status_code == 400
        assert (await db.execute(select(Company))).scalars().all() == []

    async def test_phone_already_registered(self, client, db, fixed_code):
        company = Company(name="Existing", identifier="GB-EXIS-000001", phone_number=PHONE, settings={})
        db.add(company)
        await db.commit()

        resp = await client.post(
            "/api/v1/companies/register/initiate",
            json={"phoneNumber": PHONE, "companyName": "Initech Ltd"},
        )
        assert resp.status_code == 409

    async def test_duplicate_owner_email_conflicts(self, client, db, company, fixed_code):
        await make_user(db, company, email="owner@initech.io")
        otp_id = await self._initiate(client)
        resp = await client.post("/api/v1/companies/register/complete", json=_registration(otp_id))
        assert resp.status_code == 409
        names = [c.name for c in (await db.execute(select(Company))).scalars().all()]
        assert "Initech Ltd" not in names

    async def test_registration_status_unknown_company(self, client):
        resp = await client.get(f"/api/v1/companies/{uuid.uuid4()}/registration-status")
        assert resp.status_code == 404


class TestCompanyAccess:

    async def test_list_shows_only_own_company(self, client, auth_headers, company, other_company):
        resp = await client.get("/api/v1/companies", headers=auth_headers)
        assert resp.status_code == 200
        ids = [c["id"] for c in resp.json()["data"]]
        assert ids == [str(company.id)]

    async def test_other_company_is_not_found(self, client, auth_headers, other_company):
        resp = await client.get(f"/api/v1/companies/{other_company.id}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_platform_operator_sees_all(self, client, db, company, other_company):
        role = await make_role(db, company, name="PLATFORM", permissions=["*", "admin"])
        operator = await make_user(db, company, role)
        resp = await client.get("/api/v1/companies", headers=headers_for(operator))
        assert resp.json()["meta"]["total"] == 2

    async def test_update_company(self, client, auth_headers, company):
        resp = await client.put(
            f"/api/v1/companies/{company.id}",
            json={"city": "Springfield", "workPhone": "+15550001111"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["city"] == "Springfield"

    async def test_update_needs_permission(self, client, viewer_headers, company):
        resp = await client.put(
            f"/api/v1/companies/{company.id}", json={"city": "X"}, headers=viewer_headers,
        )
        assert resp.status_code == 403

    async def test_delete_blocked_while_company_has_employees(self, client, db, auth_headers, company):
        await make_employee(db, company)
        resp = await client.delete(f"/api/v1/companies/{company.id}", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot delete company with existing users or employees"


class TestSettingsAndMembers:

    async def test_settings_shallow_merge(self, client, auth_headers, company):
        url = f"/api/v1/companies/{company.id}/settings"
        await client.put(url, json={"settings": {"timezone": "UTC", "weekStart": "mon"}}, headers=auth_headers)
        resp = await client.put(url, json={"settings": {"timezone": "Europe/London"}}, headers=auth_headers)
        assert resp.json()["data"]["settings"] == {"timezone": "Europe/London", "weekStart": "mon"}

        resp = await client.get(url, headers=auth_headers)
        assert resp.json()["data"]["settings"]["weekStart"] == "mon"

    async def test_invite_creates_member_with_temporary_password(self, client, auth_headers, company):
        resp = await client.post(
            f"/api/v1/companies/{company.id}/invite",
            json={"email": "new.hire@acme.io", "firstName": "New", "lastName": "Hire"},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        user = resp.json()["data"]["user"]
        assert user["username"] == "new.hire"
        assert user["temporaryPassword"]

        members = await client.get(f"/api/v1/companies/{company.id}/members", headers=auth_headers)
        emails = {m["email"] for m in members.json()["data"]}
        assert "new.hire@acme.io" in emails

    async def test_members_of_other_company_hidden(self, client, auth_headers, other_company):
        resp = await client.get(f"/api/v1/companies/{other_company.id}/members", headers=auth_headers)
        assert resp.status_code == 404
