"""Auth tests — password login, lockout, OTP login, refresh, logout, /me."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from enxero.audit.models import AuditLog
from enxero.auth.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from enxero.common.exceptions import UnauthorizedException
from tests.conftest import TEST_PASSWORD, make_user

LOGIN_URL = "/api/v1/auth/login"


class TestSecurityHelpers:

    def test_password_hash_roundtrip(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_access_token_carries_user_and_company(self):
        user_id, company_id = uuid.uuid4(), uuid.uuid4()
        token, expires_in = create_access_token(user_id, company_id)
        payload = decode_token(token)
        assert payload["sub"] == str(user_id)
        assert payload["company_id"] == str(company_id)
        assert expires_in > 0

    def test_expired_token_rejected(self):
        token, _ = create_access_token(uuid.uuid4(), uuid.uuid4(), expires_delta=timedelta(seconds=-5))
        with pytest.raises(UnauthorizedException) as exc_info:
            decode_token(token)
        assert exc_info.value.message == "Token has expired"

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(UnauthorizedException):
            decode_token(create_refresh_token(uuid.uuid4()))


class TestPasswordLogin:

    async def test_login_by_email(self, client, admin_user):
        resp = await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["tokenType"] == "bearer"
        assert data["accessToken"] and data["refreshToken"]
        assert data["user"]["email"] == "admin@acme.io"
        assert data["user"]["role"]["name"] == "ADMIN"

    async def test_login_by_username(self, client, admin_user):
        resp = await client.post(LOGIN_URL, json={"email": "admin", "password": TEST_PASSWORD})
        assert resp.status_code == 200

    async def test_wrong_password(self, client, admin_user):
        resp = await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": "nope-nope"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid credentials"

    async def test_unknown_user(self, client):
        resp = await client.post(LOGIN_URL, json={"email": "ghost@acme.io", "password": TEST_PASSWORD})
        assert resp.status_code == 401

    async def test_inactive_user(self, client, db, company, admin_role):
        await make_user(db, company, admin_role, email="gone@acme.io", is_active=False)
        resp = await client.post(LOGIN_URL, json={"email": "gone@acme.io", "password": TEST_PASSWORD})
        assert resp.status_code == 401
        assert resp.json()["message"] == "User account is inactive"

    async def test_login_is_audited_and_stamps_last_login(self, client, db, admin_user):
        await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": TEST_PASSWORD})

        await db.refresh(admin_user)
        assert admin_user.last_login_at is not None
        logs = (
            await db.execute(select(AuditLog).where(AuditLog.action == "login"))
        ).scalars().all()
        assert len(logs) == 1
        assert logs[0].entity_id == str(admin_user.id)
        assert logs[0].new_values == {"method": "password"}


class TestLockout:

    async def test_locks_after_repeated_failures(self, client, db, admin_user):
        bad = {"email": "admin@acme.io", "password": "nope-nope"}
        for _ in range(5):
            resp = await client.post(LOGIN_URL, json=bad)
            assert resp.json()["message"] == "Invalid credentials"

        resp = await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": TEST_PASSWORD})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Account is temporarily locked. Try again later."

        await db.refresh(admin_user)
        assert admin_user.locked_until > datetime.now(timezone.utc) + timedelta(minutes=14)

    async def test_success_resets_counter(self, client, db, admin_user):
        for _ in range(4):
            await client.post(LOGIN_URL, json={"email": "admin", "password": "nope-nope"})
        await db.refresh(admin_user)
        assert admin_user.failed_login_attempts == 4

        resp = await client.post(LOGIN_URL, json={"email": "admin", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        await db.refresh(admin_user)
        assert admin_user.failed_login_attempts == 0
        assert admin_user.locked_until is None

    async def test_lock_expires(self, client, db, admin_user):
        admin_user.locked_until = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.add(admin_user)
        await db.commit()

        resp = await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": TEST_PASSWORD})
        assert resp.status_code == 200
        await db.refresh(admin_user)
        assert admin_user.locked_until is None


class TestRefreshAndMe:

    async def test_refresh_issues_new_access_token(self, client, admin_user):
        resp = await client.post(
            "/api/v1/auth/refresh",
            json={"refreshToken": create_refresh_token(admin_user.id)},
        )
        assert resp.status_code == 200
        token = resp.json()["data"]["accessToken"]
        assert decode_token(token)["sub"] == str(admin_user.id)

    async def test_refresh_rejects_access_token(self, client, auth_headers):
        access = auth_headers["Authorization"].removeprefix("Bearer ")
        resp = await client.post("/api/v1/auth/refresh", json={"refreshToken": access})
        assert resp.status_code == 401

    async def test_me(self, client, auth_headers, admin_user):
        resp = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == str(admin_user.id)

    async def test_me_for_deactivated_user(self, client, db, auth_headers, admin_user):
        admin_user.is_active = False
        db.add(admin_user)
        await db.commit()
        resp = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert resp.status_code == 401


class TestLogout:

    async def test_logout_revokes_issued_tokens(self, client, db, admin_user):
        tokens = (
            await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": TEST_PASSWORD})
        ).json()["data"]
        headers = {"Authorization": f"Bearer {tokens['accessToken']}"}

        resp = await client.post("/api/v1/auth/logout", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Logged out successfully"

        resp = await client.get("/api/v1/auth/me", headers=headers)
        assert resp.status_code == 401
        assert resp.json()["message"] == "Token has been revoked"

        resp = await client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Token has been revoked"

        logs = (
            await db.execute(select(AuditLog).where(AuditLog.action == "logout"))
        ).scalars().all()
        assert [log.entity_id for log in logs] == [str(admin_user.id)]

    async def test_login_after_logout_works(self, client, auth_headers):
        await client.post("/api/v1/auth/logout", headers=auth_headers)
        tokens = (
            await client.post(LOGIN_URL, json={"email": "admin@acme.io", "password": TEST_PASSWORD})
        ).json()["data"]

        resp = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {tokens['accessToken']}"},
        )
        assert resp.status_code == 200
        assert decode_token(tokens["accessToken"])["ver"] == 1

    async def test_logout_requires_token(self, client):
        resp = await client.post("/api/v1/auth/logout")
        assert resp.status_code == 401


class TestOtpLogin:

    async def test_otp_login_flow(self, client, db, company, admin_role, monkeypatch):
        monkeypatch.setattr("enxero.otp.service.generate_otp_code", lambda: "123456")
        user = await make_user(db, company, admin_role, phone_number="+15551234567")

        issued = await client.post("/api/v1/otp/user/generate", json={"phoneNumber": "+15551234567"})
        assert issued.status_code == 200
        otp_id = issued.json()["data"]["otpId"]

        resp = await client.post(
            "/api/v1/auth/otp/login",
            json={"otpId": otp_id, "phoneNumber": "+15551234567", "code": "123456"},
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user"]["id"] == str(user.id)
        assert data["user"]["phoneVerified"] is True

    async def test_otp_login_wrong_code(self, client, db, company, admin_role, monkeypatch):
        monkeypatch.setattr("enxero.otp.service.generate_otp_code", lambda: "123456")
        await make_user(db, company, admin_role, phone_number="+15551234567")
        issued = await client.post("/api/v1/otp/user/generate", json={"phoneNumber": "+15551234567"})

        resp = await client.post(
            "/api/v1/auth/otp/login",
            json={
                "otpId": issued.json()["data"]["otpId"],
                "phoneNumber": "+15551234567",
                "code": "654321",
            },
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid OTP. 2 attempts remaining."
