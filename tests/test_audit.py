"""Audit trail tests — filters, entity history and tenant scoping."""

from __future__ import annotations

import uuid

from tests.conftest import headers_for, make_user

AUDIT_URL = "/api/v1/audit"
LEAVE_TYPES_URL = "/api/v1/leave/types"


async def _make_history(client, headers) -> str:
    """Create then rename a leave type; returns its id."""
    resp = await client.post(LEAVE_TYPES_URL, json={"name": "Study Leave"}, headers=headers)
    type_id = resp.json()["data"]["id"]
    await client.put(f"{LEAVE_TYPES_URL}/{type_id}", json={"name": "Exam Leave"}, headers=headers)
    return type_id


class TestAuditLogs:

    async def test_filters(self, client, auth_headers, admin_user):
        await _make_history(client, auth_headers)

        resp = await client.get(f"{AUDIT_URL}/logs?entityType=leave_type", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["meta"]["total"] == 2

        resp = await client.get(
            f"{AUDIT_URL}/logs?entityType=leave_type&action=update", headers=auth_headers,
        )
        (entry,) = resp.json()["data"]
        assert entry["userId"] == str(admin_user.id)
        assert entry["newValues"] == {"name": "Exam Leave"}

        resp = await client.get(f"{AUDIT_URL}/logs?userId={uuid.uuid4()}", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 0

    async def test_date_window(self, client, auth_headers):
        await _make_history(client, auth_headers)
        resp = await client.get(
            f"{AUDIT_URL}/logs?startDate=2000-01-01T00:00:00Z&endDate=2000-12-31T00:00:00Z",
            headers=auth_headers,
        )
        assert resp.json()["meta"]["total"] == 0

    async def test_entity_history(self, client, auth_headers):
        type_id = await _make_history(client, auth_headers)
        resp = await client.get(f"{AUDIT_URL}/logs/entity/leave_type/{type_id}", headers=auth_headers)
        assert {e["action"] for e in resp.json()["data"]} == {"create", "update"}

    async def test_single_entry(self, client, auth_headers):
        await _make_history(client, auth_headers)
        entry_id = (await client.get(f"{AUDIT_URL}/logs", headers=auth_headers)).json()["data"][0]["id"]

        resp = await client.get(f"{AUDIT_URL}/logs/{entry_id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == entry_id

    async def test_other_company_entries_hidden(self, client, auth_headers, other_headers):
        type_id = await _make_history(client, other_headers)

        resp = await client.get(f"{AUDIT_URL}/logs", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 0
        resp = await client.get(f"{AUDIT_URL}/logs/entity/leave_type/{type_id}", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 0

        foreign_id = (await client.get(f"{AUDIT_URL}/logs", headers=other_headers)).json()["data"][0]["id"]
        resp = await client.get(f"{AUDIT_URL}/logs/{foreign_id}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Audit log not found"

    async def test_requires_read_all(self, client, db, company, viewer_headers):
        assert (await client.get(f"{AUDIT_URL}/logs", headers=viewer_headers)).status_code == 403

        # A user without any role is also refused
        loner = await make_user(db, company, email="loner@acme.io", username="loner")
        assert (await client.get(f"{AUDIT_URL}/logs", headers=headers_for(loner))).status_code == 403
