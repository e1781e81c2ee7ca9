"""Integration tests — CRUD per company and the integration event log."""

from __future__ import annotations

from sqlalchemy import select

from enxero.audit.models import AuditLog

INTEGRATIONS_URL = "/api/v1/integrations"


async def _create(client, headers, name="Slack", **extra) -> dict:
    resp = await client.post(
        INTEGRATIONS_URL,
        json={"name": name, "type": "chat", "config": {"webhookUrl": "https://hooks.example.com/x"}, **extra},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()["data"]


class TestIntegrations:

    async def test_create_and_get(self, client, auth_headers):
        created = await _create(client, auth_headers)
        assert created["status"] == "active"

        resp = await client.get(f"{INTEGRATIONS_URL}/{created['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["config"] == {"webhookUrl": "https://hooks.example.com/x"}

    async def test_name_unique_per_company(self, client, auth_headers, other_headers):
        await _create(client, auth_headers)
        resp = await client.post(
            INTEGRATIONS_URL, json={"name": "Slack", "type": "chat"}, headers=auth_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["message"] == "Integration with this name already exists"

        await _create(client, other_headers)

    async def test_rename_to_taken_name(self, client, auth_headers):
        await _create(client, auth_headers, name="Slack")
        teams = await _create(client, auth_headers, name="Teams")
        resp = await client.put(
            f"{INTEGRATIONS_URL}/{teams['id']}", json={"name": "Slack"}, headers=auth_headers,
        )
        assert resp.status_code == 409

    async def test_list_filters(self, client, auth_headers, other_headers):
        await _create(client, auth_headers, name="Slack")
        await _create(client, auth_headers, name="Legacy", status="inactive")
        await _create(client, other_headers, name="Foreign")

        resp = await client.get(f"{INTEGRATIONS_URL}?status=inactive", headers=auth_headers)
        assert [i["name"] for i in resp.json()["data"]] == ["Legacy"]

        resp = await client.get(f"{INTEGRATIONS_URL}?type=chat", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 2

    async def test_other_company_not_found(self, client, auth_headers, other_headers):
        created = await _create(client, other_headers)
        for method in ("get", "delete"):
            resp = await getattr(client, method)(f"{INTEGRATIONS_URL}/{created['id']}", headers=auth_headers)
            assert resp.status_code == 404
        resp = await client.get(f"{INTEGRATIONS_URL}/{created['id']}/logs", headers=auth_headers)
        assert resp.status_code == 404

    async def test_delete(self, client, auth_headers):
        created = await _create(client, auth_headers)
        resp = await client.delete(f"{INTEGRATIONS_URL}/{created['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert (await client.get(f"{INTEGRATIONS_URL}/{created['id']}", headers=auth_headers)).status_code == 404

    async def test_write_requires_permission(self, client, viewer_headers):
        resp = await client.post(
            INTEGRATIONS_URL, json={"name": "Slack", "type": "chat"}, headers=viewer_headers,
        )
        assert resp.status_code == 403


class TestIntegrationLogs:

    async def test_events_recorded(self, client, auth_headers):
        created = await _create(client, auth_headers)
        await client.put(
            f"{INTEGRATIONS_URL}/{created['id']}", json={"status": "inactive"}, headers=auth_headers,
        )
        await client.put(
            f"{INTEGRATIONS_URL}/{created['id']}", json={"config": {"channel": "#hr"}}, headers=auth_headers,
        )

        resp = await client.get(f"{INTEGRATIONS_URL}/{created['id']}/logs", headers=auth_headers)
        assert resp.status_code == 200
        messages = {log["message"] for log in resp.json()["data"]}
        assert messages == {
            "Integration created",
            "Status changed from active to inactive",
            "Integration updated",
        }

    async def test_config_values_stay_out_of_audit(self, client, db, auth_headers):
        created = await _create(client, auth_headers)
        await client.put(
            f"{INTEGRATIONS_URL}/{created['id']}",
            json={"config": {"apiKey": "s3cr3t"}},
            headers=auth_headers,
        )

        entries = (
            await db.execute(
                select(AuditLog).where(AuditLog.entity_type == "integration", AuditLog.action == "update")
            )
        ).scalars().all()
        assert len(entries) == 1
        assert entries[0].new_values == {"fields": ["config"]}
