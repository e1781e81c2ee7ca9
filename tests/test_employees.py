"""Employee tests — CRUD, uniqueness per company, reporting lines, tenancy."""

from __future__ import annotations

import uuid

from sqlalchemy import select

from enxero.audit.models import AuditLog
from tests.conftest import make_employee

EMPLOYEES_URL = "/api/v1/employees"


def _employee_body(**overrides) -> dict:
    body = {
        "employeeCode": "EMP-001",
        "firstName": "Grace",
        "lastName": "Hopper",
        "email": "grace@acme.io",
        "department": "Engineering",
        "position": "Engineer",
        "hireDate": "2024-03-01",
        "salary": "85000.00",
    }
    body.update(overrides)
    return body


class TestCreate:

    async def test_create_employee(self, client, db, auth_headers, company, admin_user):
        resp = await client.post(EMPLOYEES_URL, json=_employee_body(), headers=auth_headers)
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["companyId"] == str(company.id)
        assert data["status"] == "ACTIVE"
        assert data["hireDate"] == "2024-03-01"

        log = (
            await db.execute(select(AuditLog).where(AuditLog.entity_type == "employee"))
        ).scalars().one()
        assert log.action == "create"
        assert log.user_id == admin_user.id
        assert log.entity_id == data["id"]

    async def test_duplicate_code_in_company(self, client, db, auth_headers, company):
        await make_employee(db, company, code="EMP-001")
        resp = await client.post(EMPLOYEES_URL, json=_employee_body(), headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["message"] == "Employee with this code already exists"

    async def test_duplicate_email_in_company(self, client, db, auth_headers, company):
        await make_employee(db, company, email="grace@acme.io")
        resp = await client.post(EMPLOYEES_URL, json=_employee_body(), headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["message"] == "Employee with this email already exists"

    async def test_same_code_in_other_company_allowed(self, client, db, auth_headers, other_company):
        await make_employee(db, other_company, code="EMP-001", email="grace@acme.io")
        resp = await client.post(EMPLOYEES_URL, json=_employee_body(), headers=auth_headers)
        assert resp.status_code == 201

    async def test_termination_before_hire_rejected(self, client, auth_headers):
        resp = await client.post(
            EMPLOYEES_URL,
            json=_employee_body(terminationDate="2024-01-01"),
            headers=auth_headers,
        )
        assert resp.status_code == 400

    async def test_manager_from_other_company_rejected(self, client, db, auth_headers, other_company):
        foreign = await make_employee(db, other_company)
        resp = await client.post(
            EMPLOYEES_URL, json=_employee_body(managerId=str(foreign.id)), headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Manager does not belong to this company"

    async def test_create_needs_permission(self, client, viewer_headers):
        resp = await client.post(EMPLOYEES_URL, json=_employee_body(), headers=viewer_headers)
        assert resp.status_code == 403


class TestReadAndUpdate:

    async def test_list_filters_and_tenancy(self, client, db, auth_headers, company, other_company):
        await make_employee(db, company, department="Engineering")
        await make_employee(db, company, department="Sales")
        await make_employee(db, other_company, department="Engineering")

        resp = await client.get(f"{EMPLOYEES_URL}?department=Engineering", headers=auth_headers)
        body = resp.json()
        assert body["meta"]["total"] == 1
        assert body["data"][0]["companyId"] == str(company.id)

        resp = await client.get(EMPLOYEES_URL, headers=auth_headers)
        assert resp.json()["meta"]["total"] == 2

    async def test_pagination(self, client, db, auth_headers, company):
        for _ in range(5):
            await make_employee(db, company)
        resp = await client.get(f"{EMPLOYEES_URL}?page=2&limit=2", headers=auth_headers)
        meta = resp.json()["meta"]
        assert meta == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}
        assert len(resp.json()["data"]) == 2

    async def test_get_other_company_employee(self, client, db, auth_headers, other_company):
        foreign = await make_employee(db, other_company)
        resp = await client.get(f"{EMPLOYEES_URL}/{foreign.id}", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Employee not found"

    async def test_update_employee(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        resp = await client.put(
            f"{EMPLOYEES_URL}/{employee.id}",
            json={"position": "Staff Engineer", "status": "ON_LEAVE"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["position"] == "Staff Engineer"
        assert data["status"] == "ON_LEAVE"

    async def test_cannot_manage_self(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        resp = await client.put(
            f"{EMPLOYEES_URL}/{employee.id}",
            json={"managerId": str(employee.id)},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "An employee cannot be their own manager"

    async def test_update_unknown_employee(self, client, auth_headers):
        resp = await client.put(
            f"{EMPLOYEES_URL}/{uuid.uuid4()}", json={"position": "X"}, headers=auth_headers,
        )
        assert resp.status_code == 404


class TestReportingLine:

    async def test_manager_and_direct_reports(self, client, db, auth_headers, company):
        boss = await make_employee(db, company)
        first = await make_employee(db, company, manager_id=boss.id)
        await make_employee(db, company, manager_id=boss.id)

        resp = await client.get(f"{EMPLOYEES_URL}/{first.id}/manager", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == str(boss.id)

        resp = await client.get(f"{EMPLOYEES_URL}/{boss.id}/direct-reports", headers=auth_headers)
        assert len(resp.json()["data"]) == 2

        resp = await client.get(f"{EMPLOYEES_URL}?managerId={boss.id}", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 2

    async def test_no_manager(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        resp = await client.get(f"{EMPLOYEES_URL}/{employee.id}/manager", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Manager not found"
