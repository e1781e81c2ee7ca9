"""Leave tests — types, balances, and the request workflow with balance moves.

Tests run against SQLite via the shared conftest.py fixtures.
"""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from enxero.common.constants import LeaveStatus
from enxero.common.exceptions import BadRequestException
from enxero.leave.models import LeaveBalance, LeaveRequest
from enxero.leave.service import LeaveService, leave_days
from tests.conftest import make_balance, make_employee, make_leave_type

LEAVE_URL = "/api/v1/leave"


async def _balance(db, balance_id) -> LeaveBalance:
    result = await db.execute(
        select(LeaveBalance)
        .where(LeaveBalance.id == balance_id)
        .execution_options(populate_existing=True)
    )
    return result.scalars().one()


def _request_body(employee, leave_type, start="2024-01-01", end="2024-01-03", **extra) -> dict:
    return {
        "employeeId": str(employee.id),
        "typeId": str(leave_type.id),
        "startDate": start,
        "endDate": end,
        **extra,
    }


# ═════════════════════════════════════════════════════════════════════
# Day counting
# ═════════════════════════════════════════════════════════════════════


class TestLeaveDays:

    def test_end_exclusive(self):
        assert leave_days(date(2024, 1, 1), date(2024, 1, 3)) == 2

    def test_same_day_is_zero(self):
        assert leave_days(date(2024, 5, 10), date(2024, 5, 10)) == 0

    def test_spans_month_boundary(self):
        assert leave_days(date(2024, 1, 30), date(2024, 2, 2)) == 3


# ═════════════════════════════════════════════════════════════════════
# Types and balances
# ═════════════════════════════════════════════════════════════════════


class TestLeaveTypes:

    async def test_create_and_list(self, client, auth_headers):
        resp = await client.post(
            f"{LEAVE_URL}/types", json={"name": "Sick Leave", "defaultDays": 8}, headers=auth_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["defaultDays"] == 8

        resp = await client.get(f"{LEAVE_URL}/types", headers=auth_headers)
        assert [t["name"] for t in resp.json()["data"]] == ["Sick Leave"]

    async def test_duplicate_name(self, client, db, auth_headers, company):
        await make_leave_type(db, company, name="Annual Leave")
        resp = await client.post(f"{LEAVE_URL}/types", json={"name": "Annual Leave"}, headers=auth_headers)
        assert resp.status_code == 409
        assert resp.json()["message"] == "Leave type with this name already exists"

    async def test_update_type(self, client, db, auth_headers, company):
        leave_type = await make_leave_type(db, company)
        resp = await client.put(
            f"{LEAVE_URL}/types/{leave_type.id}", json={"isPaid": False}, headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["isPaid"] is False

    async def test_types_are_tenant_scoped(self, client, db, auth_headers, other_company):
        await make_leave_type(db, other_company, name="Foreign Leave")
        resp = await client.get(f"{LEAVE_URL}/types", headers=auth_headers)
        assert resp.json()["data"] == []


class TestBalances:

    async def test_allocate_defaults_to_type_days(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        leave_type = await make_leave_type(db, company, default_days=15)
        resp = await client.post(
            f"{LEAVE_URL}/balance",
            json={"employeeId": str(employee.id), "typeId": str(leave_type.id)},
            headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert (data["totalDays"], data["usedDays"], data["remainingDays"]) == (15, 0, 15)
        assert data["leaveType"]["name"] == "Annual Leave"

    async def test_allocate_twice_conflicts(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        leave_type = await make_leave_type(db, company)
        await make_balance(db, employee, leave_type)
        resp = await client.post(
            f"{LEAVE_URL}/balance",
            json={"employeeId": str(employee.id), "typeId": str(leave_type.id), "totalDays": 5},
            headers=auth_headers,
        )
        assert resp.status_code == 409

    async def test_get_balance_for_employee(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        await make_balance(db, employee, await make_leave_type(db, company), total_days=10, used_days=3)
        resp = await client.get(f"{LEAVE_URL}/balance?employeeId={employee.id}", headers=auth_headers)
        assert resp.status_code == 200
        (balance,) = resp.json()["data"]
        assert balance["remainingDays"] == 7


# ═════════════════════════════════════════════════════════════════════
# Request workflow
# ═════════════════════════════════════════════════════════════════════


class TestRequestWorkflow:

    async def _setup(self, db, company, total_days=10):
        employee = await make_employee(db, company)
        leave_type = await make_leave_type(db, company)
        balance = await make_balance(db, employee, leave_type, total_days=total_days)
        return employee, leave_type, balance

    async def test_create_reserves_days(self, client, db, auth_headers, company):
        employee, leave_type, balance = await self._setup(db, company)

        resp = await client.post(
            f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["days"] == 2
        assert data["status"] == "PENDING"

        balance = await _balance(db, balance.id)
        assert (balance.remaining_days, balance.used_days) == (8, 2)

    async def test_insufficient_balance(self, client, db, auth_headers, company):
        employee, leave_type, balance = await self._setup(db, company, total_days=1)

        resp = await client.post(
            f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Insufficient leave balance"

        balance = await _balance(db, balance.id)
        assert balance.remaining_days == 1
        assert (await db.execute(select(LeaveRequest))).scalars().all() == []

    async def test_no_balance_record(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        leave_type = await make_leave_type(db, company)
        resp = await client.post(
            f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
        )
        assert resp.status_code == 404
        assert resp.json()["message"] == "Leave balance not found"

    async def test_end_before_start(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        resp = await client.post(
            f"{LEAVE_URL}/requests",
            json=_request_body(employee, leave_type, start="2024-01-05", end="2024-01-01"),
            headers=auth_headers,
        )
        assert resp.status_code == 400

    async def test_employee_of_other_company(self, client, db, auth_headers, company, other_company):
        foreign = await make_employee(db, other_company)
        leave_type = await make_leave_type(db, company)
        resp = await client.post(
            f"{LEAVE_URL}/requests", json=_request_body(foreign, leave_type), headers=auth_headers,
        )
        assert resp.status_code == 404

    async def test_approve(self, client, db, auth_headers, company, admin_user):
        employee, leave_type, balance = await self._setup(db, company)
        created = await client.post(
            f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
        )
        request_id = created.json()["data"]["id"]

        resp = await client.post(
            f"{LEAVE_URL}/requests/{request_id}/approve",
            json={"notes": "Enjoy"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "APPROVED"
        assert data["approvedBy"] == str(admin_user.id)
        assert data["comments"] == "Enjoy"
        assert data["approvedAt"] is not None

        # Approval does not move the balance again
        balance = await _balance(db, balance.id)
        assert (balance.remaining_days, balance.used_days) == (8, 2)

    async def test_approve_twice_fails(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]

        url = f"{LEAVE_URL}/requests/{request_id}/approve"
        assert (await client.post(url, headers=auth_headers)).status_code == 200
        resp = await client.post(url, headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Leave request is not in pending status"

    async def test_reject_restores_balance(self, client, db, auth_headers, company):
        employee, leave_type, balance = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]

        resp = await client.post(
            f"{LEAVE_URL}/requests/{request_id}/reject",
            json={"notes": "Busy quarter"},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "REJECTED"
        assert data["rejectedAt"] is not None

        balance = await _balance(db, balance.id)
        assert (balance.remaining_days, balance.used_days) == (10, 0)

    async def test_cannot_reject_approved(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]
        await client.post(f"{LEAVE_URL}/requests/{request_id}/approve", headers=auth_headers)

        resp = await client.post(f"{LEAVE_URL}/requests/{request_id}/reject", headers=auth_headers)
        assert resp.status_code == 400

    async def test_update_notes_only_while_pending(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]

        resp = await client.put(
            f"{LEAVE_URL}/requests/{request_id}", json={"notes": "Family trip"}, headers=auth_headers,
        )
        assert resp.json()["data"]["notes"] == "Family trip"

        await client.post(f"{LEAVE_URL}/requests/{request_id}/approve", headers=auth_headers)
        resp = await client.put(
            f"{LEAVE_URL}/requests/{request_id}", json={"notes": "Changed"}, headers=auth_headers,
        )
        assert resp.status_code == 400

    async def test_delete_pending_restores_balance(self, client, db, auth_headers, company):
        employee, leave_type, balance = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]

        resp = await client.delete(f"{LEAVE_URL}/requests/{request_id}", headers=auth_headers)
        assert resp.status_code == 200

        balance = await _balance(db, balance.id)
        assert balance.remaining_days == 10
        assert await db.get(LeaveRequest, uuid.UUID(request_id)) is None

    async def test_cannot_delete_approved(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]
        await client.post(f"{LEAVE_URL}/requests/{request_id}/approve", headers=auth_headers)

        resp = await client.delete(f"{LEAVE_URL}/requests/{request_id}", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot delete non-pending leave request"

    async def test_list_filters_by_status(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        first = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]
        await client.post(
            f"{LEAVE_URL}/requests",
            json=_request_body(employee, leave_type, start="2024-02-01", end="2024-02-02"),
            headers=auth_headers,
        )
        await client.post(f"{LEAVE_URL}/requests/{first}/approve", headers=auth_headers)

        resp = await client.get(f"{LEAVE_URL}/requests?status=PENDING", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 1

        resp = await client.get(f"{LEAVE_URL}/requests?employeeId={employee.id}", headers=auth_headers)
        assert resp.json()["meta"]["total"] == 2

    async def test_request_of_other_company_not_found(self, client, db, auth_headers, other_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]

        resp = await client.post(f"{LEAVE_URL}/requests/{request_id}/approve", headers=other_headers)
        assert resp.status_code == 404

    async def test_approve_needs_permission(self, client, db, auth_headers, viewer_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]

        resp = await client.post(f"{LEAVE_URL}/requests/{request_id}/approve", headers=viewer_headers)
        assert resp.status_code == 403

    async def test_stored_status_enum(self, client, db, auth_headers, company):
        employee, leave_type, _ = await self._setup(db, company)
        await client.post(
            f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
        )
        request = (await db.execute(select(LeaveRequest))).scalars().one()
        assert request.status is LeaveStatus.PENDING


class TestStaleTransitions:
    """A second decision made from an outdated read must not move days again."""

    async def _pending_request(self, client, db, auth_headers, company):
        employee = await make_employee(db, company)
        leave_type = await make_leave_type(db, company)
        balance = await make_balance(db, employee, leave_type)
        request_id = (
            await client.post(
                f"{LEAVE_URL}/requests", json=_request_body(employee, leave_type), headers=auth_headers,
            )
        ).json()["data"]["id"]
        # Loaded while still PENDING; the session keeps this copy
        request = await db.get(LeaveRequest, uuid.UUID(request_id))
        assert request.status == LeaveStatus.PENDING
        return request, balance

    async def test_reject_after_concurrent_reject(self, client, db, auth_headers, company, admin_user):
        request, balance = await self._pending_request(client, db, auth_headers, company)
        resp = await client.post(f"{LEAVE_URL}/requests/{request.id}/reject", headers=auth_headers)
        assert resp.status_code == 200

        with pytest.raises(BadRequestException) as exc_info:
            await LeaveService.reject_leave_request(
                db, request.id, company_id=company.id, actor_id=admin_user.id,
            )
        assert exc_info.value.message == "Leave request is not in pending status"

        balance = await _balance(db, balance.id)
        assert (balance.remaining_days, balance.used_days) == (10, 0)

    async def test_delete_after_concurrent_reject(self, client, db, auth_headers, company, admin_user):
        request, balance = await self._pending_request(client, db, auth_headers, company)
        resp = await client.post(f"{LEAVE_URL}/requests/{request.id}/reject", headers=auth_headers)
        assert resp.status_code == 200

        with pytest.raises(BadRequestException) as exc_info:
            await LeaveService.delete_leave_request(
                db, request.id, company_id=company.id, actor_id=admin_user.id,
            )
        assert exc_info.value.message == "Cannot delete non-pending leave request"

        balance = await _balance(db, balance.id)
        assert (balance.remaining_days, balance.used_days) == (10, 0)
        stored = (
            await db.execute(
                select(LeaveRequest)
                .where(LeaveRequest.id == request.id)
                .execution_options(populate_existing=True)
            )
        ).scalars().one()
        assert stored.status == LeaveStatus.REJECTED

    async def test_approve_after_concurrent_reject(self, client, db, auth_headers, company, admin_user):
        request, _ = await self._pending_request(client, db, auth_headers, company)
        await client.post(f"{LEAVE_URL}/requests/{request.id}/reject", headers=auth_headers)

        with pytest.raises(BadRequestException):
            await LeaveService.approve_leave_request(
                db, request.id, company_id=company.id, actor_id=admin_user.id,
            )
