"""Tests for the shared helpers: tenancy, errors, pagination, filters, logging."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, NoResultFound

from enxero.common.exceptions import (
    STATUS_BY_KIND,
    AppException,
    BadRequestException,
    ConflictError,
    ErrorKind,
    InternalServerException,
    NotFoundException,
)
from enxero.common.filters import apply_filters, apply_search, apply_sorting
from enxero.common.logging import JSONFormatter
from enxero.common.pagination import create_pagination_response
from enxero.common.tenancy import (
    create_tenant_where,
    execute_tenant_operation,
    require_company_id,
    tenant_operation,
)
from enxero.employees.models import Employee


# ═════════════════════════════════════════════════════════════════════
# Error taxonomy
# ═════════════════════════════════════════════════════════════════════


class TestErrorKinds:

    def test_every_kind_has_a_status(self):
        assert set(STATUS_BY_KIND) == set(ErrorKind)

    def test_status_map(self):
        assert BadRequestException("x").status_code == 400
        assert NotFoundException("Employee").status_code == 404
        assert ConflictError().status_code == 409
        assert InternalServerException().status_code == 500

    def test_not_found_message_and_details(self):
        record_id = uuid.uuid4()
        exc = NotFoundException("Employee", record_id)
        assert exc.message == "Employee not found"
        assert exc.details == {"id": str(record_id)}


# ═════════════════════════════════════════════════════════════════════
# Tenancy helpers
# ═════════════════════════════════════════════════════════════════════


class TestRequireCompanyId:

    def test_returns_candidate(self):
        company_id = uuid.uuid4()
        assert require_company_id(company_id, "employee creation") == company_id

    def test_missing_raises_bad_request(self):
        with pytest.raises(BadRequestException) as exc_info:
            require_company_id(None, "employee creation")
        assert exc_info.value.message == "Company ID is required for employee creation"


class TestCreateTenantWhere:

    def _sql(self, clause) -> str:
        return str(select(Employee.id).where(clause).compile(compile_kwargs={"literal_binds": False}))

    def test_no_base_filter(self):
        sql = self._sql(create_tenant_where(Employee, None, uuid.uuid4()))
        assert "employees.company_id" in sql

    def test_single_clause(self):
        sql = self._sql(create_tenant_where(Employee, Employee.department == "Ops", uuid.uuid4()))
        assert "employees.company_id" in sql
        assert "employees.department" in sql

    def test_list_of_clauses_not_mutated(self):
        base = [Employee.department == "Ops", Employee.position == "Lead"]
        clause = create_tenant_where(Employee, base, uuid.uuid4())
        assert len(base) == 2
        sql = self._sql(clause)
        assert "employees.position" in sql


class TestExecuteTenantOperation:

    async def test_passes_result_through(self):
        async def action():
            return 42

        assert await execute_tenant_operation(action, "compute") == 42

    async def test_app_exception_reraised_unchanged(self):
        async def action():
            raise NotFoundException("Employee")

        with pytest.raises(NotFoundException):
            await execute_tenant_operation(action, "fetch employee")

    async def test_unique_violation_becomes_conflict(self):
        async def action():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: employees.email"))

        with pytest.raises(ConflictError):
            await execute_tenant_operation(action, "create employee")

    async def test_other_integrity_error_becomes_bad_request(self):
        async def action():
            raise IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed"))

        with pytest.raises(BadRequestException):
            await execute_tenant_operation(action, "create employee")

    async def test_no_result_becomes_not_found(self):
        async def action():
            raise NoResultFound()

        with pytest.raises(NotFoundException):
            await execute_tenant_operation(action, "fetch employee")

    async def test_unexpected_error_becomes_internal(self):
        async def action():
            raise RuntimeError("boom")

        with pytest.raises(InternalServerException) as exc_info:
            await execute_tenant_operation(action, "create employee")
        assert exc_info.value.message == "Failed to create employee"
        assert exc_info.value.kind is ErrorKind.INTERNAL

    async def test_decorator_form(self):
        @tenant_operation("divide")
        async def divide(a, b, *, company_id=None):
            return a / b

        assert await divide(4, 2, company_id=uuid.uuid4()) == 2
        with pytest.raises(AppException) as exc_info:
            await divide(1, 0, company_id=uuid.uuid4())
        assert exc_info.value.message == "Failed to divide"


# ═════════════════════════════════════════════════════════════════════
# Pagination / filters
# ═════════════════════════════════════════════════════════════════════


class TestPaginationResponse:

    def test_total_pages_rounds_up(self):
        page = create_pagination_response(list(range(10)), total=25, page=2, limit=10)
        body = page.model_dump(by_alias=True)
        assert body["status"] == "success"
        assert body["meta"] == {"total": 25, "page": 2, "limit": 10, "totalPages": 3}

    def test_empty_result_has_zero_pages(self):
        page = create_pagination_response([], total=0, page=1, limit=10)
        assert page.meta.total_pages == 0


class TestFilters:

    def test_none_values_skipped(self):
        query = apply_filters(select(Employee), Employee, {"department": None})
        assert "WHERE" not in str(query)

    def test_unknown_columns_ignored(self):
        query = apply_filters(select(Employee), Employee, {"nonexistent": "x"})
        assert "WHERE" not in str(query)

    def test_range_suffixes(self):
        query = apply_filters(
            select(Employee),
            Employee,
            {"hire_date__from": date(2024, 1, 1), "hire_date__to": date(2024, 12, 31), "department": "HR"},
        )
        sql = str(query)
        assert "employees.hire_date >= " in sql
        assert "employees.hire_date <= " in sql
        assert "employees.department = " in sql

    def test_search_ors_columns(self):
        query = apply_search(select(Employee), Employee, "jane", ["first_name", "last_name"])
        sql = str(query).lower()
        assert "employees.first_name" in sql and " or " in sql

    def test_sort_accepts_camel_case(self):
        query = apply_sorting(select(Employee), Employee, "hireDate", "asc")
        assert "employees.hire_date ASC" in str(query)

    def test_unknown_sort_falls_back_to_created_at(self):
        query = apply_sorting(select(Employee), Employee, "bogus", "asc")
        assert "employees.created_at DESC" in str(query)


# ═════════════════════════════════════════════════════════════════════
# Logging
# ═════════════════════════════════════════════════════════════════════


class TestJSONFormatter:

    def test_includes_context_fields(self):
        record = logging.LogRecord(
            "enxero.test", logging.INFO, __file__, 10, "created %s", ("x",), None,
        )
        record.company_id = "c-1"
        record.operation = "create employee"
        payload = json.loads(JSONFormatter().format(record))
        assert payload["message"] == "created x"
        assert payload["level"] == "INFO"
        assert payload["company_id"] == "c-1"
        assert payload["operation"] == "create employee"


# ═════════════════════════════════════════════════════════════════════
# App wiring
# ═════════════════════════════════════════════════════════════════════


class TestAppWiring:

    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    async def test_missing_token_is_401(self, client):
        resp = await client.get("/api/v1/employees")
        assert resp.status_code == 401
        body = resp.json()
        assert body["status"] == "error"
        assert body["message"] == "Missing or invalid Authorization header"

    async def test_garbage_token_is_401(self, client):
        resp = await client.get("/api/v1/employees", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid token"

    async def test_validation_error_is_400(self, client, auth_headers):
        resp = await client.post("/api/v1/employees", json={}, headers=auth_headers)
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Validation failed"
        assert "details" in body

    async def test_unknown_route_is_404_envelope(self, client):
        resp = await client.get("/api/v1/nothing-here")
        assert resp.status_code == 404
        assert resp.json()["status"] == "error"
