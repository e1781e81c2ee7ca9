"""Employee service — tenant-scoped directory and reporting lines."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.common.exceptions import BadRequestException, ConflictError, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
)
from enxero.employees.models import Employee
from enxero.employees.schemas import EmployeeBrief, EmployeeCreate, EmployeeOut, EmployeeUpdate

EMPLOYEE_SEARCH_COLUMNS = ("first_name", "last_name", "email", "employee_code")


class EmployeeService:

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _ensure_unique(
        db: AsyncSession,
        company_id: uuid.UUID,
        *,
        employee_code: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        conditions = []
        if employee_code:
            conditions.append(Employee.employee_code == employee_code)
        if email:
            conditions.append(Employee.email == email)
        if not conditions:
            return

        query = select(Employee.employee_code, Employee.email).where(
            create_tenant_where(Employee, or_(*conditions), company_id)
        )
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        existing = (await db.execute(query)).first()
        if existing is None:
            return
        if employee_code and existing.employee_code == employee_code:
            raise ConflictError("Employee with this code already exists", field="employeeCode")
        raise ConflictError("Employee with this email already exists", field="email")

    @staticmethod
    async def _ensure_manager(
        db: AsyncSession,
        manager_id: uuid.UUID,
        company_id: uuid.UUID,
        employee_id: Optional[uuid.UUID] = None,
    ) -> None:
        if employee_id is not None and manager_id == employee_id:
            raise BadRequestException("An employee cannot be their own manager")
        found = (
            await db.execute(
                select(Employee.id).where(
                    create_tenant_where(Employee, Employee.id == manager_id, company_id)
                )
            )
        ).first()
        if found is None:
            raise BadRequestException("Manager does not belong to this company")

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch employees")
    async def list_employees(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        department: Optional[str] = None,
        position: Optional[str] = None,
        status: Optional[str] = None,
        manager_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = select(Employee).where(create_tenant_where(Employee, None, company_id))
        query = apply_filters(query, Employee, {
            "department": department,
            "position": position,
            "status": status,
            "manager_id": manager_id,
        })
        return await paginate(
            db, query, params,
            model=Employee,
            schema=EmployeeOut,
            search_columns=EMPLOYEE_SEARCH_COLUMNS,
        )

    @staticmethod
    @tenant_operation("fetch employee")
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> Employee:
        return await get_tenant_record(db, Employee, employee_id, company_id, "Employee")

    @staticmethod
    @tenant_operation("fetch manager")
    async def get_manager(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> Employee:
        employee = await get_tenant_record(db, Employee, employee_id, company_id, "Employee")
        if employee.manager_id is None:
            raise NotFoundException("Manager", message="Manager not found")

        result = await db.execute(
            select(Employee).where(
                create_tenant_where(Employee, Employee.id == employee.manager_id, company_id)
            )
        )
        manager = result.scalars().first()
        if manager is None:
            raise NotFoundException("Manager", message="Manager not found")
        return manager

    @staticmethod
    @tenant_operation("fetch direct reports")
    async def get_direct_reports(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> list[EmployeeBrief]:
        await get_tenant_record(db, Employee, employee_id, company_id, "Employee")
        result = await db.execute(
            select(Employee)
            .where(create_tenant_where(Employee, Employee.manager_id == employee_id, company_id))
            .order_by(Employee.first_name, Employee.last_name)
        )
        return [EmployeeBrief.model_validate(e) for e in result.scalars().all()]

    # ─────────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("create employee")
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        company_id = require_company_id(company_id, "employee creation")
        await EmployeeService._ensure_unique(
            db, company_id, employee_code=data.employee_code, email=data.email,
        )
        if data.manager_id is not None:
            await EmployeeService._ensure_manager(db, data.manager_id, company_id)

        employee = Employee(company_id=company_id, **data.model_dump())
        db.add(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=employee.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude={"bank_details"}),
        )
        return employee

    @staticmethod
    @tenant_operation("update employee")
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        employee = await get_tenant_record(db, Employee, employee_id, company_id, "Employee")
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        await EmployeeService._ensure_unique(
            db, company_id,
            employee_code=changes.get("employee_code"),
            email=changes.get("email"),
            exclude_id=employee.id,
        )
        if changes.get("manager_id") is not None:
            await EmployeeService._ensure_manager(
                db, changes["manager_id"], company_id, employee_id=employee.id,
            )

        old_values = {
            field: getattr(employee, field) for field in changes if field != "bank_details"
        }
        for field, value in changes.items():
            setattr(employee, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=employee.id,
            company_id=company_id,
            user_id=actor_id,
            old_values=jsonable_encoder(old_values),
            new_values=data.model_dump(mode="json", exclude_unset=True, exclude={"bank_details"}),
        )
        return employee
