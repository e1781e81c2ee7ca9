"""Employees router — directory listing, detail, create/update, reporting lines."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.constants import EmployeeStatus
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse
from enxero.database import get_db
from enxero.employees.schemas import EmployeeBrief, EmployeeCreate, EmployeeOut, EmployeeUpdate
from enxero.employees.service import EmployeeService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["employees"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[EmployeeOut])
async def list_employees(
    params: PaginationParams = Depends(),
    department: Optional[str] = Query(None),
    position: Optional[str] = Query(None),
    status: Optional[EmployeeStatus] = Query(None),
    manager_id: Optional[uuid.UUID] = Query(None, alias="managerId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List employees with search on name/email/code and optional filters."""
    return await EmployeeService.list_employees(
        db, params,
        company_id=user.company_id,
        department=department,
        position=position,
        status=status,
        manager_id=manager_id,
    )


# ── GET /{employee_id} ──────────────────────────────────────────────

@router.get("/{employee_id}", response_model=ApiResponse[EmployeeOut])
async def get_employee(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.get_employee(db, employee_id, company_id=user.company_id)
    return ApiResponse(data=EmployeeOut.model_validate(employee))


@router.get("/{employee_id}/manager", response_model=ApiResponse[EmployeeBrief])
async def get_manager(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    manager = await EmployeeService.get_manager(db, employee_id, company_id=user.company_id)
    return ApiResponse(data=EmployeeBrief.model_validate(manager))


@router.get("/{employee_id}/direct-reports", response_model=ApiResponse[list[EmployeeBrief]])
async def get_direct_reports(
    employee_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    reports = await EmployeeService.get_direct_reports(
        db, employee_id, company_id=user.company_id,
    )
    return ApiResponse(data=reports)


# ── POST / PUT ──────────────────────────────────────────────────────

@router.post("", response_model=ApiResponse[EmployeeOut], status_code=201)
async def create_employee(
    body: EmployeeCreate,
    user: User = Depends(require_permission("write:employees")),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.create_employee(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=EmployeeOut.model_validate(employee), message="Employee created")


@router.put("/{employee_id}", response_model=ApiResponse[EmployeeOut])
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    user: User = Depends(require_permission("write:employees")),
    db: AsyncSession = Depends(get_db),
):
    employee = await EmployeeService.update_employee(
        db, employee_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=EmployeeOut.model_validate(employee), message="Employee updated")
