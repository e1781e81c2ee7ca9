"""Payroll router — configuration, pay periods (process / approve), records."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.constants import PayrollStatus
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse
from enxero.database import get_db
from enxero.payroll.schemas import (
    PayrollConfigCreate,
    PayrollConfigOut,
    PayrollConfigUpdate,
    PayrollPeriodCreate,
    PayrollPeriodDetail,
    PayrollPeriodOut,
    PayrollRecordCreate,
    PayrollRecordOut,
    PayrollRecordUpdate,
)
from enxero.payroll.service import PayrollService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["payroll"])


# ═════════════════════════════════════════════════════════════════════
# Config
# ═════════════════════════════════════════════════════════════════════

@router.get("/config", response_model=ApiResponse[PayrollConfigOut])
async def get_payroll_config(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    config = await PayrollService.get_config(db, company_id=user.company_id)
    return ApiResponse(data=PayrollConfigOut.model_validate(config))


@router.post("/config", response_model=ApiResponse[PayrollConfigOut], status_code=201)
async def create_payroll_config(
    body: PayrollConfigCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    config = await PayrollService.create_config(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=PayrollConfigOut.model_validate(config), message="Payroll config created")


@router.put("/config/{config_id}", response_model=ApiResponse[PayrollConfigOut])
async def update_payroll_config(
    config_id: uuid.UUID,
    body: PayrollConfigUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    config = await PayrollService.update_config(
        db, config_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=PayrollConfigOut.model_validate(config), message="Payroll config updated")


# ═════════════════════════════════════════════════════════════════════
# Periods
# ═════════════════════════════════════════════════════════════════════

@router.get("/periods", response_model=PaginatedResponse[PayrollPeriodOut])
async def list_payroll_periods(
    params: PaginationParams = Depends(),
    status: Optional[PayrollStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.list_periods(
        db, params, company_id=user.company_id, status=status,
    )


@router.post("/periods", response_model=ApiResponse[PayrollPeriodOut], status_code=201)
async def create_payroll_period(
    body: PayrollPeriodCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    period = await PayrollService.create_period(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=PayrollPeriodOut.model_validate(period), message="Payroll period created")


@router.get("/periods/{period_id}", response_model=ApiResponse[PayrollPeriodDetail])
async def get_payroll_period(
    period_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(
        data=await PayrollService.get_period(db, period_id, company_id=user.company_id),
    )


@router.post("/periods/{period_id}/process", response_model=ApiResponse[PayrollPeriodDetail])
async def process_payroll(
    period_id: uuid.UUID,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    detail = await PayrollService.process_payroll(
        db, period_id, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=detail, message="Payroll processed")


@router.post("/periods/{period_id}/approve", response_model=ApiResponse[PayrollPeriodDetail])
async def approve_payroll(
    period_id: uuid.UUID,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    detail = await PayrollService.approve_payroll(
        db, period_id, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=detail, message="Payroll approved")


# ═════════════════════════════════════════════════════════════════════
# Records
# ═════════════════════════════════════════════════════════════════════

@router.get("/records", response_model=PaginatedResponse[PayrollRecordOut])
async def list_payroll_records(
    params: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None, alias="employeeId"),
    period_id: Optional[uuid.UUID] = Query(None, alias="periodId"),
    status: Optional[PayrollStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await PayrollService.list_records(
        db, params,
        company_id=user.company_id,
        employee_id=employee_id,
        period_id=period_id,
        status=status,
    )


@router.post("/records", response_model=ApiResponse[PayrollRecordOut], status_code=201)
async def create_payroll_record(
    body: PayrollRecordCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    record = await PayrollService.create_record(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=PayrollRecordOut.model_validate(record), message="Payroll record created")


@router.get("/records/{record_id}", response_model=ApiResponse[PayrollRecordOut])
async def get_payroll_record(
    record_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await PayrollService.get_record(db, record_id, company_id=user.company_id)
    return ApiResponse(data=PayrollRecordOut.model_validate(record))


@router.put("/records/{record_id}", response_model=ApiResponse[PayrollRecordOut])
async def update_payroll_record(
    record_id: uuid.UUID,
    body: PayrollRecordUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    record = await PayrollService.update_record(
        db, record_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=PayrollRecordOut.model_validate(record), message="Payroll record updated")


# ── Employee view ───────────────────────────────────────────────────

@router.get(
    "/employee/{employee_id}/period/{period_id}",
    response_model=ApiResponse[PayrollRecordOut],
)
async def get_employee_payroll(
    employee_id: uuid.UUID,
    period_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    record = await PayrollService.get_employee_payroll(
        db, employee_id, period_id, company_id=user.company_id,
    )
    return ApiResponse(data=PayrollRecordOut.model_validate(record))
