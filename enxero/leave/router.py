"""Leave router — leave types, balances, and the request / approval workflow."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import require_permission
from enxero.common.constants import LeaveStatus
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.leave.schemas import (
    LeaveBalanceCreate,
    LeaveBalanceOut,
    LeaveDecision,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveTypeCreate,
    LeaveTypeOut,
    LeaveTypeUpdate,
)
from enxero.leave.service import LeaveService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["leave"])


# ═════════════════════════════════════════════════════════════════════
# Leave types
# ═════════════════════════════════════════════════════════════════════

@router.get("/types", response_model=ApiResponse[list[LeaveTypeOut]])
async def list_leave_types(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    user: User = Depends(require_permission("view:leave_types")),
    db: AsyncSession = Depends(get_db),
):
    types = await LeaveService.list_leave_types(
        db, company_id=user.company_id, is_active=is_active,
    )
    return ApiResponse(data=types)


@router.post("/types", response_model=ApiResponse[LeaveTypeOut], status_code=201)
async def create_leave_type(
    body: LeaveTypeCreate,
    user: User = Depends(require_permission("create:leave_types")),
    db: AsyncSession = Depends(get_db),
):
    leave_type = await LeaveService.create_leave_type(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveTypeOut.model_validate(leave_type), message="Leave type created")


@router.put("/types/{type_id}", response_model=ApiResponse[LeaveTypeOut])
async def update_leave_type(
    type_id: uuid.UUID,
    body: LeaveTypeUpdate,
    user: User = Depends(require_permission("update:leave_types")),
    db: AsyncSession = Depends(get_db),
):
    leave_type = await LeaveService.update_leave_type(
        db, type_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveTypeOut.model_validate(leave_type), message="Leave type updated")


# ═════════════════════════════════════════════════════════════════════
# Balances
# ═════════════════════════════════════════════════════════════════════

@router.get("/balance", response_model=ApiResponse[list[LeaveBalanceOut]])
async def get_leave_balance(
    employee_id: Optional[uuid.UUID] = Query(None, alias="employeeId"),
    user: User = Depends(require_permission("view:leave_balance")),
    db: AsyncSession = Depends(get_db),
):
    balances = await LeaveService.get_leave_balance(
        db, company_id=user.company_id, employee_id=employee_id,
    )
    return ApiResponse(data=balances)


@router.post("/balance", response_model=ApiResponse[LeaveBalanceOut], status_code=201)
async def allocate_leave_balance(
    body: LeaveBalanceCreate,
    user: User = Depends(require_permission("manage:leave_balance")),
    db: AsyncSession = Depends(get_db),
):
    balance = await LeaveService.allocate_balance(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveBalanceOut.model_validate(balance), message="Leave balance allocated")


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════

@router.get("/requests", response_model=PaginatedResponse[LeaveRequestOut])
async def list_leave_requests(
    params: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None, alias="employeeId"),
    status: Optional[LeaveStatus] = Query(None),
    type_id: Optional[uuid.UUID] = Query(None, alias="typeId"),
    user: User = Depends(require_permission("view:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.list_leave_requests(
        db, params,
        company_id=user.company_id,
        employee_id=employee_id,
        status=status,
        type_id=type_id,
    )


@router.get("/requests/{request_id}", response_model=ApiResponse[LeaveRequestOut])
async def get_leave_request(
    request_id: uuid.UUID,
    user: User = Depends(require_permission("view:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    request = await LeaveService.get_leave_request(db, request_id, company_id=user.company_id)
    return ApiResponse(data=LeaveRequestOut.model_validate(request))


@router.post("/requests", response_model=ApiResponse[LeaveRequestOut], status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    user: User = Depends(require_permission("create:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    request = await LeaveService.create_leave_request(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveRequestOut.model_validate(request), message="Leave request created")


@router.put("/requests/{request_id}", response_model=ApiResponse[LeaveRequestOut])
async def update_leave_request(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    user: User = Depends(require_permission("update:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    request = await LeaveService.update_leave_request(
        db, request_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveRequestOut.model_validate(request), message="Leave request updated")


@router.delete("/requests/{request_id}", response_model=MessageResponse)
async def delete_leave_request(
    request_id: uuid.UUID,
    user: User = Depends(require_permission("delete:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    await LeaveService.delete_leave_request(
        db, request_id, company_id=user.company_id, actor_id=user.id,
    )
    return MessageResponse(message="Leave request deleted")


@router.post("/requests/{request_id}/approve", response_model=ApiResponse[LeaveRequestOut])
async def approve_leave_request(
    request_id: uuid.UUID,
    body: LeaveDecision = LeaveDecision(),
    user: User = Depends(require_permission("approve:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    request = await LeaveService.approve_leave_request(
        db, request_id, body.notes, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveRequestOut.model_validate(request), message="Leave request approved")


@router.post("/requests/{request_id}/reject", response_model=ApiResponse[LeaveRequestOut])
async def reject_leave_request(
    request_id: uuid.UUID,
    body: LeaveDecision = LeaveDecision(),
    user: User = Depends(require_permission("reject:leave_requests")),
    db: AsyncSession = Depends(get_db),
):
    request = await LeaveService.reject_leave_request(
        db, request_id, body.notes, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=LeaveRequestOut.model_validate(request), message="Leave request rejected")
