"""Roles router — CRUD over the company's roles and role assignment."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.roles.schemas import RoleAssign, RoleCreate, RoleOut, RoleUpdate
from enxero.roles.service import RoleService
from enxero.users.models import User
from enxero.users.schemas import UserOut

router = APIRouter(prefix="", tags=["roles"])


@router.get("", response_model=PaginatedResponse[RoleOut])
async def list_roles(
    params: PaginationParams = Depends(),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await RoleService.list_roles(db, params, company_id=user.company_id, is_active=is_active)


@router.get("/{role_id}", response_model=ApiResponse[RoleOut])
async def get_role(
    role_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    role = await RoleService.get_role(db, role_id, company_id=user.company_id)
    return ApiResponse(data=RoleOut.model_validate(role))


@router.post("", response_model=ApiResponse[RoleOut], status_code=201)
async def create_role(
    body: RoleCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    role = await RoleService.create_role(db, body, company_id=user.company_id, actor_id=user.id)
    return ApiResponse(data=RoleOut.model_validate(role), message="Role created")


@router.put("/{role_id}", response_model=ApiResponse[RoleOut])
async def update_role(
    role_id: uuid.UUID,
    body: RoleUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    role = await RoleService.update_role(
        db, role_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=RoleOut.model_validate(role), message="Role updated")


@router.delete("/{role_id}", response_model=MessageResponse)
async def delete_role(
    role_id: uuid.UUID,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    await RoleService.delete_role(db, role_id, company_id=user.company_id, actor_id=user.id)
    return MessageResponse(message="Role deleted")


@router.post("/{role_id}/assign", response_model=ApiResponse[UserOut])
async def assign_role(
    role_id: uuid.UUID,
    body: RoleAssign,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    updated = await RoleService.assign_role_to_user(
        db, role_id, body.user_id, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=UserOut.model_validate(updated), message="Role assigned")
