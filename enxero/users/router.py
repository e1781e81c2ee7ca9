"""Users router — own profile, password change, tenant user administration."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.users.models import User
from enxero.users.schemas import (
    ChangePasswordRequest,
    ProfileUpdate,
    UserCreate,
    UserCreatedOut,
    UserOut,
    UserProfileOut,
    UserStatusUpdate,
    UserUpdate,
)
from enxero.users.service import UserService

router = APIRouter(prefix="", tags=["users"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=PaginatedResponse[UserOut])
async def list_users(
    params: PaginationParams = Depends(),
    role_id: Optional[uuid.UUID] = Query(None, alias="roleId"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    user: User = Depends(require_permission("read:users")),
    db: AsyncSession = Depends(get_db),
):
    """List users in the caller's company."""
    return await UserService.list_users(
        db, params, company_id=user.company_id, role_id=role_id, is_active=is_active,
    )


# ── Own profile ─────────────────────────────────────────────────────

@router.get("/profile", response_model=ApiResponse[UserProfileOut])
async def get_profile(user: User = Depends(get_current_user)):
    return ApiResponse(data=UserProfileOut.model_validate(user))


@router.put("/profile", response_model=ApiResponse[UserOut])
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserService.update_profile(db, user, body)
    return ApiResponse(data=UserOut.model_validate(updated), message="Profile updated")


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await UserService.change_password(db, user, body)
    return MessageResponse(message="Password changed successfully")


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=ApiResponse[UserCreatedOut], status_code=201)
async def create_user(
    body: UserCreate,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    created, temporary_password = await UserService.create_user(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    out = UserCreatedOut.model_validate(created)
    out.temporary_password = temporary_password
    return ApiResponse(data=out, message="User created")


# ── /{id} ───────────────────────────────────────────────────────────

@router.get("/{user_id}", response_model=ApiResponse[UserProfileOut])
async def get_user(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("read:users")),
    db: AsyncSession = Depends(get_db),
):
    found = await UserService.get_user(db, user_id, company_id=user.company_id)
    return ApiResponse(data=UserProfileOut.model_validate(found))


@router.put("/{user_id}", response_model=ApiResponse[UserOut])
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserService.update_user(
        db, user_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=UserOut.model_validate(updated), message="User updated")


@router.put("/{user_id}/status", response_model=ApiResponse[UserOut])
async def update_user_status(
    user_id: uuid.UUID,
    body: UserStatusUpdate,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserService.set_active(
        db, user_id, body.is_active, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=UserOut.model_validate(updated))


@router.patch("/{user_id}/toggle-active", response_model=ApiResponse[UserOut])
async def toggle_user_active(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    updated = await UserService.set_active(
        db, user_id, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=UserOut.model_validate(updated))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    await UserService.delete_user(db, user_id, company_id=user.company_id, actor_id=user.id)
    return MessageResponse(message="User deleted")
