"""System router — global configuration keys and system logs."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import require_permission
from enxero.common.constants import LogLevel
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse
from enxero.database import get_db
from enxero.system.schemas import (
    SystemConfigCreate,
    SystemConfigOut,
    SystemConfigUpdate,
    SystemLogOut,
)
from enxero.system.service import SystemService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["system"])


# ── Configs ─────────────────────────────────────────────────────────

@router.get("/configs", response_model=PaginatedResponse[SystemConfigOut])
async def list_configs(
    params: PaginationParams = Depends(),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    user: User = Depends(require_permission("read:all")),
    db: AsyncSession = Depends(get_db),
):
    return await SystemService.list_configs(db, params, is_active=is_active)


@router.get("/configs/{key}", response_model=ApiResponse[SystemConfigOut])
async def get_config(
    key: str,
    user: User = Depends(require_permission("read:all")),
    db: AsyncSession = Depends(get_db),
):
    config = await SystemService.get_config(db, key)
    return ApiResponse(data=SystemConfigOut.model_validate(config))


@router.post("/configs", response_model=ApiResponse[SystemConfigOut], status_code=201)
async def create_config(
    body: SystemConfigCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    config = await SystemService.create_config(db, body, actor=user)
    return ApiResponse(data=SystemConfigOut.model_validate(config), message="System config created")


@router.put("/configs/{key}", response_model=ApiResponse[SystemConfigOut])
async def update_config(
    key: str,
    body: SystemConfigUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    config = await SystemService.update_config(db, key, body, actor=user)
    return ApiResponse(data=SystemConfigOut.model_validate(config), message="System config updated")


# ── Logs ────────────────────────────────────────────────────────────

@router.get("/logs", response_model=PaginatedResponse[SystemLogOut])
async def list_logs(
    params: PaginationParams = Depends(),
    level: Optional[LogLevel] = Query(None),
    user: User = Depends(require_permission("read:all")),
    db: AsyncSession = Depends(get_db),
):
    return await SystemService.list_logs(db, params, level=level)
