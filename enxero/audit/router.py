"""Audit router — the company's audit trail."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.schemas import AuditLogOut
from enxero.audit.service import AuditService
from enxero.auth.dependencies import require_permission
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse
from enxero.database import get_db
from enxero.users.models import User

router = APIRouter(prefix="", tags=["audit"])


@router.get("/logs", response_model=PaginatedResponse[AuditLogOut])
async def list_audit_logs(
    params: PaginationParams = Depends(),
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None, alias="entityType"),
    entity_id: Optional[str] = Query(None, alias="entityId"),
    user_id: Optional[uuid.UUID] = Query(None, alias="userId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    user: User = Depends(require_permission("read:all")),
    db: AsyncSession = Depends(get_db),
):
    return await AuditService.list_logs(
        db, params,
        company_id=user.company_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/logs/entity/{entity_type}/{entity_id}", response_model=PaginatedResponse[AuditLogOut])
async def get_entity_history(
    entity_type: str,
    entity_id: str,
    params: PaginationParams = Depends(),
    user: User = Depends(require_permission("read:all")),
    db: AsyncSession = Depends(get_db),
):
    return await AuditService.get_entity_logs(
        db, entity_type, entity_id, params, company_id=user.company_id,
    )


@router.get("/logs/{log_id}", response_model=ApiResponse[AuditLogOut])
async def get_audit_log(
    log_id: uuid.UUID,
    user: User = Depends(require_permission("read:all")),
    db: AsyncSession = Depends(get_db),
):
    entry = await AuditService.get_log(db, log_id, company_id=user.company_id)
    return ApiResponse(data=AuditLogOut.model_validate(entry))
