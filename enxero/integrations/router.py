"""Integrations router — CRUD over third-party connections and their logs."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.constants import IntegrationStatus
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.integrations.schemas import (
    IntegrationCreate,
    IntegrationLogOut,
    IntegrationOut,
    IntegrationUpdate,
)
from enxero.integrations.service import IntegrationService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["integrations"])


@router.get("", response_model=PaginatedResponse[IntegrationOut])
async def list_integrations(
    params: PaginationParams = Depends(),
    type: Optional[str] = Query(None),
    status: Optional[IntegrationStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await IntegrationService.list_integrations(
        db, params, company_id=user.company_id, type=type, status=status,
    )


@router.get("/{integration_id}", response_model=ApiResponse[IntegrationOut])
async def get_integration(
    integration_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    integration = await IntegrationService.get_integration(
        db, integration_id, company_id=user.company_id,
    )
    return ApiResponse(data=IntegrationOut.model_validate(integration))


@router.post("", response_model=ApiResponse[IntegrationOut], status_code=201)
async def create_integration(
    body: IntegrationCreate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    integration = await IntegrationService.create_integration(
        db, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=IntegrationOut.model_validate(integration), message="Integration created")


@router.put("/{integration_id}", response_model=ApiResponse[IntegrationOut])
async def update_integration(
    integration_id: uuid.UUID,
    body: IntegrationUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    integration = await IntegrationService.update_integration(
        db, integration_id, body, company_id=user.company_id, actor_id=user.id,
    )
    return ApiResponse(data=IntegrationOut.model_validate(integration), message="Integration updated")


@router.delete("/{integration_id}", response_model=MessageResponse)
async def delete_integration(
    integration_id: uuid.UUID,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    await IntegrationService.delete_integration(
        db, integration_id, company_id=user.company_id, actor_id=user.id,
    )
    return MessageResponse(message="Integration deleted")


@router.get("/{integration_id}/logs", response_model=PaginatedResponse[IntegrationLogOut])
async def list_integration_logs(
    integration_id: uuid.UUID,
    params: PaginationParams = Depends(),
    status: Optional[str] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await IntegrationService.list_logs(
        db, integration_id, params, company_id=user.company_id, status=status,
    )
