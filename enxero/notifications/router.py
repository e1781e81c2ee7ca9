"""Notifications router — own inbox, mark read, delete, send."""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.common.constants import NotificationType
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.database import get_db
from enxero.notifications.schemas import NotificationOut, NotificationSend
from enxero.notifications.service import NotificationService
from enxero.users.models import User

router = APIRouter(prefix="", tags=["notifications"])


@router.get("", response_model=PaginatedResponse[NotificationOut])
async def list_notifications(
    params: PaginationParams = Depends(),
    type: Optional[NotificationType] = Query(None),
    status: Optional[Literal["read", "unread"]] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await NotificationService.list_notifications(
        db, params, user, company_id=user.company_id, type=type, status=status,
    )


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationOut])
async def mark_as_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService.mark_as_read(
        db, notification_id, user, company_id=user.company_id,
    )
    return ApiResponse(data=NotificationOut.model_validate(notification))


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService.delete_notification(
        db, notification_id, user, company_id=user.company_id,
    )
    return MessageResponse(message="Notification deleted")


@router.post("/send", response_model=ApiResponse[NotificationOut], status_code=201)
async def send_notification(
    body: NotificationSend,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService.send_notification(
        db, body, company_id=user.company_id,
    )
    return ApiResponse(data=NotificationOut.model_validate(notification), message="Notification sent")
