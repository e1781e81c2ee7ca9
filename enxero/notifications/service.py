"""Notification service — per-user inbox within a company."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.common.constants import NotificationType
from enxero.common.exceptions import BadRequestException, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import create_tenant_where, require_company_id, tenant_operation
from enxero.notifications.models import Notification
from enxero.notifications.schemas import NotificationOut, NotificationSend
from enxero.users.models import User


async def _get_own(
    db: AsyncSession,
    notification_id: uuid.UUID,
    user: User,
) -> Notification:
    # Another user's notification is reported as missing
    result = await db.execute(
        select(Notification).where(
            create_tenant_where(
                Notification,
                [Notification.id == notification_id, Notification.user_id == user.id],
                user.company_id,
            )
        )
    )
    notification = result.scalars().first()
    if notification is None:
        raise NotFoundException("Notification", notification_id)
    return notification


class NotificationService:

    @staticmethod
    @tenant_operation("fetch notifications")
    async def list_notifications(
        db: AsyncSession,
        params: PaginationParams,
        user: User,
        *,
        company_id: uuid.UUID,
        type: Optional[NotificationType] = None,
        status: Optional[str] = None,
    ) -> PaginatedResponse:
        """List the caller's notifications. *status* is ``read`` or ``unread``."""
        is_read = {"read": True, "unread": False}.get(status) if status else None
        query = select(Notification).where(
            create_tenant_where(Notification, Notification.user_id == user.id, company_id)
        )
        query = apply_filters(query, Notification, {"type": type, "is_read": is_read})
        return await paginate(
            db, query, params,
            model=Notification,
            schema=NotificationOut,
            search_columns=("title", "message"),
        )

    @staticmethod
    @tenant_operation("mark notification as read")
    async def mark_as_read(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user: User,
        *,
        company_id: uuid.UUID,
    ) -> Notification:
        notification = await _get_own(db, notification_id, user)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await db.flush()
        return notification

    @staticmethod
    @tenant_operation("delete notification")
    async def delete_notification(
        db: AsyncSession,
        notification_id: uuid.UUID,
        user: User,
        *,
        company_id: uuid.UUID,
    ) -> None:
        notification = await _get_own(db, notification_id, user)
        await db.delete(notification)
        await db.flush()

    @staticmethod
    @tenant_operation("send notification")
    async def send_notification(
        db: AsyncSession,
        data: NotificationSend,
        *,
        company_id: Optional[uuid.UUID],
    ) -> Notification:
        company_id = require_company_id(company_id, "sending notifications")
        recipient = (
            await db.execute(
                select(User.id).where(create_tenant_where(User, User.id == data.user_id, company_id))
            )
        ).first()
        if recipient is None:
            raise BadRequestException("Invalid company ID or user ID")

        notification = Notification(company_id=company_id, **data.model_dump())
        db.add(notification)
        await db.flush()
        return notification
