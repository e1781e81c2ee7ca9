"""Audit service — write entries for service mutations, query the trail."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.models import AuditLog
from enxero.audit.schemas import AuditLogOut
from enxero.common.exceptions import NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import create_tenant_where, tenant_operation


# ── Helper to create an entry ───────────────────────────────────────

async def create_audit_entry(
    session: AsyncSession,
    *,
    action: str,
    entity_type: str,
    entity_id: Any,
    company_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    old_values: Optional[dict[str, Any]] = None,
    new_values: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """
    Create and flush an audit-log entry.

    Args:
        session: Async SQLAlchemy session.
        action: create | update | delete | approve | reject | etc.
        entity_type: e.g. "employee", "leave_request".
        entity_id: Identifier of the affected entity.
        company_id: Tenant the entity belongs to, if any.
        user_id: UUID of the user performing the action.
        old_values: Previous state (for updates/deletes).
        new_values: New state (for creates/updates).
        ip_address: Client IP.
        user_agent: Client user-agent string.
    """
    entry = AuditLog(
        company_id=company_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id),
        old_values=old_values,
        new_values=new_values,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(entry)
    await session.flush()
    return entry


# ═════════════════════════════════════════════════════════════════════
# AuditService
# ═════════════════════════════════════════════════════════════════════


class AuditService:
    """Read side of the audit trail, always scoped to one company."""

    @staticmethod
    @tenant_operation("fetch audit logs")
    async def list_logs(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> PaginatedResponse:
        query = select(AuditLog).where(create_tenant_where(AuditLog, None, company_id))
        query = apply_filters(
            query,
            AuditLog,
            {
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "user_id": user_id,
                "created_at__from": start_date,
                "created_at__to": end_date,
            },
        )
        return await paginate(
            db, query, params,
            model=AuditLog,
            schema=AuditLogOut,
            search_columns=("action", "entity_type"),
        )

    @staticmethod
    @tenant_operation("fetch audit log")
    async def get_log(
        db: AsyncSession,
        log_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> AuditLog:
        result = await db.execute(
            select(AuditLog).where(
                create_tenant_where(AuditLog, AuditLog.id == log_id, company_id)
            )
        )
        entry = result.scalars().first()
        if entry is None:
            raise NotFoundException("Audit log", log_id)
        return entry

    @staticmethod
    @tenant_operation("fetch entity audit logs")
    async def get_entity_logs(
        db: AsyncSession,
        entity_type: str,
        entity_id: str,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
    ) -> PaginatedResponse:
        query = select(AuditLog).where(
            create_tenant_where(
                AuditLog,
                [AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id],
                company_id,
            )
        )
        return await paginate(db, query, params, model=AuditLog, schema=AuditLogOut)
