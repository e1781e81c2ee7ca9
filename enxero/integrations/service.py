"""Integration service — third-party connection settings and their event log."""

from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.common.constants import IntegrationStatus
from enxero.common.exceptions import ConflictError
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
    validate_tenant_access,
)
from enxero.integrations.models import Integration, IntegrationLog
from enxero.integrations.schemas import (
    IntegrationCreate,
    IntegrationLogOut,
    IntegrationOut,
    IntegrationUpdate,
)


async def record_integration_event(
    db: AsyncSession,
    integration_id: uuid.UUID,
    status: str,
    message: str,
    payload: Optional[dict[str, Any]] = None,
) -> IntegrationLog:
    entry = IntegrationLog(
        integration_id=integration_id,
        status=status,
        message=message,
        payload=payload,
    )
    db.add(entry)
    await db.flush()
    return entry


class IntegrationService:

    @staticmethod
    async def _ensure_name_free(
        db: AsyncSession,
        name: str,
        company_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Integration.id).where(
            create_tenant_where(Integration, Integration.name == name, company_id)
        )
        if exclude_id is not None:
            query = query.where(Integration.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("Integration with this name already exists", field="name")

    @staticmethod
    @tenant_operation("fetch integrations")
    async def list_integrations(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        type: Optional[str] = None,
        status: Optional[IntegrationStatus] = None,
    ) -> PaginatedResponse:
        query = select(Integration).where(create_tenant_where(Integration, None, company_id))
        query = apply_filters(query, Integration, {"type": type, "status": status})
        return await paginate(
            db, query, params,
            model=Integration,
            schema=IntegrationOut,
            search_columns=("name", "type"),
        )

    @staticmethod
    @tenant_operation("fetch integration")
    async def get_integration(
        db: AsyncSession,
        integration_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> Integration:
        return await get_tenant_record(db, Integration, integration_id, company_id, "Integration")

    @staticmethod
    @tenant_operation("create integration")
    async def create_integration(
        db: AsyncSession,
        data: IntegrationCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> Integration:
        company_id = require_company_id(company_id, "integration creation")
        await IntegrationService._ensure_name_free(db, data.name, company_id)

        integration = Integration(company_id=company_id, **data.model_dump())
        db.add(integration)
        await db.flush()

        await record_integration_event(db, integration.id, "success", "Integration created")
        await create_audit_entry(
            db,
            action="create",
            entity_type="integration",
            entity_id=integration.id,
            company_id=company_id,
            user_id=actor_id,
            new_values={"name": data.name, "type": data.type, "status": data.status.value},
        )
        return integration

    @staticmethod
    @tenant_operation("update integration")
    async def update_integration(
        db: AsyncSession,
        integration_id: uuid.UUID,
        data: IntegrationUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Integration:
        integration = await get_tenant_record(
            db, Integration, integration_id, company_id, "Integration",
        )
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != integration.name:
            await IntegrationService._ensure_name_free(
                db, changes["name"], company_id, exclude_id=integration.id,
            )

        old_status = integration.status
        for field, value in changes.items():
            setattr(integration, field, value)
        await db.flush()

        if integration.status != old_status:
            message = f"Status changed from {old_status.value} to {integration.status.value}"
        else:
            message = "Integration updated"
        await record_integration_event(
            db, integration.id, "success", message,
            {"fields": sorted(changes)},
        )
        # Config may hold credentials; only the changed keys are audited
        await create_audit_entry(
            db,
            action="update",
            entity_type="integration",
            entity_id=integration.id,
            company_id=company_id,
            user_id=actor_id,
            new_values={"fields": sorted(changes)},
        )
        return integration

    @staticmethod
    @tenant_operation("delete integration")
    async def delete_integration(
        db: AsyncSession,
        integration_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        integration = await get_tenant_record(
            db, Integration, integration_id, company_id, "Integration",
        )
        await db.delete(integration)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="integration",
            entity_id=integration_id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"name": integration.name},
        )

    @staticmethod
    @tenant_operation("fetch integration logs")
    async def list_logs(
        db: AsyncSession,
        integration_id: uuid.UUID,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        status: Optional[str] = None,
    ) -> PaginatedResponse:
        await validate_tenant_access(db, Integration, integration_id, company_id, "Integration")
        query = select(IntegrationLog).where(IntegrationLog.integration_id == integration_id)
        query = apply_filters(query, IntegrationLog, {"status": status})
        return await paginate(
            db, query, params,
            model=IntegrationLog,
            schema=IntegrationLogOut,
            search_columns=("message",),
        )
