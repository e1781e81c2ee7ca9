"""System service — global key/value configuration and the persisted system log."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.common.constants import LogLevel
from enxero.common.exceptions import ConflictError, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import tenant_operation
from enxero.system.models import SystemConfig, SystemLog
from enxero.system.schemas import (
    SystemConfigCreate,
    SystemConfigOut,
    SystemConfigUpdate,
    SystemLogOut,
)
from enxero.users.models import User


async def write_system_log(
    db: AsyncSession,
    level: LogLevel,
    message: str,
    context: Optional[dict[str, Any]] = None,
) -> SystemLog:
    entry = SystemLog(level=level, message=message, context=context)
    db.add(entry)
    await db.flush()
    return entry


async def _get_by_key(db: AsyncSession, key: str) -> SystemConfig:
    result = await db.execute(select(SystemConfig).where(SystemConfig.key == key))
    config = result.scalars().first()
    if config is None:
        raise NotFoundException("System config", key)
    return config


class SystemService:
    """Platform-wide settings; these rows are not owned by any company."""

    @staticmethod
    @tenant_operation("fetch system configs")
    async def list_configs(
        db: AsyncSession,
        params: PaginationParams,
        *,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = apply_filters(select(SystemConfig), SystemConfig, {"is_active": is_active})
        return await paginate(
            db, query, params,
            model=SystemConfig,
            schema=SystemConfigOut,
            search_columns=("key", "description"),
        )

    @staticmethod
    @tenant_operation("fetch system config")
    async def get_config(db: AsyncSession, key: str) -> SystemConfig:
        return await _get_by_key(db, key)

    @staticmethod
    @tenant_operation("create system config")
    async def create_config(
        db: AsyncSession,
        data: SystemConfigCreate,
        *,
        actor: Optional[User] = None,
    ) -> SystemConfig:
        existing = await db.execute(select(SystemConfig.id).where(SystemConfig.key == data.key))
        if existing.first() is not None:
            raise ConflictError("System config with this key already exists", field="key")

        config = SystemConfig(**data.model_dump())
        db.add(config)
        await db.flush()

        await write_system_log(db, LogLevel.info, f"System config '{data.key}' created")
        if actor is not None:
            await create_audit_entry(
                db,
                action="create",
                entity_type="system_config",
                entity_id=config.id,
                company_id=actor.company_id,
                user_id=actor.id,
                new_values=data.model_dump(mode="json"),
            )
        return config

    @staticmethod
    @tenant_operation("update system config")
    async def update_config(
        db: AsyncSession,
        key: str,
        data: SystemConfigUpdate,
        *,
        actor: Optional[User] = None,
    ) -> SystemConfig:
        config = await _get_by_key(db, key)
        changes = data.model_dump(exclude_unset=True)
        if "value" in changes and changes["value"] is None:
            changes.pop("value")

        old_value = config.value
        for field, value in changes.items():
            setattr(config, field, value)
        await db.flush()

        await write_system_log(db, LogLevel.info, f"System config '{key}' updated")
        if actor is not None:
            await create_audit_entry(
                db,
                action="update",
                entity_type="system_config",
                entity_id=config.id,
                company_id=actor.company_id,
                user_id=actor.id,
                old_values={"value": old_value},
                new_values=data.model_dump(mode="json", exclude_unset=True),
            )
        return config

    @staticmethod
    @tenant_operation("fetch system logs")
    async def list_logs(
        db: AsyncSession,
        params: PaginationParams,
        *,
        level: Optional[LogLevel] = None,
    ) -> PaginatedResponse:
        query = apply_filters(select(SystemLog), SystemLog, {"level": level})
        return await paginate(
            db, query, params,
            model=SystemLog,
            schema=SystemLogOut,
            search_columns=("message",),
        )
