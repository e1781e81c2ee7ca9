"""Role service — tenant-scoped permission sets and user assignment."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.common.exceptions import BadRequestException, ConflictError
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
)
from enxero.roles.models import Role
from enxero.roles.schemas import RoleCreate, RoleOut, RoleUpdate
from enxero.users.models import User


class RoleService:

    @staticmethod
    async def _ensure_name_free(
        db: AsyncSession,
        name: str,
        company_id: uuid.UUID,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Role.id).where(create_tenant_where(Role, Role.name == name, company_id))
        if exclude_id is not None:
            query = query.where(Role.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("Role with this name already exists", field="name")

    @staticmethod
    @tenant_operation("fetch roles")
    async def list_roles(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Role).where(create_tenant_where(Role, None, company_id))
        query = apply_filters(query, Role, {"is_active": is_active})
        return await paginate(
            db, query, params,
            model=Role,
            schema=RoleOut,
            search_columns=("name", "description"),
        )

    @staticmethod
    @tenant_operation("fetch role")
    async def get_role(db: AsyncSession, role_id: uuid.UUID, *, company_id: uuid.UUID) -> Role:
        return await get_tenant_record(db, Role, role_id, company_id, "Role")

    @staticmethod
    @tenant_operation("create role")
    async def create_role(
        db: AsyncSession,
        data: RoleCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> Role:
        company_id = require_company_id(company_id, "role creation")
        await RoleService._ensure_name_free(db, data.name, company_id)

        role = Role(company_id=company_id, **data.model_dump())
        db.add(role)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="role",
            entity_id=role.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return role

    @staticmethod
    @tenant_operation("update role")
    async def update_role(
        db: AsyncSession,
        role_id: uuid.UUID,
        data: RoleUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Role:
        role = await get_tenant_record(db, Role, role_id, company_id, "Role")
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != role.name:
            await RoleService._ensure_name_free(db, changes["name"], company_id, exclude_id=role.id)

        old_values = {"name": role.name, "permissions": list(role.permissions or [])}
        for field, value in changes.items():
            setattr(role, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="role",
            entity_id=role.id,
            company_id=company_id,
            user_id=actor_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return role

    @staticmethod
    @tenant_operation("delete role")
    async def delete_role(
        db: AsyncSession,
        role_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        role = await get_tenant_record(db, Role, role_id, company_id, "Role")

        assigned = (
            await db.execute(select(func.count()).select_from(User).where(User.role_id == role.id))
        ).scalar_one()
        if assigned:
            raise BadRequestException("Cannot delete role that is assigned to users")

        await db.delete(role)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="role",
            entity_id=role_id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"name": role.name},
        )

    @staticmethod
    @tenant_operation("assign role")
    async def assign_role_to_user(
        db: AsyncSession,
        role_id: uuid.UUID,
        user_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        """Point *user_id* at *role_id*; both must belong to the caller's company."""
        role = await get_tenant_record(db, Role, role_id, company_id, "Role")
        user = (await db.execute(select(User).where(User.id == user_id))).scalars().first()
        if user is None or user.company_id != role.company_id:
            raise BadRequestException("User and role must belong to the same company")

        old_role_id = user.role_id
        user.role_id = role.id
        await db.flush()

        await create_audit_entry(
            db,
            action="assign_role",
            entity_type="user",
            entity_id=user.id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"roleId": str(old_role_id) if old_role_id else None},
            new_values={"roleId": str(role.id)},
        )
        return user
