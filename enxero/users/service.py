"""User service — tenant-scoped user management, profile, passwords."""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from enxero.audit.service import create_audit_entry
from enxero.auth.security import hash_password, verify_password
from enxero.common.exceptions import BadRequestException, ConflictError, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    get_tenant_record,
    require_company_id,
    tenant_operation,
)
from enxero.roles.models import Role
from enxero.users.models import User
from enxero.users.schemas import (
    ChangePasswordRequest,
    ProfileUpdate,
    UserCreate,
    UserOut,
    UserUpdate,
)

USER_SEARCH_COLUMNS = ("first_name", "last_name", "email", "username")


class UserService:
    """Async user operations, always inside one company."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _ensure_unique(
        db: AsyncSession,
        *,
        email: Optional[str] = None,
        username: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        conditions = []
        if email:
            conditions.append(User.email == email)
        if username:
            conditions.append(User.username == username)
        if not conditions:
            return

        query = select(User.email, User.username).where(or_(*conditions))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        existing = (await db.execute(query)).first()
        if existing is None:
            return
        if email and existing.email == email:
            raise ConflictError("User with this email already exists", field="email")
        raise ConflictError("User with this username already exists", field="username")

    @staticmethod
    async def _ensure_role_in_company(
        db: AsyncSession,
        role_id: uuid.UUID,
        company_id: uuid.UUID,
    ) -> None:
        found = (
            await db.execute(
                select(Role.id).where(create_tenant_where(Role, Role.id == role_id, company_id))
            )
        ).first()
        if found is None:
            raise BadRequestException("Role does not belong to this company")

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch users")
    async def list_users(
        db: AsyncSession,
        params: PaginationParams,
        *,
        company_id: uuid.UUID,
        role_id: Optional[uuid.UUID] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(User).where(create_tenant_where(User, None, company_id))
        query = apply_filters(query, User, {"role_id": role_id, "is_active": is_active})
        return await paginate(
            db, query, params,
            model=User,
            schema=UserOut,
            search_columns=USER_SEARCH_COLUMNS,
        )

    @staticmethod
    @tenant_operation("fetch user")
    async def get_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
    ) -> User:
        return await get_tenant_record(
            db, User, user_id, company_id, "User",
            options=(selectinload(User.role),),
        )

    # ─────────────────────────────────────────────────────────────────
    # Own profile
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update_profile(db: AsyncSession, user: User, data: ProfileUpdate) -> User:
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()
        return user

    @staticmethod
    async def change_password(
        db: AsyncSession,
        user: User,
        data: ChangePasswordRequest,
    ) -> None:
        if not verify_password(data.current_password, user.password_hash):
            raise BadRequestException("Current password is incorrect")
        if data.current_password == data.new_password:
            raise BadRequestException("New password must differ from the current password")

        user.password_hash = hash_password(data.new_password)
        await db.flush()

        await create_audit_entry(
            db,
            action="change_password",
            entity_type="user",
            entity_id=user.id,
            company_id=user.company_id,
            user_id=user.id,
        )

    # ─────────────────────────────────────────────────────────────────
    # Administration
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("create user")
    async def create_user(
        db: AsyncSession,
        data: UserCreate,
        *,
        company_id: Optional[uuid.UUID],
        actor_id: Optional[uuid.UUID] = None,
    ) -> tuple[User, Optional[str]]:
        """Create a user. Returns (user, temporary_password or None)."""
        company_id = require_company_id(company_id, "user creation")
        await UserService._ensure_unique(db, email=data.email, username=data.username)
        if data.role_id is not None:
            await UserService._ensure_role_in_company(db, data.role_id, company_id)

        temporary_password = None
        password = data.password
        if password is None:
            temporary_password = secrets.token_urlsafe(12)
            password = temporary_password

        user = User(
            company_id=company_id,
            role_id=data.role_id,
            email=data.email,
            username=data.username,
            first_name=data.first_name,
            last_name=data.last_name,
            phone_number=data.phone_number,
            password_hash=hash_password(password),
        )
        db.add(user)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="user",
            entity_id=user.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude={"password"}),
        )
        return user, temporary_password

    @staticmethod
    @tenant_operation("update user")
    async def update_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
        *,
        company_id: uuid.UUID,
        actor_id: Optional[uuid.UUID] = None,
    ) -> User:
        user = await get_tenant_record(db, User, user_id, company_id, "User")
        changes = data.model_dump(exclude_unset=True)

        await UserService._ensure_unique(
            db,
            email=changes.get("email"),
            username=changes.get("username"),
            exclude_id=user.id,
        )
        if changes.get("role_id") is not None:
            await UserService._ensure_role_in_company(db, changes["role_id"], company_id)

        for field, value in changes.items():
            setattr(user, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="user",
            entity_id=user.id,
            company_id=company_id,
            user_id=actor_id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return user

    @staticmethod
    @tenant_operation("update user status")
    async def set_active(
        db: AsyncSession,
        user_id: uuid.UUID,
        is_active: Optional[bool] = None,
        *,
        company_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> User:
        """Set ``is_active``; when *is_active* is None the flag is toggled."""
        user = await get_tenant_record(db, User, user_id, company_id, "User")
        target = (not user.is_active) if is_active is None else is_active
        if user.id == actor_id and not target:
            raise BadRequestException("You cannot deactivate your own account")

        old_value = user.is_active
        user.is_active = target
        await db.flush()

        await create_audit_entry(
            db,
            action="activate" if target else "deactivate",
            entity_type="user",
            entity_id=user.id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"isActive": old_value},
            new_values={"isActive": target},
        )
        return user

    @staticmethod
    @tenant_operation("delete user")
    async def delete_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        company_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> None:
        user = await get_tenant_record(db, User, user_id, company_id, "User")
        if user.id == actor_id:
            raise BadRequestException("You cannot delete your own account")

        await db.delete(user)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="user",
            entity_id=user_id,
            company_id=company_id,
            user_id=actor_id,
            old_values={"email": user.email},
        )

    @staticmethod
    async def record_login(db: AsyncSession, user: User) -> None:
        user.last_login_at = datetime.now(timezone.utc)
        await db.flush()

    @staticmethod
    async def get_by_phone(db: AsyncSession, phone_number: str) -> User:
        result = await db.execute(
            select(User).where(User.phone_number == phone_number, User.is_active.is_(True))
        )
        user = result.scalars().first()
        if user is None:
            raise NotFoundException("User", message="No user found with this phone number")
        return user

