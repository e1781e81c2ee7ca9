"""Company service — tenant CRUD, members, settings and phone-OTP registration."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.audit.service import create_audit_entry
from enxero.auth.security import hash_password
from enxero.common.constants import (
    ADMIN_ROLE_NAME,
    WILDCARD_PERMISSION,
    CompanyStatus,
    OtpStatus,
    OtpType,
)
from enxero.common.exceptions import BadRequestException, ConflictError, NotFoundException
from enxero.common.filters import apply_filters
from enxero.common.pagination import PaginatedResponse, PaginationParams, paginate
from enxero.common.tenancy import (
    create_tenant_where,
    execute_tenant_operation,
    tenant_operation,
)
from enxero.companies.models import Company
from enxero.companies.schemas import (
    CompanyCreate,
    CompanyInvite,
    CompanyOut,
    CompanyUpdate,
    RegistrationComplete,
    RegistrationStatusOut,
)
from enxero.database import atomic
from enxero.employees.models import Employee
from enxero.otp.models import Otp
from enxero.otp.schemas import OtpIssuedOut
from enxero.otp.service import OtpService, generate_company_identifier, validate_phone_number
from enxero.otp.sms import SmsSender
from enxero.roles.models import Role
from enxero.users.models import User
from enxero.users.schemas import UserCreate, UserOut
from enxero.users.service import USER_SEARCH_COLUMNS, UserService

# Platform operators may act on any company; everyone else only on their own.
# The role must list it explicitly: a company ADMIN's "*" does not cross tenants.
PLATFORM_PERMISSION = "admin"


def is_platform_operator(user: User) -> bool:
    role = user.role
    return role is not None and role.is_active and PLATFORM_PERMISSION in (role.permissions or [])


class CompanyService:

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _get_accessible(db: AsyncSession, company_id: uuid.UUID, user: User) -> Company:
        """Load a company the caller may see; any other company is a 404."""
        if company_id != user.company_id and not is_platform_operator(user):
            raise NotFoundException("Company", company_id)
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundException("Company", company_id)
        return company

    @staticmethod
    async def _unique_identifier(db: AsyncSession, country_code: Optional[str], short_name: Optional[str]) -> str:
        while True:
            identifier = generate_company_identifier(country_code, short_name)
            taken = (
                await db.execute(select(Company.id).where(Company.identifier == identifier))
            ).first()
            if taken is None:
                return identifier

    @staticmethod
    async def _ensure_phone_free(db: AsyncSession, phone_number: str, exclude_id: Optional[uuid.UUID] = None) -> None:
        query = select(Company.id).where(Company.phone_number == phone_number)
        if exclude_id is not None:
            query = query.where(Company.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError("A company with this phone number already exists", field="phoneNumber")

    # ─────────────────────────────────────────────────────────────────
    # CRUD
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch companies")
    async def list_companies(
        db: AsyncSession,
        params: PaginationParams,
        user: User,
        *,
        status: Optional[CompanyStatus] = None,
        is_active: Optional[bool] = None,
    ) -> PaginatedResponse:
        query = select(Company)
        if not is_platform_operator(user):
            query = query.where(Company.id == user.company_id)
        query = apply_filters(query, Company, {"status": status, "is_active": is_active})
        return await paginate(
            db, query, params,
            model=Company,
            schema=CompanyOut,
            search_columns=("name", "identifier"),
        )

    @staticmethod
    @tenant_operation("fetch company")
    async def get_company(db: AsyncSession, company_id: uuid.UUID, user: User) -> Company:
        return await CompanyService._get_accessible(db, company_id, user)

    @staticmethod
    @tenant_operation("create company")
    async def create_company(db: AsyncSession, data: CompanyCreate, user: User) -> Company:
        if data.identifier:
            taken = (
                await db.execute(select(Company.id).where(Company.identifier == data.identifier))
            ).first()
            if taken is not None:
                raise ConflictError("A company with this identifier already exists", field="identifier")
        if data.phone_number:
            validate_phone_number(data.phone_number)
            await CompanyService._ensure_phone_free(db, data.phone_number)

        values = data.model_dump(exclude={"identifier"})
        identifier = data.identifier or await CompanyService._unique_identifier(
            db, data.country_code, data.short_name or data.name,
        )
        company = Company(identifier=identifier, status=CompanyStatus.ACTIVE, **values)
        db.add(company)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="company",
            entity_id=company.id,
            company_id=company.id,
            user_id=user.id,
            new_values=data.model_dump(mode="json"),
        )
        return company

    @staticmethod
    @tenant_operation("update company")
    async def update_company(
        db: AsyncSession,
        company_id: uuid.UUID,
        data: CompanyUpdate,
        user: User,
    ) -> Company:
        company = await CompanyService._get_accessible(db, company_id, user)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("phone_number"):
            validate_phone_number(changes["phone_number"])
            await CompanyService._ensure_phone_free(db, changes["phone_number"], exclude_id=company.id)

        for field, value in changes.items():
            setattr(company, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="company",
            entity_id=company.id,
            company_id=company.id,
            user_id=user.id,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return company

    @staticmethod
    @tenant_operation("delete company")
    async def delete_company(db: AsyncSession, company_id: uuid.UUID, user: User) -> None:
        company = await CompanyService._get_accessible(db, company_id, user)

        users = (
            await db.execute(select(func.count()).select_from(User).where(User.company_id == company.id))
        ).scalar_one()
        employees = (
            await db.execute(
                select(func.count()).select_from(Employee).where(Employee.company_id == company.id)
            )
        ).scalar_one()
        if users or employees:
            raise BadRequestException(
                "Cannot delete company with existing users or employees",
                details={"users": users, "employees": employees},
            )

        await db.delete(company)
        await db.flush()

    # ─────────────────────────────────────────────────────────────────
    # Members / invitations / settings
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    @tenant_operation("fetch company members")
    async def list_members(
        db: AsyncSession,
        company_id: uuid.UUID,
        params: PaginationParams,
        user: User,
    ) -> PaginatedResponse:
        company = await CompanyService._get_accessible(db, company_id, user)
        query = select(User).where(create_tenant_where(User, None, company.id))
        return await paginate(
            db, query, params,
            model=User,
            schema=UserOut,
            search_columns=USER_SEARCH_COLUMNS,
        )

    @staticmethod
    async def invite_user(
        db: AsyncSession,
        company_id: uuid.UUID,
        data: CompanyInvite,
        user: User,
    ) -> tuple[User, Optional[str]]:
        company = await CompanyService._get_accessible(db, company_id, user)
        username = data.username or data.email.split("@", 1)[0]
        return await UserService.create_user(
            db,
            UserCreate(
                email=data.email,
                username=username,
                first_name=data.first_name,
                last_name=data.last_name,
                role_id=data.role_id,
            ),
            company_id=company.id,
            actor_id=user.id,
        )

    @staticmethod
    @tenant_operation("fetch company settings")
    async def get_settings(db: AsyncSession, company_id: uuid.UUID, user: User) -> dict:
        company = await CompanyService._get_accessible(db, company_id, user)
        return dict(company.settings or {})

    @staticmethod
    @tenant_operation("update company settings")
    async def update_settings(
        db: AsyncSession,
        company_id: uuid.UUID,
        new_settings: dict,
        user: User,
    ) -> dict:
        """Shallow-merge *new_settings* into the stored settings."""
        company = await CompanyService._get_accessible(db, company_id, user)
        old_settings = dict(company.settings or {})
        company.settings = {**old_settings, **new_settings}
        await db.flush()

        await create_audit_entry(
            db,
            action="update_settings",
            entity_type="company",
            entity_id=company.id,
            company_id=company.id,
            user_id=user.id,
            old_values=old_settings,
            new_values=company.settings,
        )
        return company.settings

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def initiate_registration(
        db: AsyncSession,
        sms: SmsSender,
        phone_number: str,
        company_name: Optional[str] = None,
    ) -> OtpIssuedOut:
        validate_phone_number(phone_number)
        await CompanyService._ensure_phone_free(db, phone_number)
        return await OtpService.generate_company_registration_otp(
            db, sms, phone_number, company_name=company_name,
        )

    @staticmethod
    async def complete_registration(
        db: AsyncSession,
        data: RegistrationComplete,
    ) -> tuple[Company, User]:
        """Verify the registration OTP, then create company, ADMIN role and owner.

        The three inserts are one atomic unit.
        """
        await CompanyService._ensure_phone_free(db, data.phone_number)
        await UserService._ensure_unique(db, email=data.email, username=data.username)

        otp = await OtpService.verify_otp(
            db, data.otp_id, data.phone_number, data.code,
            otp_type=OtpType.COMPANY_REGISTRATION,
        )

        async def _create() -> tuple[Company, User]:
            async with atomic(db):
                identifier = await CompanyService._unique_identifier(
                    db, data.country_code, data.short_name or data.company_name,
                )
                company = Company(
                    name=data.company_name,
                    identifier=identifier,
                    full_name=data.full_name,
                    short_name=data.short_name,
                    country_code=data.country_code.upper(),
                    phone_number=data.phone_number,
                    email=data.email,
                    city=data.city,
                    status=CompanyStatus.ACTIVE,
                    settings={},
                )
                db.add(company)
                await db.flush()

                role = Role(
                    company_id=company.id,
                    name=ADMIN_ROLE_NAME,
                    description="Company administrator",
                    permissions=[WILDCARD_PERMISSION],
                )
                db.add(role)
                await db.flush()

                owner = User(
                    company_id=company.id,
                    role_id=role.id,
                    email=data.email,
                    username=data.username,
                    first_name=data.first_name,
                    last_name=data.last_name,
                    phone_number=data.phone_number,
                    phone_verified=True,
                    password_hash=hash_password(data.password),
                )
                db.add(owner)
                await db.flush()

                otp.company_id = company.id
                otp.user_id = owner.id

                await create_audit_entry(
                    db,
                    action="register",
                    entity_type="company",
                    entity_id=company.id,
                    company_id=company.id,
                    user_id=owner.id,
                    new_values={"name": company.name, "identifier": company.identifier},
                )
            return company, owner

        return await execute_tenant_operation(_create, "register company")

    @staticmethod
    @tenant_operation("fetch registration status")
    async def get_registration_status(db: AsyncSession, company_id: uuid.UUID) -> RegistrationStatusOut:
        company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundException("Company", company_id)

        verified = (
            await db.execute(
                select(Otp.id).where(
                    Otp.company_id == company.id,
                    Otp.type == OtpType.COMPANY_REGISTRATION,
                    Otp.status == OtpStatus.VERIFIED,
                )
            )
        ).first()
        return RegistrationStatusOut(
            company_id=company.id,
            identifier=company.identifier,
            status=company.status,
            is_active=company.is_active,
            phone_verified=verified is not None,
        )
