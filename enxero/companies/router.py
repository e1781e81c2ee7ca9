"""Companies router — tenant CRUD, members, settings, and OTP registration.

Registration endpoints are public; everything else requires a bearer token.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import get_current_user, require_permission
from enxero.auth.security import create_access_token, create_refresh_token
from enxero.common.constants import CompanyStatus
from enxero.common.pagination import PaginatedResponse, PaginationParams
from enxero.common.rate_limit import OTP_RATE_LIMIT, limiter
from enxero.common.schemas import ApiResponse, MessageResponse
from enxero.companies.schemas import (
    CompanyCreate,
    CompanyInvite,
    CompanyOut,
    CompanySettingsOut,
    CompanySettingsUpdate,
    CompanyUpdate,
    InvitationOut,
    RegistrationComplete,
    RegistrationInitiate,
    RegistrationOut,
    RegistrationStatusOut,
)
from enxero.companies.service import CompanyService
from enxero.database import get_db
from enxero.otp.schemas import CompanyIdOut, CompanyIdRequest, OtpIssuedOut
from enxero.otp.service import generate_company_identifier
from enxero.otp.sms import SmsSender, get_sms_sender
from enxero.users.models import User
from enxero.users.schemas import UserCreatedOut, UserOut

router = APIRouter(prefix="", tags=["companies"])


# ═════════════════════════════════════════════════════════════════════
# Registration (public)
# ═════════════════════════════════════════════════════════════════════


@router.post("/register/initiate", response_model=ApiResponse[OtpIssuedOut])
@limiter.limit(OTP_RATE_LIMIT)
async def initiate_registration(
    request: Request,
    body: RegistrationInitiate,
    db: AsyncSession = Depends(get_db),
    sms: SmsSender = Depends(get_sms_sender),
):
    """Send a registration OTP to the company's phone number."""
    issued = await CompanyService.initiate_registration(
        db, sms, body.phone_number, company_name=body.company_name,
    )
    return ApiResponse(data=issued, message="Verification code sent")


@router.post("/register/complete", response_model=ApiResponse[RegistrationOut], status_code=201)
async def complete_registration(
    body: RegistrationComplete,
    db: AsyncSession = Depends(get_db),
):
    """Verify the OTP and create the company with its ADMIN role and owner."""
    company, owner = await CompanyService.complete_registration(db, body)
    access_token, expires_in = create_access_token(owner.id, company.id)
    return ApiResponse(
        data=RegistrationOut(
            company=CompanyOut.model_validate(company),
            user=UserOut.model_validate(owner),
            access_token=access_token,
            refresh_token=create_refresh_token(owner.id),
            expires_in=expires_in,
        ),
        message="Company registered successfully",
    )


@router.post("/generate-id", response_model=ApiResponse[CompanyIdOut])
async def generate_company_id(body: CompanyIdRequest):
    identifier = generate_company_identifier(body.country_code, body.short_name)
    return ApiResponse(data=CompanyIdOut(identifier=identifier))


@router.get("/{company_id}/registration-status", response_model=ApiResponse[RegistrationStatusOut])
async def registration_status(
    company_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await CompanyService.get_registration_status(db, company_id))


# ═════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════


@router.get("", response_model=PaginatedResponse[CompanyOut])
async def list_companies(
    params: PaginationParams = Depends(),
    status: Optional[CompanyStatus] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.list_companies(db, params, user, status=status, is_active=is_active)


@router.get("/{company_id}", response_model=ApiResponse[CompanyOut])
async def get_company(
    company_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService.get_company(db, company_id, user)
    return ApiResponse(data=CompanyOut.model_validate(company))


@router.post("", response_model=ApiResponse[CompanyOut], status_code=201)
async def create_company(
    body: CompanyCreate,
    user: User = Depends(require_permission("admin")),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService.create_company(db, body, user)
    return ApiResponse(data=CompanyOut.model_validate(company), message="Company created")


@router.put("/{company_id}", response_model=ApiResponse[CompanyOut])
async def update_company(
    company_id: uuid.UUID,
    body: CompanyUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    company = await CompanyService.update_company(db, company_id, body, user)
    return ApiResponse(data=CompanyOut.model_validate(company), message="Company updated")


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete_company(
    company_id: uuid.UUID,
    user: User = Depends(require_permission("admin")),
    db: AsyncSession = Depends(get_db),
):
    await CompanyService.delete_company(db, company_id, user)
    return MessageResponse(message="Company deleted")


# ═════════════════════════════════════════════════════════════════════
# Members / settings
# ═════════════════════════════════════════════════════════════════════


@router.post("/{company_id}/invite", response_model=ApiResponse[InvitationOut], status_code=201)
async def invite_user(
    company_id: uuid.UUID,
    body: CompanyInvite,
    user: User = Depends(require_permission("write:users")),
    db: AsyncSession = Depends(get_db),
):
    invited, temporary_password = await CompanyService.invite_user(db, company_id, body, user)
    out = UserCreatedOut.model_validate(invited)
    out.temporary_password = temporary_password
    return ApiResponse(data=InvitationOut(company_id=company_id, user=out), message="User invited")


@router.get("/{company_id}/members", response_model=PaginatedResponse[UserOut])
async def list_members(
    company_id: uuid.UUID,
    params: PaginationParams = Depends(),
    user: User = Depends(require_permission("read:users")),
    db: AsyncSession = Depends(get_db),
):
    return await CompanyService.list_members(db, company_id, params, user)


@router.get("/{company_id}/settings", response_model=ApiResponse[CompanySettingsOut])
async def get_settings(
    company_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    settings = await CompanyService.get_settings(db, company_id, user)
    return ApiResponse(data=CompanySettingsOut(company_id=company_id, settings=settings))


@router.put("/{company_id}/settings", response_model=ApiResponse[CompanySettingsOut])
async def update_settings(
    company_id: uuid.UUID,
    body: CompanySettingsUpdate,
    user: User = Depends(require_permission("write:all")),
    db: AsyncSession = Depends(get_db),
):
    settings = await CompanyService.update_settings(db, company_id, body.settings, user)
    return ApiResponse(
        data=CompanySettingsOut(company_id=company_id, settings=settings),
        message="Settings updated",
    )
