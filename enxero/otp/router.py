"""OTP router — phone OTP issuance and verification, identifier preview, stats.

Issuance and verification are public; statistics and cleanup need ``admin``.
"""

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.dependencies import require_permission
from enxero.common.rate_limit import OTP_RATE_LIMIT, limiter
from enxero.common.schemas import ApiResponse
from enxero.database import get_db
from enxero.otp.schemas import (
    CompanyIdOut,
    CompanyIdRequest,
    CompanyOtpRequest,
    OtpIssuedOut,
    OtpVerifiedOut,
    OtpVerifyRequest,
    UserOtpRequest,
)
from enxero.otp.service import OtpService, generate_company_identifier, mask_phone_number
from enxero.otp.sms import SmsSender, get_sms_sender
from enxero.users.models import User

router = APIRouter(prefix="", tags=["otp"])


# ── POST /company/generate ──────────────────────────────────────────

@router.post("/company/generate", response_model=ApiResponse[OtpIssuedOut])
@limiter.limit(OTP_RATE_LIMIT)
async def generate_company_otp(
    request: Request,
    body: CompanyOtpRequest,
    db: AsyncSession = Depends(get_db),
    sms: SmsSender = Depends(get_sms_sender),
):
    issued = await OtpService.generate_company_registration_otp(
        db, sms, body.phone_number, company_name=body.company_name,
    )
    return ApiResponse(data=issued, message="OTP sent successfully")


# ── POST /user/generate ─────────────────────────────────────────────

@router.post("/user/generate", response_model=ApiResponse[OtpIssuedOut])
@limiter.limit(OTP_RATE_LIMIT)
async def generate_user_otp(
    request: Request,
    body: UserOtpRequest,
    db: AsyncSession = Depends(get_db),
    sms: SmsSender = Depends(get_sms_sender),
):
    issued = await OtpService.generate_user_login_otp(db, sms, body.phone_number)
    return ApiResponse(data=issued, message="OTP sent successfully")


# ── POST /verify ────────────────────────────────────────────────────

@router.post("/verify", response_model=ApiResponse[OtpVerifiedOut])
async def verify_otp(
    body: OtpVerifyRequest,
    db: AsyncSession = Depends(get_db),
):
    otp = await OtpService.verify_otp(db, body.otp_id, body.phone_number, body.code)
    return ApiResponse(
        data=OtpVerifiedOut(
            otp_id=otp.id,
            phone_number=mask_phone_number(otp.phone_number),
            type=otp.type.value,
            verified_at=otp.verified_at,
            company_id=otp.company_id,
            user_id=otp.user_id,
        ),
        message="OTP verified successfully",
    )


# ── POST /company/generate-id ───────────────────────────────────────

@router.post("/company/generate-id", response_model=ApiResponse[CompanyIdOut])
async def generate_company_id(body: CompanyIdRequest):
    identifier = generate_company_identifier(body.country_code, body.short_name)
    return ApiResponse(data=CompanyIdOut(identifier=identifier))


# ── Maintenance ─────────────────────────────────────────────────────

@router.get("/stats", response_model=ApiResponse[dict[str, dict[str, int]]])
async def otp_stats(
    timeframe: str = Query("24h", pattern="^(24h|7d|30d)$"),
    user: User = Depends(require_permission("admin")),
    db: AsyncSession = Depends(get_db),
):
    return ApiResponse(data=await OtpService.get_otp_stats(db, timeframe))


@router.post("/cleanup", response_model=ApiResponse[dict[str, int]])
async def cleanup_otps(
    user: User = Depends(require_permission("admin")),
    db: AsyncSession = Depends(get_db),
):
    count = await OtpService.cleanup_expired_otps(db)
    return ApiResponse(data={"expired": count})
