"""OTP service — issue, verify and maintain phone one-time passwords.

Lifecycle of one OTP row::

    PENDING ──verify ok──────────────▶ VERIFIED
       │ ├──past expires_at─────────▶ EXPIRED
       │ ├──attempts exhausted──────▶ FAILED
       └─┴──newer OTP for same phone─▶ CANCELLED

At most one PENDING OTP exists per (phone_number, type). The code is only
ever held in memory and in the SMS; the row stores a salted bcrypt hash.
"""

from __future__ import annotations

import logging
import re
import secrets
import uuid
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.security import pwd_context
from enxero.common.constants import OtpStatus, OtpType
from enxero.common.exceptions import BadRequestException
from enxero.config import settings
from enxero.otp.models import Otp
from enxero.otp.schemas import OtpIssuedOut
from enxero.otp.sms import SmsSender
from enxero.users.models import User
from enxero.users.service import UserService

logger = logging.getLogger(__name__)

E164_PATTERN = re.compile(r"\+[1-9]\d{1,14}")
OTP_CODE_MIN = 100000
OTP_CODE_MAX = 999999

STATS_TIMEFRAMES: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


# ── Pure helpers ────────────────────────────────────────────────────

def validate_phone_number(phone_number: str) -> str:
    if not E164_PATTERN.fullmatch(phone_number or ""):
        raise BadRequestException("Invalid phone number format. Use E.164 format (+1234567890)")
    return phone_number


def mask_phone_number(phone_number: str) -> str:
    """Keep the first 3 and last 2 characters, star the rest."""
    if len(phone_number) <= 4:
        return phone_number
    return phone_number[:3] + "*" * (len(phone_number) - 5) + phone_number[-2:]


def generate_otp_code() -> str:
    return str(secrets.randbelow(OTP_CODE_MAX - OTP_CODE_MIN + 1) + OTP_CODE_MIN)


def hash_otp_code(code: str, salt: str) -> str:
    return pwd_context.hash(code + salt)


def verify_otp_code(code: str, salt: str, code_hash: str) -> bool:
    return pwd_context.verify(code + salt, code_hash)


def generate_company_identifier(country_code: Optional[str], short_name: Optional[str]) -> str:
    """Return ``{COUNTRY}-{SHORT}-{6 HEX}``, e.g. ``US-ACME-3F9A1C``."""
    country = (country_code or "").upper()[:2] or "XX"
    short = re.sub(r"[^A-Z0-9]", "", (short_name or "").upper())[:4] or "COMP"
    return f"{country}-{short}-{secrets.token_hex(3).upper()}"


def _sms_text(code: str) -> str:
    return (
        f"Your {settings.APP_NAME} verification code is: {code}. "
        f"Valid for {settings.OTP_EXPIRY_MINUTES} minutes. Do not share this code."
    )


# ═════════════════════════════════════════════════════════════════════
# OtpService
# ═════════════════════════════════════════════════════════════════════


class OtpService:

    # ─────────────────────────────────────────────────────────────────
    # Issuance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _issue(
        db: AsyncSession,
        sms: SmsSender,
        phone_number: str,
        otp_type: OtpType,
        *,
        purpose: str,
        company_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> OtpIssuedOut:
        # Only one live OTP per phone + purpose
        await db.execute(
            update(Otp)
            .where(
                Otp.phone_number == phone_number,
                Otp.type == otp_type,
                Otp.status == OtpStatus.PENDING,
            )
            .values(status=OtpStatus.CANCELLED, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session="fetch")
        )

        code = generate_otp_code()
        salt = secrets.token_hex(16)
        otp = Otp(
            phone_number=phone_number,
            type=otp_type,
            purpose=purpose,
            code_hash=hash_otp_code(code, salt),
            salt=salt,
            status=OtpStatus.PENDING,
            attempts=0,
            max_attempts=settings.OTP_MAX_ATTEMPTS,
            expires_at=datetime.now(timezone.utc) + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
            company_id=company_id,
            user_id=user_id,
        )
        db.add(otp)
        await db.flush()

        if not settings.is_production:
            logger.debug("OTP %s for %s: %s", otp.id, mask_phone_number(phone_number), code)

        # Delivery is best-effort: the OTP stays issued even if the SMS fails
        try:
            result = await sms.send(phone_number, _sms_text(code))
        except Exception:
            logger.exception("SMS dispatch raised for OTP %s", otp.id)
        else:
            if not result.success:
                logger.warning("SMS dispatch failed for OTP %s: %s", otp.id, result.error)

        return OtpIssuedOut(
            otp_id=otp.id,
            expires_at=otp.expires_at,
            phone_number=mask_phone_number(phone_number),
        )

    @staticmethod
    async def generate_company_registration_otp(
        db: AsyncSession,
        sms: SmsSender,
        phone_number: str,
        company_name: Optional[str] = None,
    ) -> OtpIssuedOut:
        """Issue a registration code; the company name, when given, is kept in ``purpose``."""
        validate_phone_number(phone_number)
        purpose = "company_registration"
        if company_name:
            purpose = f"{purpose}:{company_name.strip()}"[:100]
        return await OtpService._issue(
            db, sms, phone_number, OtpType.COMPANY_REGISTRATION,
            purpose=purpose,
        )

    @staticmethod
    async def generate_user_login_otp(
        db: AsyncSession,
        sms: SmsSender,
        phone_number: str,
    ) -> OtpIssuedOut:
        validate_phone_number(phone_number)
        user = await UserService.get_by_phone(db, phone_number)
        return await OtpService._issue(
            db, sms, phone_number, OtpType.USER_LOGIN,
            purpose="user_login",
            company_id=user.company_id,
            user_id=user.id,
        )

    # ─────────────────────────────────────────────────────────────────
    # Verification
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def _fail(db: AsyncSession, message: str) -> None:
        """Persist the state change made so far, then reject.

        Committed before raising so the request rollback cannot undo it.
        """
        await db.commit()
        raise BadRequestException(message)

    @staticmethod
    async def verify_otp(
        db: AsyncSession,
        otp_id: uuid.UUID,
        phone_number: str,
        code: str,
        *,
        otp_type: Optional[OtpType] = None,
    ) -> Otp:
        query = select(Otp).where(
            Otp.id == otp_id,
            Otp.phone_number == phone_number,
            Otp.status == OtpStatus.PENDING,
        )
        if otp_type is not None:
            query = query.where(Otp.type == otp_type)
        otp = (await db.execute(query)).scalars().first()
        if otp is None:
            raise BadRequestException("Invalid or expired OTP")

        now = datetime.now(timezone.utc)
        if now > otp.expires_at:
            otp.status = OtpStatus.EXPIRED
            await OtpService._fail(db, "OTP has expired")

        if otp.attempts >= otp.max_attempts:
            otp.status = OtpStatus.FAILED
            await OtpService._fail(db, "Maximum verification attempts exceeded")

        otp.attempts += 1
        if not verify_otp_code(code, otp.salt, otp.code_hash):
            remaining = otp.max_attempts - otp.attempts
            if remaining <= 0:
                otp.status = OtpStatus.FAILED
                await OtpService._fail(db, "Maximum verification attempts exceeded")
            await OtpService._fail(db, f"Invalid OTP. {remaining} attempts remaining.")

        otp.status = OtpStatus.VERIFIED
        otp.verified_at = now

        if otp.type == OtpType.USER_LOGIN and otp.user_id is not None:
            user = await db.get(User, otp.user_id)
            if user is not None:
                user.phone_verified = True

        await db.flush()
        return otp

    # ─────────────────────────────────────────────────────────────────
    # Maintenance
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def cleanup_expired_otps(db: AsyncSession) -> int:
        """Flip stale PENDING OTPs to EXPIRED. Returns the number updated."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(Otp)
            .where(Otp.status == OtpStatus.PENDING, Otp.expires_at < now)
            .values(status=OtpStatus.EXPIRED, updated_at=now)
            .execution_options(synchronize_session="fetch")
        )
        count = result.rowcount or 0
        if count:
            logger.info("Expired %d stale OTPs", count)
        return count

    @staticmethod
    async def get_otp_stats(db: AsyncSession, timeframe: str = "24h") -> dict[str, dict[str, int]]:
        """Counts per type and status over the last *timeframe* (24h, 7d, 30d)."""
        if timeframe not in STATS_TIMEFRAMES:
            raise BadRequestException(
                f"Invalid timeframe. Use one of: {', '.join(STATS_TIMEFRAMES)}"
            )
        since = datetime.now(timezone.utc) - STATS_TIMEFRAMES[timeframe]
        rows = await db.execute(
            select(Otp.type, Otp.status, func.count())
            .where(Otp.created_at >= since)
            .group_by(Otp.type, Otp.status)
        )

        stats: dict[str, dict[str, int]] = defaultdict(dict)
        for otp_type, status, count in rows.all():
            stats[otp_type.value][status.value] = count
        return dict(stats)
