"""Auth dependencies — JWT validation, permission enforcement."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from enxero.auth.security import decode_token, ensure_token_current
from enxero.common.exceptions import ForbiddenException, UnauthorizedException
from enxero.database import get_db
from enxero.users.models import User


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the access token and return the active user, role loaded."""
    payload = decode_token(_extract_bearer(request))

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException("Invalid token")

    result = await db.execute(
        select(User)
        .where(User.id == user_id, User.is_active.is_(True))
        .options(selectinload(User.role)),
    )
    user = result.scalars().first()
    if user is None:
        raise UnauthorizedException("User account is inactive or not found")
    ensure_token_current(payload, user.token_version)

    request.state.user_id = user.id
    request.state.company_id = user.company_id
    return user


# ── Permission-based dependency ─────────────────────────────────────

def user_has_permissions(user: User, *permissions: str) -> bool:
    if user.role is None or not user.role.is_active:
        return False
    return all(user.role.grants(p) for p in permissions)


def require_permission(*permissions: str) -> Callable:
    """Return a FastAPI dependency requiring *every* listed permission."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if not user_has_permissions(user, *permissions):
            raise ForbiddenException("Insufficient permissions")
        return user

    return _check
