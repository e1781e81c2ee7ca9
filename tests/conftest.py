"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Settings are read at import time; configure them before any enxero import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-for-ci")
os.environ.setdefault("SMS_PROVIDER", "console")

import uuid
from datetime import date
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.auth.security import create_access_token, hash_password
from enxero.common.constants import ADMIN_ROLE_NAME, WILDCARD_PERMISSION, CompanyStatus
from enxero.common.rate_limit import limiter
from enxero.companies.models import Company
from enxero.config import settings
from enxero.database import Database
from enxero.employees.models import Employee
from enxero.leave.models import LeaveBalance, LeaveType
from enxero.main import create_app
from enxero.otp.sms import SmsResult
from enxero.roles.models import Role
from enxero.users.models import User

TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "Sup3r-secret!"

# bcrypt is slow; hash the shared test password once
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ── Database ────────────────────────────────────────────────────────

@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """A fresh in-memory database per test, schema created up front."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    limiter.reset()
    yield


@pytest.fixture(autouse=True)
def _upload_dir(tmp_path, monkeypatch):
    """Keep uploaded files inside the test's temp dir."""
    upload_path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_PATH", str(upload_path))
    return upload_path


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
def sms_sender() -> AsyncMock:
    sender = AsyncMock()
    sender.send.return_value = SmsResult(success=True, message_id="test")
    return sender


@pytest.fixture
def app(database, sms_sender):
    """Create a fresh app instance bound to the test database."""
    return create_app(database=database, sms_sender=sms_sender)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db(database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def make_company(
    db: AsyncSession,
    *,
    name: str = "Acme Corp",
    identifier: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> Company:
    company = Company(
        name=name,
        identifier=identifier or f"US-ACME-{uuid.uuid4().hex[:6].upper()}",
        short_name=name.split()[0],
        country_code="US",
        phone_number=phone_number,
        status=CompanyStatus.ACTIVE,
        settings={},
    )
    db.add(company)
    await db.commit()
    return company


async def make_role(
    db: AsyncSession,
    company: Company,
    *,
    name: str = ADMIN_ROLE_NAME,
    permissions: Optional[list[str]] = None,
) -> Role:
    role = Role(
        company_id=company.id,
        name=name,
        permissions=permissions if permissions is not None else [WILDCARD_PERMISSION],
    )
    db.add(role)
    await db.commit()
    return role


async def make_user(
    db: AsyncSession,
    company: Company,
    role: Optional[Role] = None,
    *,
    email: Optional[str] = None,
    username: Optional[str] = None,
    phone_number: Optional[str] = None,
    is_active: bool = True,
) -> User:
    suffix = uuid.uuid4().hex[:8]
    user = User(
        company_id=company.id,
        role_id=role.id if role else None,
        email=email or f"user.{suffix}@acme.io",
        username=username or f"user_{suffix}",
        first_name="Test",
        last_name="User",
        phone_number=phone_number,
        password_hash=_TEST_PASSWORD_HASH,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def make_employee(
    db: AsyncSession,
    company: Company,
    *,
    code: Optional[str] = None,
    email: Optional[str] = None,
    department: str = "Engineering",
    manager_id: Optional[uuid.UUID] = None,
) -> Employee:
    suffix = uuid.uuid4().hex[:6].upper()
    employee = Employee(
        company_id=company.id,
        employee_code=code or f"EMP-{suffix}",
        first_name="Jane",
        last_name="Doe",
        email=email or f"jane.{suffix.lower()}@acme.io",
        department=department,
        position="Engineer",
        hire_date=date(2024, 1, 15),
        manager_id=manager_id,
    )
    db.add(employee)
    await db.commit()
    return employee


async def make_leave_type(
    db: AsyncSession,
    company: Company,
    *,
    name: str = "Annual Leave",
    default_days: int = 10,
) -> LeaveType:
    leave_type = LeaveType(company_id=company.id, name=name, default_days=default_days)
    db.add(leave_type)
    await db.commit()
    return leave_type


async def make_balance(
    db: AsyncSession,
    employee: Employee,
    leave_type: LeaveType,
    *,
    total_days: int = 10,
    used_days: int = 0,
) -> LeaveBalance:
    balance = LeaveBalance(
        company_id=employee.company_id,
        employee_id=employee.id,
        type_id=leave_type.id,
        total_days=total_days,
        used_days=used_days,
        remaining_days=total_days - used_days,
    )
    db.add(balance)
    await db.commit()
    return balance


# ── Auth helpers ────────────────────────────────────────────────────

def headers_for(user: User) -> dict[str, str]:
    token, _ = create_access_token(user.id, user.company_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def company(db) -> Company:
    return await make_company(db)


@pytest.fixture
async def admin_role(db, company) -> Role:
    return await make_role(db, company)


@pytest.fixture
async def admin_user(db, company, admin_role) -> User:
    return await make_user(db, company, admin_role, email="admin@acme.io", username="admin")


@pytest.fixture
async def auth_headers(admin_user) -> dict[str, str]:
    """Bearer headers for an ADMIN (wildcard) user of ``company``."""
    return headers_for(admin_user)


@pytest.fixture
async def viewer_headers(db, company) -> dict[str, str]:
    """Bearer headers for a user whose role grants nothing."""
    role = await make_role(db, company, name="VIEWER", permissions=[])
    return headers_for(await make_user(db, company, role))


@pytest.fixture
async def other_company(db) -> Company:
    return await make_company(db, name="Globex Inc")


@pytest.fixture
async def other_headers(db, other_company) -> dict[str, str]:
    """Bearer headers for an ADMIN of ``other_company``."""
    role = await make_role(db, other_company)
    return headers_for(await make_user(db, other_company, role))
