#!/usr/bin/env python3
"""Seed a company with an ADMIN role, an owner account and default leave types.

Usage:
    python scripts/seed_company.py --name "Acme Corp" --country US \\
        --email owner@acme.test --username owner --password 'S3cret!pass'
    python scripts/seed_company.py ... --create-tables   # SQLite / local dev only

Reads DATABASE_URL and the JWT secrets from the environment or .env.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from sqlalchemy import select

from enxero.auth.security import hash_password
from enxero.common.constants import ADMIN_ROLE_NAME, WILDCARD_PERMISSION, CompanyStatus
from enxero.companies.models import Company
from enxero.config import settings
from enxero.database import Database, atomic
from enxero.leave.models import LeaveType
from enxero.otp.service import generate_company_identifier
from enxero.roles.models import Role
from enxero.users.models import User

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger("seed_company")

DEFAULT_LEAVE_TYPES = [
    ("Annual Leave", 20, True),
    ("Sick Leave", 10, True),
    ("Unpaid Leave", 0, False),
]


async def seed(args: argparse.Namespace) -> int:
    database = Database.from_settings(settings)
    try:
        if args.create_tables:
            await database.create_all()

        async with database.session_factory() as db:
            existing = (
                await db.execute(select(User).where(User.email == args.email))
            ).scalar_one_or_none()
            if existing is not None:
                logger.error("User %s already exists (company %s)", args.email, existing.company_id)
                return 1

            async with atomic(db):
                company = Company(
                    name=args.name,
                    identifier=generate_company_identifier(args.country, args.short_name or args.name),
                    short_name=args.short_name,
                    country_code=args.country.upper(),
                    phone_number=args.phone,
                    email=args.email,
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

                db.add(User(
                    company_id=company.id,
                    role_id=role.id,
                    email=args.email,
                    username=args.username,
                    first_name=args.first_name,
                    last_name=args.last_name,
                    phone_number=args.phone,
                    password_hash=hash_password(args.password),
                ))
                for name, days, paid in DEFAULT_LEAVE_TYPES:
                    db.add(LeaveType(company_id=company.id, name=name, default_days=days, is_paid=paid))

            logger.info("Seeded company %s (%s)", company.name, company.identifier)
            logger.info("  Owner: %s / role %s", args.email, ADMIN_ROLE_NAME)
            logger.info("  Leave types: %s", ", ".join(n for n, _, _ in DEFAULT_LEAVE_TYPES))
    finally:
        await database.dispose()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Seed a company, its ADMIN role and owner account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--name", required=True, help="Company display name")
    parser.add_argument("--short-name", help="Short name used in the identifier")
    parser.add_argument("--country", default="US", help="ISO 3166 alpha-2 country code")
    parser.add_argument("--phone", help="Company / owner phone number (E.164)")
    parser.add_argument("--email", required=True, help="Owner email")
    parser.add_argument("--username", required=True, help="Owner username")
    parser.add_argument("--password", required=True, help="Owner password")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="User")
    parser.add_argument("--create-tables", action="store_true", help="Run create_all first")
    args = parser.parse_args()

    sys.exit(asyncio.run(seed(args)))


if __name__ == "__main__":
    main()
