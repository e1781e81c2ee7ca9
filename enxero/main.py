"""Enxero — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.middleware import SlowAPIMiddleware

from enxero import __version__
from enxero.audit.router import router as audit_router
from enxero.auth.router import router as auth_router
from enxero.common.exceptions import register_exception_handlers
from enxero.common.logging import setup_logging
from enxero.common.rate_limit import limiter
from enxero.companies.router import router as companies_router
from enxero.config import settings
from enxero.database import Database
from enxero.employees.router import router as employees_router
from enxero.files.router import router as files_router
from enxero.forms.router import router as forms_router
from enxero.integrations.router import router as integrations_router
from enxero.leave.router import router as leave_router
from enxero.notifications.router import router as notifications_router
from enxero.otp.router import router as otp_router
from enxero.otp.sms import SmsSender, build_sms_sender
from enxero.payroll.router import router as payroll_router
from enxero.roles.router import router as roles_router
from enxero.system.router import router as system_router
from enxero.users.router import router as users_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("%s starting (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    yield
    await app.state.db.dispose()
    logger.info("Database connections closed")


def create_app(
    database: Optional[Database] = None,
    sms_sender: Optional[SmsSender] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    *database* and *sms_sender* default to ones built from settings; tests
    pass their own.
    """
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Multi-tenant HR and payroll API",
        version=__version__,
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.state.db = database or Database.from_settings(settings)
    app.state.sms_sender = sms_sender or build_sms_sender(settings)

    # Exception handlers (including 429 from slowapi)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get(f"{API_PREFIX}/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix=f"{API_PREFIX}/auth")
    app.include_router(users_router, prefix=f"{API_PREFIX}/users")
    app.include_router(roles_router, prefix=f"{API_PREFIX}/roles")
    app.include_router(companies_router, prefix=f"{API_PREFIX}/companies")
    app.include_router(employees_router, prefix=f"{API_PREFIX}/employees")
    app.include_router(forms_router, prefix=f"{API_PREFIX}/forms")
    app.include_router(integrations_router, prefix=f"{API_PREFIX}/integrations")
    app.include_router(leave_router, prefix=f"{API_PREFIX}/leave")
    app.include_router(notifications_router, prefix=f"{API_PREFIX}/notifications")
    app.include_router(audit_router, prefix=f"{API_PREFIX}/audit")
    app.include_router(system_router, prefix=f"{API_PREFIX}/system")
    app.include_router(payroll_router, prefix=f"{API_PREFIX}/payroll")
    app.include_router(files_router, prefix=f"{API_PREFIX}/files")
    app.include_router(otp_router, prefix=f"{API_PREFIX}/otp")

    return app


app = create_app()
