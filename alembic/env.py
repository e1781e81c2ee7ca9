"""Alembic environment: runs migrations against ``DATABASE_URL`` with asyncpg."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from enxero.config import settings
from enxero.database import Base

# Model modules register their tables on Base.metadata
from enxero.audit import models as _audit  # noqa: F401
from enxero.companies import models as _companies  # noqa: F401
from enxero.employees import models as _employees  # noqa: F401
from enxero.files import models as _files  # noqa: F401
from enxero.forms import models as _forms  # noqa: F401
from enxero.integrations import models as _integrations  # noqa: F401
from enxero.leave import models as _leave  # noqa: F401
from enxero.notifications import models as _notifications  # noqa: F401
from enxero.otp import models as _otp  # noqa: F401
from enxero.payroll import models as _payroll  # noqa: F401
from enxero.roles import models as _roles  # noqa: F401
from enxero.system import models as _system  # noqa: F401
from enxero.users import models as _users  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(settings.DATABASE_URL)
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
