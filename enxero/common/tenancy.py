"""Tenant-scoping helpers shared by every domain service.

Each helper is a free function; services call them directly:

* ``require_company_id``        — a tenant id is mandatory for the operation
* ``create_tenant_where``       — AND the tenant predicate into a filter
* ``validate_tenant_access``    — record exists *and* belongs to the tenant
* ``execute_tenant_operation``  — uniform error translation around a call
* ``create_pagination_response``— the ``{data, meta}`` envelope
"""

from __future__ import annotations

import functools
import logging
import uuid
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar, Union

from sqlalchemy import ColumnElement, and_, select
from sqlalchemy.exc import IntegrityError, NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.common.exceptions import (
    AppException,
    BadRequestException,
    ConflictError,
    InternalServerException,
    NotFoundException,
)
from enxero.common.pagination import create_pagination_response

logger = logging.getLogger(__name__)

R = TypeVar("R")

FilterArg = Union[ColumnElement[bool], Sequence[ColumnElement[bool]], None]

_UNIQUE_MARKERS = ("unique", "duplicate key")

__all__ = [
    "create_pagination_response",
    "create_tenant_where",
    "execute_tenant_operation",
    "get_tenant_record",
    "require_company_id",
    "tenant_operation",
    "validate_tenant_access",
]


def require_company_id(candidate: Optional[uuid.UUID], operation_label: str) -> uuid.UUID:
    """Return *candidate*, or raise 400 when no tenant id was supplied."""
    if not candidate:
        raise BadRequestException(f"Company ID is required for {operation_label}")
    return candidate


def create_tenant_where(
    model: Any,
    base_filter: FilterArg,
    company_id: uuid.UUID,
) -> ColumnElement[bool]:
    """Return ``model.company_id == company_id AND <base_filter>``.

    *base_filter* may be a single clause, a sequence of clauses or None.
    A new expression is built; the caller's clauses are not modified.
    """
    if base_filter is None:
        criteria: list[ColumnElement[bool]] = []
    elif isinstance(base_filter, (list, tuple)):
        criteria = list(base_filter)
    else:
        criteria = [base_filter]
    return and_(model.company_id == company_id, *criteria)


async def validate_tenant_access(
    db: AsyncSession,
    model: Any,
    record_id: uuid.UUID,
    company_id: uuid.UUID,
    display_name: str,
) -> None:
    """Raise 404 when the record is missing or owned by another tenant.

    A foreign-tenant record is reported exactly like a missing one so its
    existence does not leak.
    """
    row = (
        await db.execute(select(model.company_id).where(model.id == record_id))
    ).first()
    if row is None or row.company_id != company_id:
        raise NotFoundException(display_name, record_id)


async def get_tenant_record(
    db: AsyncSession,
    model: Any,
    record_id: uuid.UUID,
    company_id: uuid.UUID,
    display_name: str,
    *,
    options: Sequence[Any] = (),
) -> Any:
    """Validate tenant access, then load the full record."""
    await validate_tenant_access(db, model, record_id, company_id, display_name)
    query = select(model).where(create_tenant_where(model, model.id == record_id, company_id))
    if options:
        query = query.options(*options)
    return (await db.execute(query)).scalars().one()


def _is_unique_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    return any(marker in text for marker in _UNIQUE_MARKERS)


async def execute_tenant_operation(
    action: Callable[[], Awaitable[R]],
    operation_label: str,
    company_id: Optional[uuid.UUID] = None,
) -> R:
    """Await *action*, translating unclassified failures.

    * ``AppException``            → re-raised unchanged
    * unique ``IntegrityError``   → 409
    * other ``IntegrityError``    → 400
    * ``NoResultFound``           → 404
    * anything else               → logged, then 500 ``Failed to <label>``
    """
    try:
        return await action()
    except AppException:
        raise
    except IntegrityError as exc:
        if _is_unique_violation(exc):
            raise ConflictError(f"Failed to {operation_label}: resource already exists") from exc
        raise BadRequestException(f"Failed to {operation_label}: invalid reference") from exc
    except NoResultFound as exc:
        raise NotFoundException("Resource") from exc
    except Exception as exc:
        logger.exception(
            "Tenant operation failed: %s",
            operation_label,
            extra={"operation": operation_label, "company_id": company_id},
        )
        raise InternalServerException(f"Failed to {operation_label}") from exc


def tenant_operation(operation_label: str) -> Callable:
    """Decorator form of :func:`execute_tenant_operation` for service methods.

    The tenant id for diagnostics is read from a ``company_id`` keyword
    argument when the wrapped call has one.
    """

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            return await execute_tenant_operation(
                lambda: func(*args, **kwargs),
                operation_label,
                kwargs.get("company_id"),
            )

        return wrapper

    return decorator
