"""Generic pagination utilities for SQLAlchemy async queries."""

from __future__ import annotations

import enum
import math
from typing import Any, Generic, Optional, Sequence, TypeVar

from fastapi import Query
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from enxero.common.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from enxero.common.filters import apply_search, apply_sorting
from enxero.common.schemas import CamelModel

T = TypeVar("T")


class SortOrder(str, enum.Enum):
    asc = "asc"
    desc = "desc"


# ── FastAPI dependency ──────────────────────────────────────────────

class PaginationParams:
    """Inject via ``Depends(PaginationParams)`` on any list endpoint."""

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number (1-indexed)"),
        limit: int = Query(
            default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE,
            description=f"Items per page (max {MAX_PAGE_SIZE})",
        ),
        search: Optional[str] = Query(default=None, description="Case-insensitive text search"),
        sort_by: Optional[str] = Query(default=None, alias="sortBy"),
        sort_order: SortOrder = Query(default=SortOrder.desc, alias="sortOrder"),
    ) -> None:
        self.page = page
        self.limit = limit
        self.search = search
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ── Pydantic response models ───────────────────────────────────────

class PaginationMeta(CamelModel):
    """Metadata block embedded in every paginated response."""

    total: int
    page: int
    limit: int
    total_pages: int


class PaginatedResponse(CamelModel, Generic[T]):
    """Standard envelope: ``{"status": "success", "data": [...], "meta": {...}}``."""

    status: str = "success"
    data: list[T]
    meta: PaginationMeta


def create_pagination_response(
    items: Sequence[Any],
    total: int,
    page: int,
    limit: int,
) -> PaginatedResponse:
    """Wrap one page of items with ``totalPages = ceil(total / limit)``."""
    return PaginatedResponse(
        data=list(items),
        meta=PaginationMeta(
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )


# ── SQLAlchemy helper ───────────────────────────────────────────────

async def paginate(
    session: AsyncSession,
    query: Select,
    params: PaginationParams,
    *,
    model: Any,
    schema: Optional[type[CamelModel]] = None,
    search_columns: Sequence[str] = (),
    options: Sequence[Any] = (),
) -> PaginatedResponse:
    """
    Apply search + sorting from *params* to *query*, count the matches and
    return one page wrapped in a ``PaginatedResponse``.

    Rows are converted with ``schema.model_validate`` when *schema* is given.
    Loader *options* apply to the page query only, never to the count.
    """
    query = apply_search(query, model, params.search, search_columns)

    # ── total count ─────────────────────────────────────────────────
    count_q = select(func.count()).select_from(query.order_by(None).subquery())
    total: int = (await session.execute(count_q)).scalar_one()

    # ── paginated rows ──────────────────────────────────────────────
    query = apply_sorting(query, model, params.sort_by, params.sort_order.value)
    if options:
        query = query.options(*options)
    rows = (
        await session.execute(query.offset(params.offset).limit(params.limit))
    ).scalars().all()

    items = [schema.model_validate(row) for row in rows] if schema else rows
    return create_pagination_response(items, total, params.page, params.limit)
