"""Generic filtering, sorting, and text search utilities."""

from __future__ import annotations

import operator
from typing import Any, Callable, Optional, Sequence

from pydantic.alias_generators import to_snake
from sqlalchemy import Select, String, and_, cast, or_
from sqlalchemy.orm import ColumnProperty, InstrumentedAttribute

DEFAULT_SORT_COLUMN = "created_at"


# ── Sorting ─────────────────────────────────────────────────────────

def apply_sorting(
    query: Select,
    model: Any,
    sort_by: Optional[str],
    sort_order: str = "desc",
) -> Select:
    """
    Order by *sort_by* (camelCase or snake_case) in *sort_order*.

    Unknown columns fall back to ``created_at DESC``; the id is always
    appended as a tie-breaker so pages are stable.
    """
    col = _get_column(model, to_snake(sort_by)) if sort_by else None
    if col is None:
        col = _get_column(model, DEFAULT_SORT_COLUMN)
        sort_order = "desc"

    if col is not None:
        query = query.order_by(col.asc() if sort_order == "asc" else col.desc())

    pk = _get_column(model, "id")
    if pk is not None:
        query = query.order_by(pk.asc())
    return query


# ── Generic filtering ──────────────────────────────────────────────

# Key suffix -> comparison; keys without a suffix compare with ``==``.
_RANGE_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "__from": operator.ge,
    "__to": operator.le,
}


def apply_filters(
    query: Select,
    model: Any,
    filters: dict[str, Any],
) -> Select:
    """
    AND together one condition per non-``None`` entry of *filters*.

    ``created_at__from`` / ``created_at__to`` bound a column from below and
    above; any other key is an equality match on the attribute of that name.
    Keys naming no mapped column are ignored.
    """
    conditions = []
    for key, value in filters.items():
        if value is None:
            continue
        name, compare = key, operator.eq
        for suffix, op in _RANGE_OPERATORS.items():
            if key.endswith(suffix):
                name, compare = key.removesuffix(suffix), op
                break
        col = _get_column(model, name)
        if col is not None:
            conditions.append(compare(col, value))

    return query.where(and_(*conditions)) if conditions else query


# ── Text search ─────────────────────────────────────────────────────

def apply_search(
    query: Select,
    model: Any,
    search: Optional[str],
    columns: Sequence[str],
) -> Select:
    """Case-insensitive substring match across *columns* (OR-ed)."""
    if not search or not search.strip():
        return query

    term = f"%{search.strip()}%"
    like_conds = [
        cast(col, String).ilike(term)
        for col in (_get_column(model, name) for name in columns)
        if col is not None
    ]
    if not like_conds:
        return query
    return query.where(or_(*like_conds))


# ── Internal helper ─────────────────────────────────────────────────

def _get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Return a mapped column attribute by name, or None."""
    attr = getattr(model, name, None)
    if isinstance(attr, InstrumentedAttribute) and isinstance(attr.property, ColumnProperty):
        return attr
    return None
