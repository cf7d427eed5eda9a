"""ORDER BY / LIMIT / OFFSET / SET SQL fragments.

Column names come only from the per-entity whitelists, never from callers
directly, so they are safe to interpolate.
"""

from collections.abc import Mapping
from enum import Enum

from psycopg.types.json import Jsonb

from docflow.application.dto import OrderBy, QueryOptions
from docflow.application.dto.record_fields import resolve_order


def build_order_clause(order: list[OrderBy], sortable: Mapping[str, bool]) -> str:
    """Render ORDER BY. Text columns use the C collation (code point order)."""
    terms = []
    for term in order:
        column = term.column
        expr = f'{column} COLLATE "C"' if sortable[column] else column
        terms.append(f"{expr} {term.direction.value}")
    return "ORDER BY " + ", ".join(terms)


def build_query_suffix(
    options: QueryOptions | None, sortable: Mapping[str, bool]
) -> tuple[str, list[object]]:
    """ORDER BY plus optional LIMIT / OFFSET, with their parameters."""
    sql = build_order_clause(resolve_order(options, sortable), sortable)
    params: list[object] = []
    if options is not None and options.limit is not None:
        sql += " LIMIT %s"
        params.append(options.limit)
    if options is not None and options.offset:
        sql += " OFFSET %s"
        params.append(options.offset)
    return sql, params


def build_set_clause(
    changes: Mapping[str, object], json_fields: frozenset[str] = frozenset()
) -> tuple[str, list[object]]:
    """``col = %s, ...`` for a validated change set."""
    parts = []
    params: list[object] = []
    for name, value in changes.items():
        parts.append(f"{name} = %s")
        if name in json_fields:
            value = Jsonb(value)
        elif isinstance(value, Enum):
            value = value.value
        params.append(value)
    return ", ".join(parts), params
