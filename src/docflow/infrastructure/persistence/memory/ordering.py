"""ORDER BY / LIMIT / OFFSET over in-memory records.

Matches PostgreSQL defaults: NULLs last for ASC and first for DESC. Text
compares by code point, which is what ``COLLATE "C"`` gives in PostgreSQL.
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from docflow.application.dto import OrderBy, QueryOptions, SortDirection
from docflow.application.dto.record_fields import resolve_order

T = TypeVar("T")


def _null_last_key(column: str):
    def key(record: Any) -> tuple[bool, Any]:
        value = getattr(record, column)
        return (value is None, value)

    return key


def sort_records(records: Iterable[T], order: list[OrderBy]) -> list[T]:
    """Sort by each term, least significant first, relying on sort stability."""
    result = list(records)
    for term in reversed(order):
        result.sort(
            key=_null_last_key(term.column),
            reverse=term.direction is SortDirection.DESC,
        )
    return result


def apply_query(
    records: Iterable[T],
    options: QueryOptions | None,
    sortable: Mapping[str, bool],
) -> list[T]:
    """Validate, sort and page records the way the SQL backend would."""
    ordered = sort_records(records, resolve_order(options, sortable))
    offset = options.offset if options else 0
    limit = options.limit if options else None
    if limit is None:
        return ordered[offset:]
    return ordered[offset : offset + limit]
