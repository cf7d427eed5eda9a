"""Per-entity column rules shared by every entity store backend.

Both backends validate sort columns and update fields against the same tables
so that a query accepted by one backend is accepted by the other.
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from docflow.application.dto.query_options import (
    DEFAULT_ORDER,
    OrderBy,
    QueryOptions,
    SortDirection,
)
from docflow.domain.exceptions import ValidationError

# column -> is text (text columns compare by code point in every backend)
DOCUMENT_SORTABLE: dict[str, bool] = {
    "id": False,
    "original_name": True,
    "storage_key": True,
    "size": False,
    "status": True,
    "is_reference": False,
    "created_at": False,
    "updated_at": False,
}

COMPARISON_SORTABLE: dict[str, bool] = {
    "id": False,
    "status": True,
    "similarity_score": False,
    "processing_time_ms": False,
    "created_at": False,
    "updated_at": False,
}

DOCUMENT_UPDATABLE = frozenset(
    {
        "storage_key",
        "original_name",
        "storage_url",
        "size",
        "status",
        "extracted_text",
        "is_reference",
        "metadata",
    }
)

COMPARISON_UPDATABLE = frozenset(
    {
        "status",
        "summary",
        "similarity_score",
        "key_differences",
        "suggestions",
        "result_url",
        "error_message",
        "processing_time_ms",
    }
)


def resolve_order(options: QueryOptions | None, sortable: Mapping[str, bool]) -> list[OrderBy]:
    """Validate sort columns and append the id tie-breaker."""
    terms = list(options.order_by) if options and options.order_by else list(DEFAULT_ORDER)
    for term in terms:
        if term.column not in sortable:
            raise ValidationError(f"Cannot sort by column: {term.column}")
    if not any(t.column == "id" for t in terms):
        terms.append(OrderBy("id", SortDirection.ASC))
    return terms


def check_changes(
    entity: str,
    changes: Mapping[str, Any],
    allowed: frozenset[str],
    status_type: type[StrEnum] | None = None,
) -> dict[str, Any]:
    """Validate an update payload before anything is applied.

    Unknown or empty payloads and unknown status values raise
    ``ValidationError``. Returns the change set with ``status`` coerced to
    ``status_type``.
    """
    if not changes:
        raise ValidationError(f"No fields to update for {entity}")
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(f"Cannot update {entity} fields: {', '.join(unknown)}")
    checked = dict(changes)
    if status_type is not None and "status" in checked:
        try:
            checked["status"] = status_type(checked["status"])
        except ValueError:
            raise ValidationError(
                f"Invalid {entity} status: {checked['status']!r}",
                operation="update",
                entity=entity,
            ) from None
    return checked
