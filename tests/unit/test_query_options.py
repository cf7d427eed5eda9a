"""Unit tests for query options and per-entity column rules."""

import pytest

from docflow.application.dto import OrderBy, QueryOptions, SortDirection
from docflow.application.dto.record_fields import (
    DOCUMENT_SORTABLE,
    DOCUMENT_UPDATABLE,
    check_changes,
    resolve_order,
)
from docflow.domain.exceptions import ValidationError


def test_parse_order_terms() -> None:
    terms = QueryOptions.parse_order("created_at:desc, original_name")
    assert terms == [
        OrderBy("created_at", SortDirection.DESC),
        OrderBy("original_name", SortDirection.ASC),
    ]


def test_parse_order_empty() -> None:
    assert QueryOptions.parse_order(None) == []
    assert QueryOptions.parse_order("") == []
    assert QueryOptions.parse_order(" , ") == []


def test_parse_order_rejects_bad_direction() -> None:
    with pytest.raises(ValidationError, match="sort direction"):
        QueryOptions.parse_order("size:sideways")


def test_query_options_reject_negative_paging() -> None:
    with pytest.raises(ValidationError):
        QueryOptions(limit=-1)
    with pytest.raises(ValidationError):
        QueryOptions(offset=-5)


def test_resolve_order_defaults_to_newest_first_with_id_tiebreak() -> None:
    order = resolve_order(None, DOCUMENT_SORTABLE)
    assert order == [
        OrderBy("created_at", SortDirection.DESC),
        OrderBy("id", SortDirection.ASC),
    ]


def test_resolve_order_keeps_explicit_id() -> None:
    options = QueryOptions(order_by=[OrderBy("id", SortDirection.DESC)])
    assert resolve_order(options, DOCUMENT_SORTABLE) == [OrderBy("id", SortDirection.DESC)]


def test_resolve_order_rejects_unknown_column() -> None:
    options = QueryOptions(order_by=[OrderBy("owner_id; DROP TABLE documents")])
    with pytest.raises(ValidationError, match="sort"):
        resolve_order(options, DOCUMENT_SORTABLE)


def test_check_changes_accepts_known_fields() -> None:
    check_changes("document", {"status": "processed", "metadata": {}}, DOCUMENT_UPDATABLE)


def test_check_changes_rejects_empty_and_unknown() -> None:
    with pytest.raises(ValidationError):
        check_changes("document", {}, DOCUMENT_UPDATABLE)
    with pytest.raises(ValidationError, match="owner_id"):
        check_changes("document", {"owner_id": "someone-else"}, DOCUMENT_UPDATABLE)
