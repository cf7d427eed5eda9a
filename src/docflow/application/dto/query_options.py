"""Ordering and pagination options for list queries."""

from dataclasses import dataclass, field
from enum import StrEnum

from docflow.domain.exceptions import ValidationError


class SortDirection(StrEnum):
    """SQL sort direction."""

    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class OrderBy:
    """One ORDER BY term."""

    column: str
    direction: SortDirection = SortDirection.ASC


@dataclass
class QueryOptions:
    """ORDER BY / LIMIT / OFFSET for find_by_user queries.

    An empty ``order_by`` means newest first. Every backend appends ``id ASC``
    as the final tie-breaker so results are deterministic.
    """

    order_by: list[OrderBy] = field(default_factory=list)
    limit: int | None = None
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValidationError("limit must be >= 0")
        if self.offset < 0:
            raise ValidationError("offset must be >= 0")

    @classmethod
    def parse_order(cls, raw: str | None) -> list[OrderBy]:
        """Parse ``"created_at:desc,original_name"`` into OrderBy terms."""
        if not raw:
            return []
        terms: list[OrderBy] = []
        for part in raw.split(","):
            part = part.strip()
            if not part:
                continue
            column, _, direction = part.partition(":")
            try:
                sort = SortDirection((direction or "asc").strip().upper())
            except ValueError as e:
                raise ValidationError(f"Invalid sort direction: {direction}") from e
            terms.append(OrderBy(column=column.strip(), direction=sort))
        return terms


DEFAULT_ORDER: tuple[OrderBy, ...] = (OrderBy("created_at", SortDirection.DESC),)
