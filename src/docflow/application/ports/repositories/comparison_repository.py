"""Comparison repository port."""

from collections.abc import Mapping
from typing import Any, Protocol

from docflow.application.dto import NewComparison, QueryOptions
from docflow.domain.entities import Comparison
from docflow.domain.value_objects import ComparisonStatus


class ComparisonRepository(Protocol):
    """Port for comparison persistence."""

    async def create(self, new: NewComparison) -> Comparison: ...

    async def get_by_id(self, comparison_id: int) -> Comparison | None: ...

    async def find_by_user(
        self, owner_id: str, options: QueryOptions | None = None
    ) -> list[Comparison]: ...

    async def find_by_documents(
        self, document1_id: int, document2_id: int
    ) -> Comparison | None: ...

    async def find_by_status(
        self, status: ComparisonStatus, owner_id: str | None = None
    ) -> list[Comparison]: ...

    async def update(self, comparison_id: int, changes: Mapping[str, Any]) -> bool: ...

    async def delete(self, comparison_id: int) -> bool: ...
