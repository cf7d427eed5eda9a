"""In-memory comparison repository."""

import copy
import dataclasses
from collections.abc import Mapping
from typing import Any

from docflow.application.dto import NewComparison, QueryOptions
from docflow.application.dto.record_fields import (
    COMPARISON_SORTABLE,
    COMPARISON_UPDATABLE,
    check_changes,
)
from docflow.domain.clock import Clock
from docflow.domain.entities import Comparison
from docflow.domain.exceptions import ConstraintViolation
from docflow.domain.value_objects import ComparisonStatus
from docflow.infrastructure.persistence.memory.ordering import apply_query
from docflow.infrastructure.persistence.memory.state import MemoryState, snapshot


class MemoryComparisonRepository:
    """Comparison repository over MemoryState."""

    def __init__(self, state: MemoryState, clock: Clock) -> None:
        self._state = state
        self._clock = clock

    async def create(self, new: NewComparison) -> Comparison:
        async with self._state.lock:
            for doc_id in (new.document1_id, new.document2_id):
                if doc_id not in self._state.documents:
                    raise ConstraintViolation(
                        f"Comparison references missing document {doc_id}",
                        operation="create",
                        entity="comparison",
                    )
            now = self._clock()
            comparison = Comparison(
                id=self._state.next_id("comparisons"),
                document1_id=new.document1_id,
                document2_id=new.document2_id,
                owner_id=new.owner_id,
                status=ComparisonStatus(new.status),
                created_at=now,
                updated_at=now,
                summary=new.summary,
                similarity_score=new.similarity_score,
                key_differences=copy.deepcopy(new.key_differences),
                suggestions=copy.deepcopy(new.suggestions),
                result_url=new.result_url,
                error_message=new.error_message,
                processing_time_ms=new.processing_time_ms,
            )
            self._state.comparisons[comparison.id] = comparison
            return snapshot(comparison)

    async def get_by_id(self, comparison_id: int) -> Comparison | None:
        comparison = self._state.comparisons.get(comparison_id)
        return snapshot(comparison) if comparison else None

    async def find_by_user(
        self, owner_id: str, options: QueryOptions | None = None
    ) -> list[Comparison]:
        rows = [c for c in self._state.comparisons.values() if c.owner_id == owner_id]
        return [snapshot(c) for c in apply_query(rows, options, COMPARISON_SORTABLE)]

    async def find_by_documents(
        self, document1_id: int, document2_id: int
    ) -> Comparison | None:
        pair = {document1_id, document2_id}
        matches = [
            c
            for c in self._state.comparisons.values()
            if {c.document1_id, c.document2_id} == pair
        ]
        if not matches:
            return None
        return snapshot(min(matches, key=lambda c: c.id))

    async def find_by_status(
        self, status: ComparisonStatus, owner_id: str | None = None
    ) -> list[Comparison]:
        rows = [
            c
            for c in self._state.comparisons.values()
            if c.status == status and (owner_id is None or c.owner_id == owner_id)
        ]
        return [snapshot(c) for c in apply_query(rows, None, COMPARISON_SORTABLE)]

    async def update(self, comparison_id: int, changes: Mapping[str, Any]) -> bool:
        checked = check_changes(
            "comparison", changes, COMPARISON_UPDATABLE, ComparisonStatus
        )
        async with self._state.lock:
            comparison = self._state.comparisons.get(comparison_id)
            if comparison is None:
                return False
            self._state.comparisons[comparison_id] = dataclasses.replace(
                comparison, **copy.deepcopy(checked), updated_at=self._clock()
            )
            return True

    async def delete(self, comparison_id: int) -> bool:
        async with self._state.lock:
            return self._state.comparisons.pop(comparison_id, None) is not None
