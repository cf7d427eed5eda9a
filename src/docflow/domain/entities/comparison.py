"""Comparison entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from docflow.domain.value_objects import ComparisonStatus


@dataclass
class Comparison:
    """Result of comparing two documents."""

    id: int
    document1_id: int
    document2_id: int
    owner_id: str
    status: ComparisonStatus
    created_at: datetime
    updated_at: datetime
    summary: str | None = None
    similarity_score: float | None = None
    key_differences: list[Any] = field(default_factory=list)
    suggestions: list[Any] = field(default_factory=list)
    result_url: str | None = None
    error_message: str | None = None
    processing_time_ms: int | None = None
