"""Comparison DTOs."""

from dataclasses import dataclass, field

from docflow.domain.value_objects import ComparisonStatus


@dataclass
class NewComparison:
    """Fields for creating a comparison. The store assigns id and timestamps."""

    document1_id: int
    document2_id: int
    owner_id: str
    status: ComparisonStatus = ComparisonStatus.PENDING
    summary: str | None = None
    similarity_score: float | None = None
    key_differences: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    result_url: str | None = None
    error_message: str | None = None
    processing_time_ms: int | None = None


@dataclass
class CompareInput:
    """Input for comparing two documents of one owner."""

    owner_id: str
    document1_id: int
    document2_id: int
