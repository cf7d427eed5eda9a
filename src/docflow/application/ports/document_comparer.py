"""Document comparer port."""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class ComparisonOutcome:
    similarity_score: float
    summary: str
    key_differences: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


class DocumentComparer(Protocol):
    """Compares two extracted texts."""

    def compare(self, text1: str, text2: str) -> ComparisonOutcome: ...
