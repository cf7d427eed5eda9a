"""Comparison lifecycle status."""

from enum import StrEnum


class ComparisonStatus(StrEnum):
    """Status of a comparison between two documents."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"
