"""Queue task types."""

from enum import StrEnum


class TaskType(StrEnum):
    """Kinds of background work a queue item can request."""

    EXTRACT_TEXT = "extract_text"
    COMPARE = "compare"
    EXPORT = "export"
