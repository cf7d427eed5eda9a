"""Queue DTOs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from docflow.domain.value_objects import TaskType


@dataclass
class NewQueueItem:
    """Fields for creating a queue item."""

    document_id: int
    task_type: TaskType
    priority: int = 5
    max_attempts: int = 3
    scheduled_at: datetime | None = None


class TaskOutcome(StrEnum):
    """What happened to a claimed item after its handler ran."""

    COMPLETED = "completed"
    RETRYING = "retrying"
    FAILED = "failed"


@dataclass
class TaskResult:
    """Result of processing one claimed item."""

    item_id: int
    document_id: int
    task_type: TaskType
    outcome: TaskOutcome
    attempts: int
    duration_ms: int
    error: str | None = None


@dataclass
class QueueItemSummary:
    """Short view of an item for queue status listings."""

    id: int
    document_id: int
    task_type: str
    status: str
    attempts: int
    max_attempts: int
    scheduled_at: datetime | None
    error_message: str | None


@dataclass
class QueueStats:
    """Queue status counts plus pending and failed items."""

    counts: dict[str, int] = field(default_factory=dict)
    queued: list[QueueItemSummary] = field(default_factory=list)
    failed: list[QueueItemSummary] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts.values())
