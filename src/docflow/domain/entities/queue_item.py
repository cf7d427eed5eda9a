"""Queue item entity."""

from dataclasses import dataclass
from datetime import datetime

from docflow.domain.value_objects import QueueStatus, TaskType


@dataclass
class QueueItem:
    """Background task for a document, ordered by priority then age."""

    id: int
    document_id: int
    task_type: TaskType
    priority: int
    status: QueueStatus
    attempts: int
    max_attempts: int
    created_at: datetime
    updated_at: datetime
    scheduled_at: datetime | None = None
    claimed_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None

    @property
    def can_retry(self) -> bool:
        """Whether another automatic attempt is allowed."""
        return self.attempts < self.max_attempts
