"""Queue item repository port.

Storage primitives only. Retry caps and backoff live in TaskQueue.
"""

from datetime import datetime
from typing import Protocol

from docflow.application.dto import NewQueueItem
from docflow.domain.entities import QueueItem
from docflow.domain.value_objects import QueueStatus

STALE_CLAIM_MESSAGE = "Claim expired before the task finished"


class QueueItemRepository(Protocol):
    """Port for queue item persistence."""

    async def create(self, new: NewQueueItem) -> QueueItem: ...

    async def get_by_id(self, item_id: int) -> QueueItem | None: ...

    async def claim_next(self, now: datetime) -> QueueItem | None:
        """Atomically move the next eligible QUEUED item to PROCESSING.

        Eligible means ``scheduled_at`` is NULL or not after ``now``. Order is
        priority, then created_at, then id.
        """
        ...

    async def update_status(
        self, item_id: int, status: QueueStatus, completed_at: datetime | None = None
    ) -> bool: ...

    async def record_error(self, item_id: int, message: str) -> QueueItem | None:
        """Increment attempts and store the message. Returns the updated item."""
        ...

    async def requeue(self, item_id: int, scheduled_at: datetime) -> bool:
        """Back to QUEUED, only while attempts < max_attempts."""
        ...

    async def release_stale_claims(self, cutoff: datetime, now: datetime) -> tuple[int, int]:
        """Expire PROCESSING claims older than ``cutoff``.

        Each expired claim counts as an attempt. Returns (requeued, failed).
        """
        ...

    async def find_by_document(self, document_id: int) -> list[QueueItem]: ...

    async def find_all(self, status: QueueStatus | None = None) -> list[QueueItem]: ...

    async def delete_all(self) -> int: ...
