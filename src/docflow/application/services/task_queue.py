"""Task queue over the queue item repository.

Items move QUEUED -> PROCESSING -> DONE | FAILED. A failed attempt goes back
to QUEUED with an exponential delay until ``max_attempts`` is reached, after
which the item stays FAILED.
"""

import logging
from datetime import datetime, timedelta

from docflow.application.dto import (
    NewQueueItem,
    QueueItemSummary,
    QueueStats,
    TaskOutcome,
)
from docflow.application.ports.repositories import QueueItemRepository
from docflow.domain.clock import Clock, utc_now
from docflow.domain.entities import QueueItem
from docflow.domain.exceptions import NotFound, ValidationError
from docflow.domain.value_objects import QueueStatus, TaskType

logger = logging.getLogger(__name__)

STATS_LIST_LIMIT = 50


def _summary(item: QueueItem) -> QueueItemSummary:
    return QueueItemSummary(
        id=item.id,
        document_id=item.document_id,
        task_type=item.task_type.value,
        status=item.status.value,
        attempts=item.attempts,
        max_attempts=item.max_attempts,
        scheduled_at=item.scheduled_at,
        error_message=item.error_message,
    )


class TaskQueue:
    """Enqueue, claim, ack and retry document tasks."""

    def __init__(
        self,
        repository: QueueItemRepository,
        *,
        retry_delay: float = 60.0,
        claim_timeout: float = 300.0,
        default_priority: int = 5,
        default_max_attempts: int = 3,
        clock: Clock = utc_now,
    ) -> None:
        self._repo = repository
        self._retry_delay = retry_delay
        self._claim_timeout = claim_timeout
        self._default_priority = default_priority
        self._default_max_attempts = default_max_attempts
        self._clock = clock

    def retry_delay_for(self, attempts: int) -> float:
        """Seconds to wait before the next run after ``attempts`` failures."""
        return self._retry_delay * 2 ** max(attempts - 1, 0)

    async def enqueue(
        self,
        document_id: int,
        task_type: TaskType,
        priority: int | None = None,
        max_attempts: int | None = None,
        scheduled_at: datetime | None = None,
    ) -> QueueItem:
        max_attempts = self._default_max_attempts if max_attempts is None else max_attempts
        if max_attempts < 1:
            raise ValidationError("max_attempts must be >= 1")
        item = await self._repo.create(
            NewQueueItem(
                document_id=document_id,
                task_type=TaskType(task_type),
                priority=self._default_priority if priority is None else priority,
                max_attempts=max_attempts,
                scheduled_at=scheduled_at,
            )
        )
        logger.info(
            "Enqueued %s for document %d (item=%d, priority=%d)",
            item.task_type,
            document_id,
            item.id,
            item.priority,
        )
        return item

    async def get_next(self) -> QueueItem | None:
        """Claim the most urgent eligible item, or None."""
        return await self._repo.claim_next(self._clock())

    async def update_status(self, item_id: int, status: QueueStatus) -> bool:
        status = QueueStatus(status)
        completed_at = self._clock() if status.is_terminal else None
        return await self._repo.update_status(item_id, status, completed_at)

    async def update_error(self, item_id: int, message: str) -> bool:
        """Count a failed attempt. Status is left alone."""
        return await self._repo.record_error(item_id, message) is not None

    async def retry(self, item_id: int) -> bool:
        """Re-queue with backoff while attempts remain; otherwise mark FAILED."""
        item = await self._repo.get_by_id(item_id)
        if item is None or item.status == QueueStatus.DONE:
            return False
        if item.status == QueueStatus.QUEUED:
            # already waiting for a worker; keep its schedule
            return True
        if item.can_retry:
            delay = self.retry_delay_for(item.attempts)
            scheduled_at = self._clock() + timedelta(seconds=delay)
            if await self._repo.requeue(item_id, scheduled_at):
                logger.info(
                    "Item %d re-queued (attempt %d/%d) in %.0fs",
                    item_id,
                    item.attempts,
                    item.max_attempts,
                    delay,
                )
                return True
        await self._repo.update_status(item_id, QueueStatus.FAILED, self._clock())
        logger.error(
            "Item %d failed permanently after %d attempts: %s",
            item_id,
            item.attempts,
            item.error_message,
        )
        return False

    async def fail(self, item_id: int, message: str) -> TaskOutcome:
        """Record a failed attempt, then retry or give up."""
        if await self._repo.record_error(item_id, message) is None:
            raise NotFound("queue_item", item_id)
        if await self.retry(item_id):
            return TaskOutcome.RETRYING
        return TaskOutcome.FAILED

    async def fail_permanently(self, item_id: int, message: str) -> None:
        """Record the error and mark FAILED without retrying."""
        await self._repo.record_error(item_id, message)
        await self._repo.update_status(item_id, QueueStatus.FAILED, self._clock())
        logger.error("Item %d failed without retry: %s", item_id, message)

    async def find_by_document(self, document_id: int) -> list[QueueItem]:
        return await self._repo.find_by_document(document_id)

    async def find_all(self, status: QueueStatus | None = None) -> list[QueueItem]:
        return await self._repo.find_all(status)

    async def sweep_stale_claims(self) -> tuple[int, int]:
        """Release claims older than the claim timeout. Returns (requeued, failed)."""
        now = self._clock()
        cutoff = now - timedelta(seconds=self._claim_timeout)
        requeued, failed = await self._repo.release_stale_claims(cutoff, now)
        if requeued or failed:
            logger.warning("Released stale claims: %d re-queued, %d failed", requeued, failed)
        return requeued, failed

    async def stats(self) -> QueueStats:
        items = await self._repo.find_all()
        counts = {status.value: 0 for status in QueueStatus}
        for item in items:
            counts[item.status.value] += 1
        return QueueStats(
            counts=counts,
            queued=[_summary(i) for i in items if i.status == QueueStatus.QUEUED][:STATS_LIST_LIMIT],
            failed=[_summary(i) for i in items if i.status == QueueStatus.FAILED][:STATS_LIST_LIMIT],
        )

    async def clear(self) -> int:
        count = await self._repo.delete_all()
        logger.warning("Cleared %d queue items", count)
        return count
