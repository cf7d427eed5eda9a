"""In-memory queue item repository."""

from datetime import datetime

from docflow.application.dto import NewQueueItem
from docflow.application.ports.repositories.queue_item_repository import STALE_CLAIM_MESSAGE
from docflow.domain.clock import Clock
from docflow.domain.entities import QueueItem
from docflow.domain.exceptions import ConstraintViolation
from docflow.domain.value_objects import QueueStatus, TaskType
from docflow.infrastructure.persistence.memory.ordering import apply_query
from docflow.infrastructure.persistence.memory.state import MemoryState, snapshot

_QUEUE_SORTABLE = {"id": False, "created_at": False}


class MemoryQueueItemRepository:
    """Queue item repository over MemoryState. Claims happen under the state lock."""

    def __init__(self, state: MemoryState, clock: Clock) -> None:
        self._state = state
        self._clock = clock

    async def create(self, new: NewQueueItem) -> QueueItem:
        async with self._state.lock:
            if new.document_id not in self._state.documents:
                raise ConstraintViolation(
                    f"Queue item references missing document {new.document_id}",
                    operation="create",
                    entity="queue_item",
                )
            now = self._clock()
            item = QueueItem(
                id=self._state.next_id("queue_items"),
                document_id=new.document_id,
                task_type=TaskType(new.task_type),
                priority=new.priority,
                status=QueueStatus.QUEUED,
                attempts=0,
                max_attempts=new.max_attempts,
                created_at=now,
                updated_at=now,
                scheduled_at=new.scheduled_at,
            )
            self._state.queue_items[item.id] = item
            return snapshot(item)

    async def get_by_id(self, item_id: int) -> QueueItem | None:
        item = self._state.queue_items.get(item_id)
        return snapshot(item) if item else None

    async def claim_next(self, now: datetime) -> QueueItem | None:
        async with self._state.lock:
            eligible = [
                i
                for i in self._state.queue_items.values()
                if i.status == QueueStatus.QUEUED
                and (i.scheduled_at is None or i.scheduled_at <= now)
            ]
            if not eligible:
                return None
            item = min(eligible, key=lambda i: (i.priority, i.created_at, i.id))
            item.status = QueueStatus.PROCESSING
            item.claimed_at = now
            item.updated_at = now
            return snapshot(item)

    async def update_status(
        self, item_id: int, status: QueueStatus, completed_at: datetime | None = None
    ) -> bool:
        async with self._state.lock:
            item = self._state.queue_items.get(item_id)
            if item is None:
                return False
            item.status = QueueStatus(status)
            if completed_at is not None:
                item.completed_at = completed_at
            item.updated_at = self._clock()
            return True

    async def record_error(self, item_id: int, message: str) -> QueueItem | None:
        async with self._state.lock:
            item = self._state.queue_items.get(item_id)
            if item is None:
                return None
            item.attempts += 1
            item.error_message = message
            item.updated_at = self._clock()
            return snapshot(item)

    async def requeue(self, item_id: int, scheduled_at: datetime) -> bool:
        async with self._state.lock:
            item = self._state.queue_items.get(item_id)
            if item is None or item.attempts >= item.max_attempts:
                return False
            item.status = QueueStatus.QUEUED
            item.scheduled_at = scheduled_at
            item.claimed_at = None
            item.completed_at = None
            item.updated_at = self._clock()
            return True

    async def release_stale_claims(self, cutoff: datetime, now: datetime) -> tuple[int, int]:
        requeued = failed = 0
        async with self._state.lock:
            for item in self._state.queue_items.values():
                if item.status != QueueStatus.PROCESSING:
                    continue
                if item.claimed_at is None or item.claimed_at >= cutoff:
                    continue
                item.attempts += 1
                item.error_message = STALE_CLAIM_MESSAGE
                item.claimed_at = None
                item.updated_at = now
                if item.attempts >= item.max_attempts:
                    item.status = QueueStatus.FAILED
                    item.completed_at = now
                    failed += 1
                else:
                    item.status = QueueStatus.QUEUED
                    item.scheduled_at = None
                    requeued += 1
        return requeued, failed

    async def find_by_document(self, document_id: int) -> list[QueueItem]:
        items = [i for i in self._state.queue_items.values() if i.document_id == document_id]
        return [snapshot(i) for i in apply_query(items, None, _QUEUE_SORTABLE)]

    async def find_all(self, status: QueueStatus | None = None) -> list[QueueItem]:
        items = [
            i
            for i in self._state.queue_items.values()
            if status is None or i.status == status
        ]
        return [snapshot(i) for i in apply_query(items, None, _QUEUE_SORTABLE)]

    async def delete_all(self) -> int:
        async with self._state.lock:
            count = len(self._state.queue_items)
            self._state.queue_items.clear()
            return count
