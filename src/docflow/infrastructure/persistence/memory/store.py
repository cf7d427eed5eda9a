"""Ephemeral entity store.

Everything lives in one MemoryState owned by the store instance; nothing
survives a restart. Construct one per process (or per test) and inject it.
"""

import logging

from docflow.domain.clock import Clock, utc_now
from docflow.infrastructure.persistence.memory.comparison_repository import (
    MemoryComparisonRepository,
)
from docflow.infrastructure.persistence.memory.document_repository import (
    MemoryDocumentRepository,
)
from docflow.infrastructure.persistence.memory.queue_item_repository import (
    MemoryQueueItemRepository,
)
from docflow.infrastructure.persistence.memory.state import MemoryState

logger = logging.getLogger(__name__)


class MemoryEntityStore:
    """Entity store backed by process memory."""

    backend = "memory"

    def __init__(self, clock: Clock = utc_now) -> None:
        self._state = MemoryState()
        self._documents = MemoryDocumentRepository(self._state, clock)
        self._comparisons = MemoryComparisonRepository(self._state, clock)
        self._queue_items = MemoryQueueItemRepository(self._state, clock)
        self._ready = False

    @property
    def documents(self) -> MemoryDocumentRepository:
        return self._documents

    @property
    def comparisons(self) -> MemoryComparisonRepository:
        return self._comparisons

    @property
    def queue_items(self) -> MemoryQueueItemRepository:
        return self._queue_items

    async def initialize(self) -> None:
        self._ready = True
        logger.info("Memory entity store ready (data is not persisted)")

    async def shutdown(self) -> None:
        self._ready = False

    async def migrate(self) -> None:
        logger.info("Memory entity store needs no migrations")

    async def ping(self) -> bool:
        return True

    def reset(self) -> None:
        """Drop every record and restart id counters."""
        self._state.reset()
