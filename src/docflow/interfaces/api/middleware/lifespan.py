"""Lifespan middleware - opens the store and storage on startup, closes on shutdown."""

import logging
from typing import Any

from docflow.application.ports import EntityStore, StorageProvider
from docflow.application.services.storage_facade import StorageFacade
from docflow.interfaces.worker.queue_worker import QueueWorker

logger = logging.getLogger(__name__)


class LifespanMiddleware:
    """Initializes shared instances when the ASGI server starts.

    The embedded worker, when given, starts after the store and storage are
    ready and stops before they are closed.
    """

    def __init__(
        self,
        store: EntityStore,
        storage: StorageFacade,
        provider: StorageProvider,
        worker: QueueWorker | None = None,
        *,
        migrate: bool = False,
    ) -> None:
        self._store = store
        self._storage = storage
        self._provider = provider
        self._worker = worker
        self._migrate = migrate

    async def process_startup(self, scope: dict[str, Any], event: dict[str, Any]) -> None:
        await self._store.initialize()
        if self._migrate:
            await self._store.migrate()
        await self._storage.initialize(self._provider)
        if self._worker is not None:
            await self._worker.start()

    async def process_shutdown(self, scope: dict[str, Any], event: dict[str, Any]) -> None:
        if self._worker is not None:
            await self._worker.stop()
        await self._storage.shutdown()
        await self._store.shutdown()
