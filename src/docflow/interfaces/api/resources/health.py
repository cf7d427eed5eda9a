"""Health check endpoints."""

import logging

import falcon.asgi

from docflow import __version__
from docflow.application.ports import EntityStore
from docflow.application.services.storage_facade import StorageFacade
from docflow.domain.exceptions import DocFlowError

logger = logging.getLogger(__name__)


class HealthResource:
    """Health and readiness endpoints."""

    def __init__(self, store: EntityStore, storage: StorageFacade) -> None:
        self._store = store
        self._storage = storage

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health - liveness."""
        resp.media = {"status": "ok", "version": __version__}
        resp.status = falcon.HTTP_200

    async def on_get_ready(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """GET /v1/health/ready - entity store reachable and storage initialized."""
        try:
            store_ok = await self._store.ping()
        except DocFlowError as e:
            logger.warning("Readiness check: entity store unavailable: %s", e)
            store_ok = False
        storage_ok = self._storage.is_initialized
        ready = store_ok and storage_ok
        resp.media = {
            "status": "ready" if ready else "not_ready",
            "checks": {"entity_store": store_ok, "storage": storage_ok},
        }
        resp.status = falcon.HTTP_200 if ready else falcon.HTTP_503
