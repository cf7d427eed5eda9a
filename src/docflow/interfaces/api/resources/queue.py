"""Queue status and processing endpoints."""

import logging

import falcon.asgi

from docflow.application.services.task_queue import TaskQueue
from docflow.interfaces.api.resources.common import require_system_token
from docflow.interfaces.api.resources.serializers import (
    queue_stats_to_dict,
    task_result_to_dict,
)
from docflow.interfaces.worker.queue_worker import QueueWorker

logger = logging.getLogger(__name__)

MAX_BATCH = 50


class QueueResource:
    """GET /v1/queue - status counts; DELETE /v1/queue - drop every item."""

    def __init__(self, queue: TaskQueue, system_token: str | None = None) -> None:
        self._queue = queue
        self._system_token = system_token

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        stats = await self._queue.stats()
        resp.media = queue_stats_to_dict(stats)
        resp.status = falcon.HTTP_200

    async def on_delete(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        if not require_system_token(req, resp, self._system_token):
            return
        deleted = await self._queue.clear()
        resp.media = {"deleted": deleted}
        resp.status = falcon.HTTP_200


class QueueProcessResource:
    """POST /v1/queue/process - run up to ``limit`` items now (default 1)."""

    def __init__(self, worker: QueueWorker, system_token: str | None = None) -> None:
        self._worker = worker
        self._system_token = system_token

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        if not require_system_token(req, resp, self._system_token):
            return
        limit = req.get_param_as_int("limit", min_value=1, max_value=MAX_BATCH) or 1
        results = await self._worker.process_batch(limit)
        logger.info("Processed %d queue items on request", len(results))
        resp.media = {
            "processed": len(results),
            "results": [task_result_to_dict(r) for r in results],
        }
        resp.status = falcon.HTTP_200
