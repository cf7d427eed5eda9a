"""Queue worker: claims items and dispatches them to task handlers."""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Mapping
from typing import Protocol

from docflow.application.dto import TaskOutcome, TaskResult
from docflow.application.services.task_queue import TaskQueue
from docflow.domain.entities import QueueItem
from docflow.domain.exceptions import DocFlowError, UnsupportedTask, public_message
from docflow.domain.value_objects import QueueStatus, TaskType

logger = logging.getLogger(__name__)


class TaskHandler(Protocol):
    async def handle(self, item: QueueItem) -> None: ...


def _error_message(exc: BaseException, task_timeout: float) -> str:
    """Message recorded on the item; the full error is only logged."""
    if isinstance(exc, TimeoutError) and not str(exc):
        return f"timeout: Task timed out after {task_timeout:g}s"
    return public_message(exc)


class QueueWorker:
    """Runs queue items one at a time per slot, ``concurrency`` slots in parallel.

    Slots coordinate only through the queue's atomic claim. Handler failures
    are recorded on the item and never escape ``run_once``.
    """

    def __init__(
        self,
        queue: TaskQueue,
        handlers: Mapping[TaskType, TaskHandler],
        *,
        concurrency: int = 1,
        poll_interval: float = 2.0,
        task_timeout: float = 30.0,
        sweep_interval: float = 60.0,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._queue = queue
        self._handlers = dict(handlers)
        self._concurrency = concurrency
        self._poll_interval = poll_interval
        self._task_timeout = task_timeout
        self._sweep_interval = sweep_interval
        self._monotonic = monotonic
        self._stopping = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    async def run_once(self) -> TaskResult | None:
        """Claim and process one item. Returns None when nothing is eligible."""
        item = await self._queue.get_next()
        if item is None:
            return None

        started = self._monotonic()
        logger.info(
            "Processing item %d (%s, document %d, attempt %d/%d)",
            item.id,
            item.task_type,
            item.document_id,
            item.attempts + 1,
            item.max_attempts,
        )
        handler = self._handlers.get(item.task_type)
        try:
            if handler is None:
                raise UnsupportedTask(f"No handler for task type {item.task_type}")
            async with asyncio.timeout(self._task_timeout):
                await handler.handle(item)
        except UnsupportedTask as e:
            logger.error("Item %d cannot run: %s", item.id, e)
            message = public_message(e)
            await self._queue.fail_permanently(item.id, message)
            return self._result(item, TaskOutcome.FAILED, item.attempts + 1, started, message)
        except Exception as e:
            message = _error_message(e, self._task_timeout)
            logger.error("Item %d failed: %s", item.id, str(e) or message)
            outcome = await self._queue.fail(item.id, message)
            return self._result(item, outcome, item.attempts + 1, started, message)

        await self._queue.update_status(item.id, QueueStatus.DONE)
        result = self._result(item, TaskOutcome.COMPLETED, item.attempts, started)
        logger.info("Item %d completed in %dms", item.id, result.duration_ms)
        return result

    async def process_batch(self, limit: int) -> list[TaskResult]:
        """Process up to ``limit`` items back to back, stopping early when idle."""
        results = []
        for _ in range(limit):
            result = await self.run_once()
            if result is None:
                break
            results.append(result)
        return results

    def _result(
        self,
        item: QueueItem,
        outcome: TaskOutcome,
        attempts: int,
        started: float,
        error: str | None = None,
    ) -> TaskResult:
        return TaskResult(
            item_id=item.id,
            document_id=item.document_id,
            task_type=item.task_type,
            outcome=outcome,
            attempts=attempts,
            duration_ms=int((self._monotonic() - started) * 1000),
            error=error,
        )

    async def _idle(self, seconds: float) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)

    async def _slot(self, index: int) -> None:
        logger.debug("Worker slot %d started", index)
        while not self._stopping.is_set():
            try:
                result = await self.run_once()
            except DocFlowError as e:
                # store or queue unavailable; the item (if any) is left to the sweep
                logger.error("Worker slot %d could not process the queue: %s", index, e)
                result = None
            if result is None:
                await self._idle(self._poll_interval)
        logger.debug("Worker slot %d stopped", index)

    async def _sweeper(self) -> None:
        while not self._stopping.is_set():
            try:
                await self._queue.sweep_stale_claims()
            except DocFlowError as e:
                logger.error("Stale claim sweep failed: %s", e)
            await self._idle(self._sweep_interval)

    async def start(self) -> None:
        if self.is_running:
            return
        self._stopping.clear()
        self._tasks = [
            asyncio.create_task(self._slot(i), name=f"docflow-worker-{i}")
            for i in range(self._concurrency)
        ]
        self._tasks.append(asyncio.create_task(self._sweeper(), name="docflow-sweeper"))
        logger.info(
            "Worker started (concurrency=%d, poll=%.1fs, timeout=%.1fs)",
            self._concurrency,
            self._poll_interval,
            self._task_timeout,
        )

    async def run(self) -> None:
        """Run until ``stop`` is called."""
        await self.start()
        await asyncio.gather(*self._tasks)

    async def stop(self) -> None:
        self._stopping.set()
        tasks, self._tasks = self._tasks, []
        if tasks:
            await asyncio.gather(*tasks)
            logger.info("Worker stopped")
