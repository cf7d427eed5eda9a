"""Manual text extraction requests."""

import logging

from docflow.application.dto import ExtractionRequest, ExtractionRequestStatus, ExtractionStatus
from docflow.application.ports import EntityStore
from docflow.application.services.task_queue import TaskQueue
from docflow.application.use_cases.document.get_document import load_owned_document
from docflow.domain.entities import QueueItem
from docflow.domain.value_objects import QueueStatus, TaskType

logger = logging.getLogger(__name__)

# manual requests jump ahead of upload-triggered work
MANUAL_PRIORITY = 1


async def _extraction_tasks(queue: TaskQueue, document_id: int) -> list[QueueItem]:
    items = await queue.find_by_document(document_id)
    return [i for i in items if i.task_type == TaskType.EXTRACT_TEXT]


class RequestExtractionUseCase:
    """Queue text extraction for a document unless it is done or already pending."""

    def __init__(self, store: EntityStore, queue: TaskQueue) -> None:
        self._store = store
        self._queue = queue

    async def execute(self, owner_id: str, document_id: int) -> ExtractionRequest:
        document = await load_owned_document(self._store, owner_id, document_id)
        if document.extracted_text:
            return ExtractionRequest(ExtractionRequestStatus.ALREADY_EXTRACTED, document)

        for task in await _extraction_tasks(self._queue, document.id):
            if task.status in (QueueStatus.QUEUED, QueueStatus.PROCESSING):
                return ExtractionRequest(ExtractionRequestStatus.ALREADY_QUEUED, document, task)

        item = await self._queue.enqueue(
            document.id, TaskType.EXTRACT_TEXT, priority=MANUAL_PRIORITY
        )
        logger.info("Manual extraction queued for document %d (item=%d)", document.id, item.id)
        return ExtractionRequest(ExtractionRequestStatus.QUEUED, document, item)


class GetExtractionStatusUseCase:
    """A document's extraction state and its extraction tasks."""

    def __init__(self, store: EntityStore, queue: TaskQueue) -> None:
        self._store = store
        self._queue = queue

    async def execute(self, owner_id: str, document_id: int) -> ExtractionStatus:
        document = await load_owned_document(self._store, owner_id, document_id)
        return ExtractionStatus(document, await _extraction_tasks(self._queue, document.id))
