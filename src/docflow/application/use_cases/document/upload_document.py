"""Upload document use case."""

import logging

from docflow.application.dto import (
    DocumentUploadInput,
    NewDocument,
    UploadOptions,
    UploadResult,
)
from docflow.application.ports import EntityStore, TextExtractor
from docflow.application.services.storage_facade import StorageFacade
from docflow.application.services.storage_keys import document_key
from docflow.application.services.task_queue import TaskQueue
from docflow.application.use_cases.document.set_reference import assign_reference
from docflow.domain.exceptions import DuplicateDocument, ValidationError
from docflow.domain.value_objects import ContentHash, TaskType

logger = logging.getLogger(__name__)


class UploadDocumentUseCase:
    """Store the bytes, record the document and queue text extraction.

    The same bytes uploaded twice by one owner return the existing record.
    Different owners each get their own record.
    """

    def __init__(
        self,
        store: EntityStore,
        storage: StorageFacade,
        queue: TaskQueue,
        extractor: TextExtractor,
        *,
        key_prefix: str = "",
    ) -> None:
        self._store = store
        self._storage = storage
        self._queue = queue
        self._extractor = extractor
        self._key_prefix = key_prefix

    async def execute(self, input_data: DocumentUploadInput) -> UploadResult:
        if not input_data.data:
            raise ValidationError("Uploaded file is empty")
        if not input_data.filename:
            raise ValidationError("Uploaded file has no name")
        if not self._extractor.supports(input_data.filename, input_data.content_type):
            raise ValidationError(f"Unsupported file type: {input_data.filename}")

        content_hash = ContentHash.of(input_data.data).value
        existing = await self._store.documents.find_by_hash(content_hash, input_data.owner_id)
        if existing:
            logger.info("Duplicate upload of document %d by %s", existing.id, input_data.owner_id)
            return UploadResult(document=existing, duplicate=True)

        key = document_key(
            input_data.owner_id, content_hash, input_data.filename, self._key_prefix
        )
        stored = await self._storage.upload(
            key,
            input_data.data,
            UploadOptions(
                content_type=input_data.content_type,
                metadata={"original_name": input_data.filename, "owner_id": input_data.owner_id},
            ),
        )

        try:
            document = await self._store.documents.create(
                NewDocument(
                    storage_key=key,
                    original_name=input_data.filename,
                    content_hash=content_hash,
                    storage_url=self._storage.object_url(key),
                    size=stored.size,
                    owner_id=input_data.owner_id,
                    metadata={
                        "content_type": stored.content_type,
                        "etag": stored.etag,
                        "storage_provider": self._storage.provider.name,
                    },
                )
            )
        except DuplicateDocument:
            # a concurrent upload of the same bytes won the insert
            existing = await self._store.documents.find_by_hash(content_hash, input_data.owner_id)
            if existing is None:
                raise
            return UploadResult(document=existing, duplicate=True)

        if input_data.is_reference:
            await assign_reference(self._store, document.owner_id, document.id)
            document.is_reference = True

        item = await self._queue.enqueue(document.id, TaskType.EXTRACT_TEXT)
        logger.info("Uploaded document %d (%s, %d bytes)", document.id, key, document.size)
        return UploadResult(document=document, duplicate=False, queue_item=item)
