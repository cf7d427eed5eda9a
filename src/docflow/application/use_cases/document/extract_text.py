"""Text extraction task handler."""

import asyncio
import logging

from docflow.application.ports import EntityStore, TextExtractor
from docflow.application.services.storage_facade import StorageFacade
from docflow.domain.clock import Clock, utc_now
from docflow.domain.entities import QueueItem
from docflow.domain.exceptions import NotFound
from docflow.domain.value_objects import DocumentStatus

logger = logging.getLogger(__name__)


class ExtractTextHandler:
    """Download a document, extract its text and store it on the record.

    The document ends PROCESSED on success and ERROR on any failure. The
    failure is re-raised so the worker can record it on the queue item.
    """

    def __init__(
        self,
        store: EntityStore,
        storage: StorageFacade,
        extractor: TextExtractor,
        *,
        download_timeout: float | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._storage = storage
        self._extractor = extractor
        self._download_timeout = download_timeout
        self._clock = clock

    async def handle(self, item: QueueItem) -> None:
        document = await self._store.documents.get_by_id(item.document_id)
        if document is None:
            raise NotFound("Document", item.document_id)

        await self._store.documents.update(document.id, {"status": DocumentStatus.PROCESSING})
        try:
            downloaded = await self._storage.download(
                document.storage_key, timeout=self._download_timeout
            )
            extracted = await asyncio.to_thread(
                self._extractor.extract,
                downloaded.data,
                document.original_name,
                downloaded.content_type,
            )
        except (Exception, asyncio.CancelledError) as e:
            # cancelled by the worker timeout; the record must not stay PROCESSING
            logger.error(
                "Extraction failed for document %d: %s", document.id, str(e) or type(e).__name__
            )
            await self._store.documents.update(document.id, {"status": DocumentStatus.ERROR})
            raise

        metadata = dict(document.metadata)
        metadata.update(extracted.metadata)
        metadata["extraction"] = {
            "pages": extracted.metadata.get("page_count"),
            "method": document.file_type,
            "characters": len(extracted.text),
            "extracted_at": self._clock().isoformat(),
        }
        await self._store.documents.update(
            document.id,
            {
                "extracted_text": extracted.text,
                "status": DocumentStatus.PROCESSED,
                "metadata": metadata,
            },
        )
        logger.info(
            "Extracted %d characters from document %d", len(extracted.text), document.id
        )
