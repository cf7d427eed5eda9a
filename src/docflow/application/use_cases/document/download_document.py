"""Download document use case."""

import logging
import mimetypes

from docflow.application.dto import DocumentDownload
from docflow.application.ports import EntityStore
from docflow.application.services.storage_facade import StorageFacade
from docflow.application.use_cases.document.get_document import load_owned_document

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class DownloadDocumentUseCase:
    """Fetch an owned document's bytes from storage.

    A record whose file is gone from storage raises ObjectNotFound.
    """

    def __init__(
        self, store: EntityStore, storage: StorageFacade, *, timeout: float | None = None
    ) -> None:
        self._store = store
        self._storage = storage
        self._timeout = timeout

    async def execute(self, owner_id: str, document_id: int) -> DocumentDownload:
        document = await load_owned_document(self._store, owner_id, document_id)
        downloaded = await self._storage.download(document.storage_key, timeout=self._timeout)
        content_type = downloaded.content_type
        if not content_type or content_type == DEFAULT_CONTENT_TYPE:
            content_type = mimetypes.guess_type(document.original_name)[0] or DEFAULT_CONTENT_TYPE
        logger.info("Document %d downloaded by %s", document.id, owner_id)
        return DocumentDownload(document=document, data=downloaded.data, content_type=content_type)
