"""Get, list and delete document use cases."""

import logging

from docflow.application.dto import DeleteOptions, QueryOptions
from docflow.application.ports import EntityStore
from docflow.application.services.storage_facade import StorageFacade
from docflow.domain.entities import Document
from docflow.domain.exceptions import AccessDenied, NotFound

logger = logging.getLogger(__name__)


async def load_owned_document(store: EntityStore, owner_id: str, document_id: int) -> Document:
    """Document by id, raising NotFound or AccessDenied."""
    document = await store.documents.get_by_id(document_id)
    if document is None:
        raise NotFound("Document", document_id)
    if document.owner_id != owner_id:
        raise AccessDenied(f"Document {document_id} belongs to another owner", entity="document")
    return document


class GetDocumentUseCase:
    """Get document by id for its owner."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def execute(self, owner_id: str, document_id: int) -> Document:
        return await load_owned_document(self._store, owner_id, document_id)


class ListDocumentsUseCase:
    """List an owner's documents."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def execute(self, owner_id: str, options: QueryOptions | None = None) -> list[Document]:
        return await self._store.documents.find_by_user(owner_id, options)


class DeleteDocumentUseCase:
    """Delete the record (comparisons and queue items cascade) and its stored file."""

    def __init__(self, store: EntityStore, storage: StorageFacade) -> None:
        self._store = store
        self._storage = storage

    async def execute(self, owner_id: str, document_id: int) -> None:
        document = await load_owned_document(self._store, owner_id, document_id)
        await self._store.documents.delete(document.id)
        result = await self._storage.delete(document.storage_key, DeleteOptions(quiet=True))
        if result.errors:
            logger.warning(
                "Document %d deleted but its file was not: %s",
                document.id,
                result.errors[0].message,
            )
