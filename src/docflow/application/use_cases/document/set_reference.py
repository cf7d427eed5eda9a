"""Set reference document use case."""

import logging

from docflow.application.ports import EntityStore
from docflow.application.use_cases.document.get_document import load_owned_document
from docflow.domain.entities import Document

logger = logging.getLogger(__name__)


async def assign_reference(store: EntityStore, owner_id: str, document_id: int) -> None:
    """Make ``document_id`` the owner's only reference document."""
    current = await store.documents.get_reference(owner_id)
    while current is not None and current.id != document_id:
        await store.documents.update(current.id, {"is_reference": False})
        current = await store.documents.get_reference(owner_id)
    await store.documents.update(document_id, {"is_reference": True})


class SetReferenceDocumentUseCase:
    """Mark one document as the owner's reference template; unmark the rest."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def execute(self, owner_id: str, document_id: int) -> Document:
        await load_owned_document(self._store, owner_id, document_id)
        await assign_reference(self._store, owner_id, document_id)
        logger.info("Document %d is now the reference for %s", document_id, owner_id)
        return await load_owned_document(self._store, owner_id, document_id)
