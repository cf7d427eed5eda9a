"""In-memory document repository."""

import copy
import dataclasses
from collections.abc import Mapping
from typing import Any

from docflow.application.dto import NewDocument, QueryOptions
from docflow.application.dto.record_fields import (
    DOCUMENT_SORTABLE,
    DOCUMENT_UPDATABLE,
    check_changes,
)
from docflow.domain.clock import Clock
from docflow.domain.entities import Document
from docflow.domain.exceptions import DuplicateDocument
from docflow.domain.value_objects import DocumentStatus
from docflow.infrastructure.persistence.memory.ordering import apply_query
from docflow.infrastructure.persistence.memory.state import MemoryState, snapshot


class MemoryDocumentRepository:
    """Document repository over MemoryState."""

    def __init__(self, state: MemoryState, clock: Clock) -> None:
        self._state = state
        self._clock = clock

    async def create(self, new: NewDocument) -> Document:
        async with self._state.lock:
            for doc in self._state.documents.values():
                if doc.owner_id == new.owner_id and doc.content_hash == new.content_hash:
                    raise DuplicateDocument(
                        f"Document with hash {new.content_hash} already exists for owner",
                        operation="create",
                        entity="document",
                    )
            now = self._clock()
            document = Document(
                id=self._state.next_id("documents"),
                storage_key=new.storage_key,
                original_name=new.original_name,
                content_hash=new.content_hash,
                storage_url=new.storage_url,
                size=new.size,
                owner_id=new.owner_id,
                status=DocumentStatus(new.status),
                created_at=now,
                updated_at=now,
                extracted_text=new.extracted_text,
                is_reference=new.is_reference,
                metadata=copy.deepcopy(new.metadata),
            )
            self._state.documents[document.id] = document
            return snapshot(document)

    async def get_by_id(self, document_id: int) -> Document | None:
        doc = self._state.documents.get(document_id)
        return snapshot(doc) if doc else None

    async def find_by_user(
        self, owner_id: str, options: QueryOptions | None = None
    ) -> list[Document]:
        docs = [d for d in self._state.documents.values() if d.owner_id == owner_id]
        return [snapshot(d) for d in apply_query(docs, options, DOCUMENT_SORTABLE)]

    async def find_by_hash(
        self, content_hash: str, owner_id: str | None = None
    ) -> Document | None:
        matches = [
            d
            for d in self._state.documents.values()
            if d.content_hash == content_hash and (owner_id is None or d.owner_id == owner_id)
        ]
        if not matches:
            return None
        return snapshot(min(matches, key=lambda d: d.id))

    async def find_by_status(
        self, status: DocumentStatus, owner_id: str | None = None
    ) -> list[Document]:
        docs = [
            d
            for d in self._state.documents.values()
            if d.status == status and (owner_id is None or d.owner_id == owner_id)
        ]
        return [snapshot(d) for d in apply_query(docs, None, DOCUMENT_SORTABLE)]

    async def get_reference(self, owner_id: str) -> Document | None:
        docs = [
            d
            for d in self._state.documents.values()
            if d.owner_id == owner_id and d.is_reference
        ]
        ordered = apply_query(docs, QueryOptions(limit=1), DOCUMENT_SORTABLE)
        return snapshot(ordered[0]) if ordered else None

    async def update(self, document_id: int, changes: Mapping[str, Any]) -> bool:
        checked = check_changes("document", changes, DOCUMENT_UPDATABLE, DocumentStatus)
        async with self._state.lock:
            doc = self._state.documents.get(document_id)
            if doc is None:
                return False
            self._state.documents[document_id] = dataclasses.replace(
                doc, **copy.deepcopy(checked), updated_at=self._clock()
            )
            return True

    async def delete(self, document_id: int) -> bool:
        async with self._state.lock:
            if self._state.documents.pop(document_id, None) is None:
                return False
            # cascade, as the foreign keys do in postgres
            for cid in [
                c.id
                for c in self._state.comparisons.values()
                if document_id in (c.document1_id, c.document2_id)
            ]:
                del self._state.comparisons[cid]
            for qid in [
                q.id for q in self._state.queue_items.values() if q.document_id == document_id
            ]:
                del self._state.queue_items[qid]
            return True
