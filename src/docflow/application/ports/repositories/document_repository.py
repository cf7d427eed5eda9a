"""Document repository port."""

from collections.abc import Mapping
from typing import Any, Protocol

from docflow.application.dto import NewDocument, QueryOptions
from docflow.domain.entities import Document
from docflow.domain.value_objects import DocumentStatus


class DocumentRepository(Protocol):
    """Port for document persistence."""

    async def create(self, new: NewDocument) -> Document: ...

    async def get_by_id(self, document_id: int) -> Document | None: ...

    async def find_by_user(
        self, owner_id: str, options: QueryOptions | None = None
    ) -> list[Document]: ...

    async def find_by_hash(
        self, content_hash: str, owner_id: str | None = None
    ) -> Document | None: ...

    async def find_by_status(
        self, status: DocumentStatus, owner_id: str | None = None
    ) -> list[Document]: ...

    async def get_reference(self, owner_id: str) -> Document | None: ...

    async def update(self, document_id: int, changes: Mapping[str, Any]) -> bool: ...

    async def delete(self, document_id: int) -> bool: ...
