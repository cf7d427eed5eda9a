"""PostgreSQL document repository implementation."""

from collections.abc import Mapping
from typing import Any

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from docflow.application.dto import NewDocument, QueryOptions
from docflow.application.dto.record_fields import (
    DOCUMENT_SORTABLE,
    DOCUMENT_UPDATABLE,
    check_changes,
)
from docflow.domain.clock import Clock
from docflow.domain.entities import Document
from docflow.domain.value_objects import DocumentStatus
from docflow.infrastructure.persistence.postgres.errors import translate_errors
from docflow.infrastructure.persistence.postgres.ordering import (
    build_query_suffix,
    build_set_clause,
)

_COLUMNS = (
    "id, storage_key, original_name, content_hash, storage_url, size, owner_id, "
    "status, created_at, updated_at, extracted_text, is_reference, metadata"
)


def _row_to_document(r: tuple) -> Document:
    return Document(
        id=r[0],
        storage_key=r[1],
        original_name=r[2],
        content_hash=r[3],
        storage_url=r[4],
        size=r[5],
        owner_id=r[6],
        status=DocumentStatus(r[7]),
        created_at=r[8],
        updated_at=r[9],
        extracted_text=r[10],
        is_reference=r[11],
        metadata=r[12] or {},
    )


class PostgresDocumentRepository:
    """Document repository implementation."""

    def __init__(self, pool: AsyncConnectionPool, clock: Clock) -> None:
        self._pool = pool
        self._clock = clock

    async def create(self, new: NewDocument) -> Document:
        """Insert document; (owner_id, content_hash) must be unique."""
        now = self._clock()
        async with translate_errors("create", "document"), self._pool.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO documents (storage_key, original_name, content_hash, storage_url, "
                "size, owner_id, status, created_at, updated_at, extracted_text, is_reference, "
                f"metadata) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s) RETURNING {_COLUMNS}",
                (
                    new.storage_key,
                    new.original_name,
                    new.content_hash,
                    new.storage_url,
                    new.size,
                    new.owner_id,
                    DocumentStatus(new.status).value,
                    now,
                    now,
                    new.extracted_text,
                    new.is_reference,
                    Jsonb(new.metadata),
                ),
            )
            r = await cur.fetchone()
        return _row_to_document(r)

    async def get_by_id(self, document_id: int) -> Document | None:
        async with translate_errors("get_by_id", "document"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE id = %s", (document_id,)
            )
            r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def find_by_user(
        self, owner_id: str, options: QueryOptions | None = None
    ) -> list[Document]:
        suffix, params = build_query_suffix(options, DOCUMENT_SORTABLE)
        async with translate_errors("find_by_user", "document"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE owner_id = %s {suffix}",
                (owner_id, *params),
            )
            rows = await cur.fetchall()
        return [_row_to_document(r) for r in rows]

    async def find_by_hash(
        self, content_hash: str, owner_id: str | None = None
    ) -> Document | None:
        q = f"SELECT {_COLUMNS} FROM documents WHERE content_hash = %s"
        params: list[object] = [content_hash]
        if owner_id is not None:
            q += " AND owner_id = %s"
            params.append(owner_id)
        q += " ORDER BY id LIMIT 1"
        async with translate_errors("find_by_hash", "document"), self._pool.connection() as conn:
            cur = await conn.execute(q, params)
            r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def find_by_status(
        self, status: DocumentStatus, owner_id: str | None = None
    ) -> list[Document]:
        q = f"SELECT {_COLUMNS} FROM documents WHERE status = %s"
        params: list[object] = [DocumentStatus(status).value]
        if owner_id is not None:
            q += " AND owner_id = %s"
            params.append(owner_id)
        suffix, extra = build_query_suffix(None, DOCUMENT_SORTABLE)
        async with translate_errors("find_by_status", "document"), self._pool.connection() as conn:
            cur = await conn.execute(f"{q} {suffix}", (*params, *extra))
            rows = await cur.fetchall()
        return [_row_to_document(r) for r in rows]

    async def get_reference(self, owner_id: str) -> Document | None:
        suffix, params = build_query_suffix(QueryOptions(limit=1), DOCUMENT_SORTABLE)
        async with translate_errors("get_reference", "document"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE owner_id = %s AND is_reference {suffix}",
                (owner_id, *params),
            )
            r = await cur.fetchone()
        return _row_to_document(r) if r else None

    async def update(self, document_id: int, changes: Mapping[str, Any]) -> bool:
        checked = check_changes("document", changes, DOCUMENT_UPDATABLE, DocumentStatus)
        set_sql, params = build_set_clause(checked, frozenset({"metadata"}))
        async with translate_errors("update", "document"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"UPDATE documents SET {set_sql}, updated_at = %s WHERE id = %s",
                (*params, self._clock(), document_id),
            )
            return cur.rowcount > 0

    async def delete(self, document_id: int) -> bool:
        """Delete document; comparisons and queue items cascade."""
        async with translate_errors("delete", "document"), self._pool.connection() as conn:
            cur = await conn.execute("DELETE FROM documents WHERE id = %s", (document_id,))
            return cur.rowcount > 0
