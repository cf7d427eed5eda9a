"""PostgreSQL comparison repository implementation."""

from collections.abc import Mapping
from typing import Any

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from docflow.application.dto import NewComparison, QueryOptions
from docflow.application.dto.record_fields import (
    COMPARISON_SORTABLE,
    COMPARISON_UPDATABLE,
    check_changes,
)
from docflow.domain.clock import Clock
from docflow.domain.entities import Comparison
from docflow.domain.value_objects import ComparisonStatus
from docflow.infrastructure.persistence.postgres.errors import translate_errors
from docflow.infrastructure.persistence.postgres.ordering import (
    build_query_suffix,
    build_set_clause,
)

_COLUMNS = (
    "id, document1_id, document2_id, owner_id, status, created_at, updated_at, "
    "summary, similarity_score, key_differences, suggestions, result_url, "
    "error_message, processing_time_ms"
)

_JSON_FIELDS = frozenset({"key_differences", "suggestions"})


def _row_to_comparison(r: tuple) -> Comparison:
    return Comparison(
        id=r[0],
        document1_id=r[1],
        document2_id=r[2],
        owner_id=r[3],
        status=ComparisonStatus(r[4]),
        created_at=r[5],
        updated_at=r[6],
        summary=r[7],
        similarity_score=r[8],
        key_differences=r[9] or [],
        suggestions=r[10] or [],
        result_url=r[11],
        error_message=r[12],
        processing_time_ms=r[13],
    )


class PostgresComparisonRepository:
    """Comparison repository implementation."""

    def __init__(self, pool: AsyncConnectionPool, clock: Clock) -> None:
        self._pool = pool
        self._clock = clock

    async def create(self, new: NewComparison) -> Comparison:
        now = self._clock()
        async with translate_errors("create", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO comparisons (document1_id, document2_id, owner_id, status, "
                "created_at, updated_at, summary, similarity_score, key_differences, "
                "suggestions, result_url, error_message, processing_time_ms) "
                "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s) "
                f"RETURNING {_COLUMNS}",
                (
                    new.document1_id,
                    new.document2_id,
                    new.owner_id,
                    ComparisonStatus(new.status).value,
                    now,
                    now,
                    new.summary,
                    new.similarity_score,
                    Jsonb(new.key_differences),
                    Jsonb(new.suggestions),
                    new.result_url,
                    new.error_message,
                    new.processing_time_ms,
                ),
            )
            r = await cur.fetchone()
        return _row_to_comparison(r)

    async def get_by_id(self, comparison_id: int) -> Comparison | None:
        async with translate_errors("get_by_id", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM comparisons WHERE id = %s", (comparison_id,)
            )
            r = await cur.fetchone()
        return _row_to_comparison(r) if r else None

    async def find_by_user(
        self, owner_id: str, options: QueryOptions | None = None
    ) -> list[Comparison]:
        suffix, params = build_query_suffix(options, COMPARISON_SORTABLE)
        async with translate_errors("find_by_user", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM comparisons WHERE owner_id = %s {suffix}",
                (owner_id, *params),
            )
            rows = await cur.fetchall()
        return [_row_to_comparison(r) for r in rows]

    async def find_by_documents(
        self, document1_id: int, document2_id: int
    ) -> Comparison | None:
        """Comparison of the pair in either order, oldest first."""
        async with translate_errors("find_by_documents", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM comparisons "
                "WHERE (document1_id = %s AND document2_id = %s) "
                "OR (document1_id = %s AND document2_id = %s) "
                "ORDER BY id LIMIT 1",
                (document1_id, document2_id, document2_id, document1_id),
            )
            r = await cur.fetchone()
        return _row_to_comparison(r) if r else None

    async def find_by_status(
        self, status: ComparisonStatus, owner_id: str | None = None
    ) -> list[Comparison]:
        q = f"SELECT {_COLUMNS} FROM comparisons WHERE status = %s"
        params: list[object] = [ComparisonStatus(status).value]
        if owner_id is not None:
            q += " AND owner_id = %s"
            params.append(owner_id)
        suffix, extra = build_query_suffix(None, COMPARISON_SORTABLE)
        async with translate_errors("find_by_status", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute(f"{q} {suffix}", (*params, *extra))
            rows = await cur.fetchall()
        return [_row_to_comparison(r) for r in rows]

    async def update(self, comparison_id: int, changes: Mapping[str, Any]) -> bool:
        checked = check_changes(
            "comparison", changes, COMPARISON_UPDATABLE, ComparisonStatus
        )
        set_sql, params = build_set_clause(checked, _JSON_FIELDS)
        async with translate_errors("update", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"UPDATE comparisons SET {set_sql}, updated_at = %s WHERE id = %s",
                (*params, self._clock(), comparison_id),
            )
            return cur.rowcount > 0

    async def delete(self, comparison_id: int) -> bool:
        async with translate_errors("delete", "comparison"), self._pool.connection() as conn:
            cur = await conn.execute("DELETE FROM comparisons WHERE id = %s", (comparison_id,))
            return cur.rowcount > 0
