"""PostgreSQL queue item repository implementation."""

from datetime import datetime

from psycopg_pool import AsyncConnectionPool

from docflow.application.dto import NewQueueItem
from docflow.application.ports.repositories.queue_item_repository import STALE_CLAIM_MESSAGE
from docflow.domain.clock import Clock
from docflow.domain.entities import QueueItem
from docflow.domain.value_objects import QueueStatus, TaskType
from docflow.infrastructure.persistence.postgres.errors import translate_errors

_COLUMNS = (
    "id, document_id, task_type, priority, status, attempts, max_attempts, "
    "created_at, updated_at, scheduled_at, claimed_at, completed_at, error_message"
)

# SKIP LOCKED lets concurrent claimers pass over a row another transaction
# is flipping instead of blocking on it or returning it twice.
_CLAIM_SQL = f"""
UPDATE processing_queue
SET status = 'processing', claimed_at = %(now)s, updated_at = %(now)s
WHERE id = (
    SELECT id FROM processing_queue
    WHERE status = 'queued' AND (scheduled_at IS NULL OR scheduled_at <= %(now)s)
    ORDER BY priority ASC, created_at ASC, id ASC
    LIMIT 1
    FOR UPDATE SKIP LOCKED
)
RETURNING {_COLUMNS}
"""

# Right-hand side expressions see the pre-update row.
_RELEASE_STALE_SQL = """
UPDATE processing_queue
SET attempts = attempts + 1,
    error_message = %(message)s,
    claimed_at = NULL,
    updated_at = %(now)s,
    status = CASE WHEN attempts + 1 >= max_attempts THEN 'failed' ELSE 'queued' END,
    completed_at = CASE WHEN attempts + 1 >= max_attempts THEN %(now)s ELSE completed_at END,
    scheduled_at = CASE WHEN attempts + 1 >= max_attempts THEN scheduled_at ELSE NULL END
WHERE status = 'processing' AND claimed_at < %(cutoff)s
RETURNING status
"""


def _row_to_item(r: tuple) -> QueueItem:
    return QueueItem(
        id=r[0],
        document_id=r[1],
        task_type=TaskType(r[2]),
        priority=r[3],
        status=QueueStatus(r[4]),
        attempts=r[5],
        max_attempts=r[6],
        created_at=r[7],
        updated_at=r[8],
        scheduled_at=r[9],
        claimed_at=r[10],
        completed_at=r[11],
        error_message=r[12],
    )


class PostgresQueueItemRepository:
    """Queue item repository implementation."""

    def __init__(self, pool: AsyncConnectionPool, clock: Clock) -> None:
        self._pool = pool
        self._clock = clock

    async def create(self, new: NewQueueItem) -> QueueItem:
        now = self._clock()
        async with translate_errors("create", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                "INSERT INTO processing_queue (document_id, task_type, priority, status, "
                "attempts, max_attempts, created_at, updated_at, scheduled_at) "
                f"VALUES (%s, %s, %s, 'queued', 0, %s, %s, %s, %s) RETURNING {_COLUMNS}",
                (
                    new.document_id,
                    TaskType(new.task_type).value,
                    new.priority,
                    new.max_attempts,
                    now,
                    now,
                    new.scheduled_at,
                ),
            )
            r = await cur.fetchone()
        return _row_to_item(r)

    async def get_by_id(self, item_id: int) -> QueueItem | None:
        async with translate_errors("get_by_id", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM processing_queue WHERE id = %s", (item_id,)
            )
            r = await cur.fetchone()
        return _row_to_item(r) if r else None

    async def claim_next(self, now: datetime) -> QueueItem | None:
        async with translate_errors("claim_next", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(_CLAIM_SQL, {"now": now})
            r = await cur.fetchone()
        return _row_to_item(r) if r else None

    async def update_status(
        self, item_id: int, status: QueueStatus, completed_at: datetime | None = None
    ) -> bool:
        async with translate_errors("update_status", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                "UPDATE processing_queue SET status = %s, "
                "completed_at = COALESCE(%s, completed_at), updated_at = %s WHERE id = %s",
                (QueueStatus(status).value, completed_at, self._clock(), item_id),
            )
            return cur.rowcount > 0

    async def record_error(self, item_id: int, message: str) -> QueueItem | None:
        async with translate_errors("record_error", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                "UPDATE processing_queue SET attempts = attempts + 1, error_message = %s, "
                f"updated_at = %s WHERE id = %s RETURNING {_COLUMNS}",
                (message, self._clock(), item_id),
            )
            r = await cur.fetchone()
        return _row_to_item(r) if r else None

    async def requeue(self, item_id: int, scheduled_at: datetime) -> bool:
        async with translate_errors("requeue", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                "UPDATE processing_queue SET status = 'queued', scheduled_at = %s, "
                "claimed_at = NULL, completed_at = NULL, updated_at = %s "
                "WHERE id = %s AND attempts < max_attempts",
                (scheduled_at, self._clock(), item_id),
            )
            return cur.rowcount > 0

    async def release_stale_claims(self, cutoff: datetime, now: datetime) -> tuple[int, int]:
        async with translate_errors("release_stale_claims", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                _RELEASE_STALE_SQL,
                {"message": STALE_CLAIM_MESSAGE, "now": now, "cutoff": cutoff},
            )
            rows = await cur.fetchall()
        failed = sum(1 for (status,) in rows if status == QueueStatus.FAILED.value)
        return len(rows) - failed, failed

    async def find_by_document(self, document_id: int) -> list[QueueItem]:
        async with translate_errors("find_by_document", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(
                f"SELECT {_COLUMNS} FROM processing_queue WHERE document_id = %s "
                "ORDER BY created_at DESC, id ASC",
                (document_id,),
            )
            rows = await cur.fetchall()
        return [_row_to_item(r) for r in rows]

    async def find_all(self, status: QueueStatus | None = None) -> list[QueueItem]:
        q = f"SELECT {_COLUMNS} FROM processing_queue"
        params: list[object] = []
        if status is not None:
            q += " WHERE status = %s"
            params.append(QueueStatus(status).value)
        q += " ORDER BY created_at DESC, id ASC"
        async with translate_errors("find_all", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute(q, params)
            rows = await cur.fetchall()
        return [_row_to_item(r) for r in rows]

    async def delete_all(self) -> int:
        async with translate_errors("delete_all", "queue_item"), self._pool.connection() as conn:
            cur = await conn.execute("DELETE FROM processing_queue")
            return cur.rowcount
