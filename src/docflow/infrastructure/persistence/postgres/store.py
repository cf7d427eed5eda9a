"""Durable entity store on PostgreSQL."""

import asyncio
import logging

from psycopg_pool import AsyncConnectionPool

from docflow.domain.clock import Clock, utc_now
from docflow.infrastructure.persistence.postgres.comparison_repository import (
    PostgresComparisonRepository,
)
from docflow.infrastructure.persistence.postgres.connection import create_pool
from docflow.infrastructure.persistence.postgres.document_repository import (
    PostgresDocumentRepository,
)
from docflow.infrastructure.persistence.postgres.errors import translate_errors
from docflow.infrastructure.persistence.postgres.queue_item_repository import (
    PostgresQueueItemRepository,
)
from docflow.migrations import upgrade_to_head

logger = logging.getLogger(__name__)


class PostgresEntityStore:
    """Entity store over one psycopg connection pool.

    Each repository call checks a connection out of the pool and commits on
    exit, so every operation is its own transaction.
    """

    backend = "postgres"

    def __init__(
        self,
        database_url: str,
        *,
        min_size: int = 2,
        max_size: int = 10,
        clock: Clock = utc_now,
        pool: AsyncConnectionPool | None = None,
    ) -> None:
        self._database_url = database_url
        self._pool = pool or create_pool(database_url, min_size=min_size, max_size=max_size)
        self._documents = PostgresDocumentRepository(self._pool, clock)
        self._comparisons = PostgresComparisonRepository(self._pool, clock)
        self._queue_items = PostgresQueueItemRepository(self._pool, clock)

    @property
    def documents(self) -> PostgresDocumentRepository:
        return self._documents

    @property
    def comparisons(self) -> PostgresComparisonRepository:
        return self._comparisons

    @property
    def queue_items(self) -> PostgresQueueItemRepository:
        return self._queue_items

    async def initialize(self) -> None:
        async with translate_errors("initialize", "store"):
            await self._pool.open(wait=True)
        logger.info("PostgreSQL pool opened (min=%d, max=%d)", self._pool.min_size, self._pool.max_size)

    async def shutdown(self) -> None:
        await self._pool.close()
        logger.info("PostgreSQL pool closed")

    async def migrate(self) -> None:
        """Apply Alembic migrations up to head. Safe to run repeatedly."""
        logger.info("Running database migrations")
        await asyncio.to_thread(upgrade_to_head, self._database_url)

    async def ping(self) -> bool:
        async with translate_errors("ping", "store"), self._pool.connection() as conn:
            cur = await conn.execute("SELECT 1")
            r = await cur.fetchone()
        return r is not None and r[0] == 1
