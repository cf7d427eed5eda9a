"""Entity store backend selection."""

import logging

from docflow.application.ports import EntityStore
from docflow.config import Settings
from docflow.domain.clock import Clock, utc_now

logger = logging.getLogger(__name__)


def create_entity_store(settings: Settings, clock: Clock = utc_now) -> EntityStore:
    """Build the store named by ``settings.persistence_backend``.

    This is the only place that looks at the backend name.
    """
    if settings.persistence_backend == "postgres":
        from docflow.infrastructure.persistence.postgres import PostgresEntityStore

        logger.info("Using postgres entity store")
        return PostgresEntityStore(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            clock=clock,
        )
    from docflow.infrastructure.persistence.memory import MemoryEntityStore

    logger.info("Using memory entity store")
    return MemoryEntityStore(clock=clock)
