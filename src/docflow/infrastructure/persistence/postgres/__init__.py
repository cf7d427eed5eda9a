"""PostgreSQL entity store backend."""

from docflow.infrastructure.persistence.postgres.store import PostgresEntityStore

__all__ = ["PostgresEntityStore"]
