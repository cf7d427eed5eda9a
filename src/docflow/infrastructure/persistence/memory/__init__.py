"""In-memory entity store backend."""

from docflow.infrastructure.persistence.memory.store import MemoryEntityStore

__all__ = ["MemoryEntityStore"]
