"""Entity store port - one object per backend, owning all repositories."""

from typing import Protocol

from docflow.application.ports.repositories import (
    ComparisonRepository,
    DocumentRepository,
    QueueItemRepository,
)


class EntityStore(Protocol):
    """Entity store with an explicit lifecycle."""

    @property
    def documents(self) -> DocumentRepository: ...

    @property
    def comparisons(self) -> ComparisonRepository: ...

    @property
    def queue_items(self) -> QueueItemRepository: ...

    async def initialize(self) -> None: ...

    async def shutdown(self) -> None: ...

    async def migrate(self) -> None: ...

    async def ping(self) -> bool: ...
