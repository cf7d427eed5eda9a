"""Repository ports."""

from docflow.application.ports.repositories.comparison_repository import (
    ComparisonRepository,
)
from docflow.application.ports.repositories.document_repository import (
    DocumentRepository,
)
from docflow.application.ports.repositories.queue_item_repository import (
    QueueItemRepository,
)

__all__ = [
    "ComparisonRepository",
    "DocumentRepository",
    "QueueItemRepository",
]
