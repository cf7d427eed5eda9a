"""Domain entities."""

from docflow.domain.entities.comparison import Comparison
from docflow.domain.entities.document import Document
from docflow.domain.entities.queue_item import QueueItem

__all__ = [
    "Comparison",
    "Document",
    "QueueItem",
]
