"""Domain value objects."""

from docflow.domain.value_objects.comparison_status import ComparisonStatus
from docflow.domain.value_objects.content_hash import ContentHash
from docflow.domain.value_objects.document_status import DocumentStatus
from docflow.domain.value_objects.queue_status import QueueStatus
from docflow.domain.value_objects.task_type import TaskType

__all__ = [
    "ComparisonStatus",
    "ContentHash",
    "DocumentStatus",
    "QueueStatus",
    "TaskType",
]
