"""Application services: task queue, storage facade and retry policy."""

from docflow.application.services.retry import (
    RetryPolicy,
    classify_error,
    is_retryable,
    run_with_retry,
)
from docflow.application.services.storage_facade import StorageFacade
from docflow.application.services.task_queue import TaskQueue

__all__ = [
    "RetryPolicy",
    "StorageFacade",
    "TaskQueue",
    "classify_error",
    "is_retryable",
    "run_with_retry",
]
