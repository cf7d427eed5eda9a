"""Queue item status."""

from enum import StrEnum


class QueueStatus(StrEnum):
    """State of a queue item.

    QUEUED -> PROCESSING (claimed) -> DONE | FAILED. PROCESSING goes back to
    QUEUED on retry or when a stale claim is swept.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (QueueStatus.DONE, QueueStatus.FAILED)
