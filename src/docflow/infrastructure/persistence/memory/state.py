"""Shared in-process state for the memory entity store."""

import asyncio
import copy
from typing import TypeVar

from docflow.domain.entities import Comparison, Document, QueueItem

T = TypeVar("T")


class MemoryState:
    """Maps keyed by id, per-kind id counters and the lock that guards them.

    One instance per store. Records handed in or out are deep copies.
    """

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.documents: dict[int, Document] = {}
        self.comparisons: dict[int, Comparison] = {}
        self.queue_items: dict[int, QueueItem] = {}
        self._counters: dict[str, int] = {}

    def next_id(self, kind: str) -> int:
        value = self._counters.get(kind, 0) + 1
        self._counters[kind] = value
        return value

    def reset(self) -> None:
        self.documents.clear()
        self.comparisons.clear()
        self.queue_items.clear()
        self._counters.clear()


def snapshot(record: T) -> T:
    """Detached copy of a stored record."""
    return copy.deepcopy(record)
