"""Document entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from docflow.domain.value_objects import DocumentStatus


@dataclass
class Document:
    """Uploaded file record with content hash for per-owner deduplication."""

    id: int
    storage_key: str
    original_name: str
    content_hash: str
    storage_url: str
    size: int
    owner_id: str
    status: DocumentStatus
    created_at: datetime
    updated_at: datetime
    extracted_text: str | None = None
    is_reference: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def file_type(self) -> str:
        """Lowercase extension of the original file name."""
        _, _, ext = self.original_name.rpartition(".")
        return ext.lower() if ext != self.original_name else "unknown"
