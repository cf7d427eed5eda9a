"""Document DTOs."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from docflow.domain.entities import Document, QueueItem
from docflow.domain.value_objects import DocumentStatus


@dataclass
class NewDocument:
    """Fields for creating a document. The store assigns id and timestamps."""

    storage_key: str
    original_name: str
    content_hash: str
    storage_url: str
    size: int
    owner_id: str
    status: DocumentStatus = DocumentStatus.UPLOADED
    extracted_text: str | None = None
    is_reference: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class DocumentUploadInput:
    """Input for uploading a document."""

    owner_id: str
    filename: str
    data: bytes
    content_type: str | None = None
    is_reference: bool = False


@dataclass
class UploadResult:
    """Output of an upload: the stored record and what happened to it."""

    document: Document
    duplicate: bool = False
    queue_item: QueueItem | None = None


@dataclass
class DocumentDownload:
    """A document's stored bytes, ready to send back to its owner."""

    document: Document
    data: bytes
    content_type: str


class ExtractionRequestStatus(StrEnum):
    QUEUED = "queued"
    ALREADY_QUEUED = "already_queued"
    ALREADY_EXTRACTED = "already_extracted"


@dataclass
class ExtractionRequest:
    """Outcome of asking for a document's text to be extracted."""

    status: ExtractionRequestStatus
    document: Document
    queue_item: QueueItem | None = None


@dataclass
class ExtractionStatus:
    """A document together with its text extraction tasks, newest first."""

    document: Document
    tasks: list[QueueItem] = field(default_factory=list)
