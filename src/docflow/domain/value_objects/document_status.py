"""Document lifecycle status."""

from enum import StrEnum


class DocumentStatus(StrEnum):
    """Status of an uploaded document as extraction proceeds."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"
    ERROR = "error"
