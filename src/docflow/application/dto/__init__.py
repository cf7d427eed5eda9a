"""Application DTOs."""

from docflow.application.dto.comparison_dto import CompareInput, NewComparison
from docflow.application.dto.document_dto import (
    DocumentDownload,
    DocumentUploadInput,
    ExtractionRequest,
    ExtractionRequestStatus,
    ExtractionStatus,
    NewDocument,
    UploadResult,
)
from docflow.application.dto.extraction_dto import ExtractedText
from docflow.application.dto.query_options import OrderBy, QueryOptions, SortDirection
from docflow.application.dto.queue_dto import (
    NewQueueItem,
    QueueItemSummary,
    QueueStats,
    TaskOutcome,
    TaskResult,
)
from docflow.application.dto.storage_dto import (
    CopyOptions,
    DeleteError,
    DeleteOptions,
    DeleteResult,
    DownloadResult,
    ListOptions,
    ListResult,
    MetadataDirective,
    SignedUrlOperation,
    SignedUrlOptions,
    StorageFile,
    UploadOptions,
)

__all__ = [
    "CompareInput",
    "CopyOptions",
    "DeleteError",
    "DeleteOptions",
    "DeleteResult",
    "DocumentDownload",
    "DocumentUploadInput",
    "DownloadResult",
    "ExtractedText",
    "ExtractionRequest",
    "ExtractionRequestStatus",
    "ExtractionStatus",
    "ListOptions",
    "ListResult",
    "MetadataDirective",
    "NewComparison",
    "NewDocument",
    "NewQueueItem",
    "OrderBy",
    "QueryOptions",
    "QueueItemSummary",
    "QueueStats",
    "SignedUrlOperation",
    "SignedUrlOptions",
    "SortDirection",
    "StorageFile",
    "TaskOutcome",
    "TaskResult",
    "UploadOptions",
]
