"""File storage DTOs shared by the facade and its providers."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class SignedUrlOperation(StrEnum):
    GET = "get"
    PUT = "put"


class MetadataDirective(StrEnum):
    """Whether a copy keeps the source metadata or replaces it."""

    COPY = "COPY"
    REPLACE = "REPLACE"


@dataclass
class StorageFile:
    """Object description returned by upload, head, copy and list."""

    key: str
    size: int
    last_modified: datetime | None = None
    content_type: str | None = None
    etag: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class DownloadResult:
    data: bytes
    content_type: str | None = None
    etag: str | None = None
    last_modified: datetime | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class UploadOptions:
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class ListOptions:
    """S3-style listing: keys after ``start_after`` that start with ``prefix``.

    With a ``delimiter``, keys that contain it after the prefix are rolled up
    into ``common_prefixes``.
    """

    prefix: str = ""
    delimiter: str | None = None
    max_keys: int = 1000
    start_after: str | None = None


@dataclass
class ListResult:
    files: list[StorageFile] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False


@dataclass
class DeleteOptions:
    """``quiet`` reports failures in the result instead of raising."""

    quiet: bool = False


@dataclass
class DeleteError:
    key: str
    code: str | None
    message: str


@dataclass
class DeleteResult:
    deleted: bool
    errors: list[DeleteError] = field(default_factory=list)


@dataclass
class CopyOptions:
    metadata_directive: MetadataDirective = MetadataDirective.COPY
    content_type: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class SignedUrlOptions:
    expires: int = 3600
    content_type: str | None = None
