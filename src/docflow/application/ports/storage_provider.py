"""File storage provider port."""

from typing import Protocol

from docflow.application.dto import (
    CopyOptions,
    DeleteOptions,
    DeleteResult,
    DownloadResult,
    ListOptions,
    ListResult,
    SignedUrlOperation,
    SignedUrlOptions,
    StorageFile,
    UploadOptions,
)


class StorageProvider(Protocol):
    """Raw object storage. Raises StorageError subclasses, never retries."""

    name: str

    async def initialize(self) -> None: ...

    def object_url(self, key: str) -> str: ...

    async def upload(
        self, key: str, data: bytes, options: UploadOptions | None = None
    ) -> StorageFile: ...

    async def download(self, key: str) -> DownloadResult: ...

    async def delete(self, key: str, options: DeleteOptions | None = None) -> DeleteResult: ...

    async def list(self, options: ListOptions | None = None) -> ListResult: ...

    async def exists(self, key: str) -> bool: ...

    async def head(self, key: str) -> StorageFile | None: ...

    async def copy(
        self, source_key: str, dest_key: str, options: CopyOptions | None = None
    ) -> StorageFile: ...

    async def get_signed_url(
        self,
        key: str,
        operation: SignedUrlOperation,
        options: SignedUrlOptions | None = None,
    ) -> str: ...
