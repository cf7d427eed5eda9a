"""Retrying facade over a StorageProvider.

Every I/O operation except signed URL generation goes through the retry
policy. The facade has to be initialized with a provider before use.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

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
from docflow.application.ports import StorageProvider
from docflow.application.services.retry import RetryPolicy, run_with_retry
from docflow.domain.exceptions import StorageNotInitialized

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StorageFacade:
    """Uniform file operations with retry, backoff and caller deadlines."""

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._monotonic = monotonic
        self._provider: StorageProvider | None = None

    @property
    def is_initialized(self) -> bool:
        return self._provider is not None

    @property
    def provider(self) -> StorageProvider:
        if self._provider is None:
            raise StorageNotInitialized()
        return self._provider

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def initialize(self, provider: StorageProvider) -> None:
        await provider.initialize()
        self._provider = provider
        logger.info(
            "Storage initialized (provider=%s, max_attempts=%d, base_delay=%.2fs)",
            provider.name,
            self._policy.max_attempts,
            self._policy.base_delay,
        )

    async def shutdown(self) -> None:
        if self._provider is not None:
            logger.info("Storage shut down (provider=%s)", self._provider.name)
        self._provider = None

    def object_url(self, key: str) -> str:
        return self.provider.object_url(key)

    async def _run(
        self,
        operation: str,
        call: Callable[[StorageProvider], Awaitable[T]],
        timeout: float | None,
    ) -> T:
        provider = self.provider
        return await run_with_retry(
            operation,
            lambda: call(provider),
            self._policy,
            timeout=timeout,
            sleep=self._sleep,
            monotonic=self._monotonic,
        )

    async def upload(
        self,
        key: str,
        data: bytes,
        options: UploadOptions | None = None,
        *,
        timeout: float | None = None,
    ) -> StorageFile:
        return await self._run("upload", lambda p: p.upload(key, data, options), timeout)

    async def download(self, key: str, *, timeout: float | None = None) -> DownloadResult:
        return await self._run("download", lambda p: p.download(key), timeout)

    async def delete(
        self, key: str, options: DeleteOptions | None = None, *, timeout: float | None = None
    ) -> DeleteResult:
        return await self._run("delete", lambda p: p.delete(key, options), timeout)

    async def list(
        self, options: ListOptions | None = None, *, timeout: float | None = None
    ) -> ListResult:
        return await self._run("list", lambda p: p.list(options), timeout)

    async def exists(self, key: str, *, timeout: float | None = None) -> bool:
        return await self._run("exists", lambda p: p.exists(key), timeout)

    async def head(self, key: str, *, timeout: float | None = None) -> StorageFile | None:
        return await self._run("head", lambda p: p.head(key), timeout)

    async def copy(
        self,
        source_key: str,
        dest_key: str,
        options: CopyOptions | None = None,
        *,
        timeout: float | None = None,
    ) -> StorageFile:
        return await self._run(
            "copy", lambda p: p.copy(source_key, dest_key, options), timeout
        )

    async def get_signed_url(
        self,
        key: str,
        operation: SignedUrlOperation = SignedUrlOperation.GET,
        options: SignedUrlOptions | None = None,
    ) -> str:
        """Signed URL for direct access. Not retried."""
        return await self.provider.get_signed_url(key, operation, options)
