"""S3 storage provider (boto3).

boto3 is blocking, so every call runs in a worker thread. botocore errors are
translated into the storage error taxonomy so the facade can decide what to
retry.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from docflow.application.dto import (
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
from docflow.application.services.retry import THROTTLE_CODES
from docflow.domain.exceptions import (
    ObjectNotFound,
    StorageAccessDenied,
    StorageConnectionError,
    StorageError,
    StorageThrottled,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONTENT_TYPE = "application/octet-stream"
_NOT_FOUND = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})
_ACCESS_DENIED = frozenset({"AccessDenied", "Forbidden", "403"})
_CONNECTION_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)


def translate_client_error(exc: ClientError, key: str, operation: str) -> StorageError:
    """Map a botocore ClientError to a StorageError subclass."""
    error = exc.response.get("Error", {})
    code = str(error.get("Code", "")) or None
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    message = f"S3 {operation} failed for {key}: {error.get('Message') or code}"
    if code in _NOT_FOUND:
        return ObjectNotFound(key, code=code, operation=operation)
    if code in _ACCESS_DENIED:
        return StorageAccessDenied(
            message, code=code, status_code=status, key=key, operation=operation
        )
    if code in THROTTLE_CODES or status == 429:
        return StorageThrottled(
            message, code=code, status_code=status, key=key, operation=operation
        )
    return StorageError(message, code=code, status_code=status, key=key, operation=operation)


def translate_botocore_error(exc: BotoCoreError, key: str, operation: str) -> StorageError:
    message = f"S3 {operation} failed for {key}: {exc}"
    if isinstance(exc, _CONNECTION_ERRORS):
        return StorageConnectionError(
            message, code=type(exc).__name__, key=key, operation=operation
        )
    return StorageError(message, code=type(exc).__name__, key=key, operation=operation)


def _etag(value: str | None) -> str | None:
    return value.strip('"') if value else None


class S3StorageProvider:
    """StorageProvider on an S3 bucket."""

    name = "s3"

    def __init__(
        self,
        bucket: str,
        *,
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    @property
    def client(self) -> Any:
        return self._client

    async def initialize(self) -> None:
        if not self._bucket:
            raise StorageError("S3 storage requested but no bucket is configured", code="Config")
        logger.info("S3 storage using bucket %s", self._bucket)

    def object_url(self, key: str) -> str:
        return f"s3://{self._bucket}/{key}"

    async def _call(self, operation: str, key: str, fn: Callable[[], T]) -> T:
        def run() -> T:
            try:
                return fn()
            except ClientError as e:
                raise translate_client_error(e, key, operation) from e
            except BotoCoreError as e:
                raise translate_botocore_error(e, key, operation) from e

        return await asyncio.to_thread(run)

    def _head(self, key: str) -> StorageFile | None:
        try:
            r = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND:
                return None
            raise
        return StorageFile(
            key=key,
            size=r.get("ContentLength", 0),
            last_modified=r.get("LastModified"),
            content_type=r.get("ContentType"),
            etag=_etag(r.get("ETag")),
            metadata=dict(r.get("Metadata") or {}),
        )

    async def upload(
        self, key: str, data: bytes, options: UploadOptions | None = None
    ) -> StorageFile:
        options = options or UploadOptions()
        content_type = options.content_type or DEFAULT_CONTENT_TYPE

        def put() -> StorageFile:
            r = self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata={k: str(v) for k, v in options.metadata.items()},
            )
            return StorageFile(
                key=key,
                size=len(data),
                content_type=content_type,
                etag=_etag(r.get("ETag")),
                metadata=dict(options.metadata),
            )

        return await self._call("upload", key, put)

    async def download(self, key: str) -> DownloadResult:
        def get() -> DownloadResult:
            r = self._client.get_object(Bucket=self._bucket, Key=key)
            return DownloadResult(
                data=r["Body"].read(),
                content_type=r.get("ContentType"),
                etag=_etag(r.get("ETag")),
                last_modified=r.get("LastModified"),
                metadata=dict(r.get("Metadata") or {}),
            )

        return await self._call("download", key, get)

    async def delete(self, key: str, options: DeleteOptions | None = None) -> DeleteResult:
        """Delete an object. A missing object yields deleted=False."""
        options = options or DeleteOptions()

        def remove() -> DeleteResult:
            if self._head(key) is None:
                return DeleteResult(deleted=False)
            self._client.delete_object(Bucket=self._bucket, Key=key)
            return DeleteResult(deleted=True)

        try:
            return await self._call("delete", key, remove)
        except StorageError as e:
            if not options.quiet:
                raise
            return DeleteResult(
                deleted=False, errors=[DeleteError(key=key, code=e.code, message=str(e))]
            )

    async def list(self, options: ListOptions | None = None) -> ListResult:
        options = options or ListOptions()
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Prefix": options.prefix,
            "MaxKeys": options.max_keys,
        }
        if options.delimiter:
            params["Delimiter"] = options.delimiter
        if options.start_after:
            params["StartAfter"] = options.start_after

        def scan() -> ListResult:
            r = self._client.list_objects_v2(**params)
            return ListResult(
                files=[
                    StorageFile(
                        key=obj["Key"],
                        size=obj.get("Size", 0),
                        last_modified=obj.get("LastModified"),
                        etag=_etag(obj.get("ETag")),
                    )
                    for obj in r.get("Contents", [])
                ],
                common_prefixes=sorted(p["Prefix"] for p in r.get("CommonPrefixes", [])),
                is_truncated=bool(r.get("IsTruncated")),
            )

        return await self._call("list", options.prefix, scan)

    async def exists(self, key: str) -> bool:
        return await self._call("exists", key, lambda: self._head(key) is not None)

    async def head(self, key: str) -> StorageFile | None:
        return await self._call("head", key, lambda: self._head(key))

    async def copy(
        self, source_key: str, dest_key: str, options: CopyOptions | None = None
    ) -> StorageFile:
        options = options or CopyOptions()
        params: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": dest_key,
            "CopySource": {"Bucket": self._bucket, "Key": source_key},
            "MetadataDirective": options.metadata_directive.value,
        }
        if options.metadata_directive is MetadataDirective.REPLACE:
            params["Metadata"] = {k: str(v) for k, v in options.metadata.items()}
            if options.content_type:
                params["ContentType"] = options.content_type

        def do_copy() -> StorageFile:
            self._client.copy_object(**params)
            described = self._head(dest_key)
            if described is None:
                raise ObjectNotFound(dest_key, operation="copy")
            return described

        return await self._call("copy", source_key, do_copy)

    async def get_signed_url(
        self,
        key: str,
        operation: SignedUrlOperation,
        options: SignedUrlOptions | None = None,
    ) -> str:
        options = options or SignedUrlOptions()
        method = "get_object" if SignedUrlOperation(operation) is SignedUrlOperation.GET else "put_object"
        params: dict[str, Any] = {"Bucket": self._bucket, "Key": key}
        if options.content_type and method == "put_object":
            params["ContentType"] = options.content_type
        return await self._call(
            "get_signed_url",
            key,
            lambda: self._client.generate_presigned_url(
                method, Params=params, ExpiresIn=options.expires
            ),
        )
