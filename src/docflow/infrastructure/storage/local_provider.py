"""Local filesystem storage provider.

Stores objects as plain files under a base directory. Each file has a JSON
sidecar (``<file>.meta.json``) holding content type, size, upload time,
original name, MD5 etag and custom metadata, so head/list/download can
answer the same questions S3 does.
"""

import asyncio
import errno
import hashlib
import hmac
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, quote, unquote, urlsplit

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
from docflow.domain.clock import Clock, utc_now
from docflow.domain.exceptions import ObjectNotFound, StorageAccessDenied, StorageError

logger = logging.getLogger(__name__)

METADATA_SUFFIX = ".meta.json"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _translate_os_error(exc: OSError, key: str, operation: str) -> StorageError:
    if isinstance(exc, FileNotFoundError | IsADirectoryError | NotADirectoryError):
        return ObjectNotFound(key, operation=operation)
    if isinstance(exc, PermissionError):
        return StorageAccessDenied(
            f"Permission denied for {key}: {exc}",
            code="AccessDenied",
            status_code=403,
            key=key,
            operation=operation,
        )
    code = errno.errorcode.get(exc.errno) if exc.errno else None
    return StorageError(
        f"Failed to {operation} {key}: {exc}", code=code, key=key, operation=operation
    )


class LocalStorageProvider:
    """StorageProvider on the local filesystem. Blocking I/O runs in threads."""

    name = "local"

    def __init__(
        self, base_path: str | Path, signing_secret: str = "change-me", clock: Clock = utc_now
    ) -> None:
        self._base = Path(base_path).resolve()
        self._secret = signing_secret.encode()
        self._clock = clock

    @property
    def base_path(self) -> Path:
        return self._base

    async def initialize(self) -> None:
        await asyncio.to_thread(self._base.mkdir, parents=True, exist_ok=True)

    def object_url(self, key: str) -> str:
        return f"local://{key}"

    # --- paths and sidecars ---

    def _path(self, key: str) -> Path:
        """Resolve a key to a file path, rejecting keys that leave the base directory."""
        if not key or key.startswith("/") or key.endswith(METADATA_SUFFIX):
            raise StorageError(
                f"Invalid storage key: {key!r}", code="InvalidKey", status_code=400, key=key
            )
        path = (self._base / key).resolve()
        if path == self._base or not path.is_relative_to(self._base):
            raise StorageError(
                f"Storage key escapes base directory: {key!r}",
                code="InvalidKey",
                status_code=400,
                key=key,
            )
        return path

    @staticmethod
    def _meta_path(path: Path) -> Path:
        return path.with_name(path.name + METADATA_SUFFIX)

    def _load_meta(self, path: Path) -> dict[str, Any]:
        try:
            return json.loads(self._meta_path(path).read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Corrupt metadata sidecar for %s", path)
            return {}

    def _save_meta(self, path: Path, meta: dict[str, Any]) -> None:
        self._meta_path(path).write_text(json.dumps(meta, indent=2), encoding="utf-8")

    def _describe(self, key: str, path: Path) -> StorageFile:
        stat = path.stat()
        meta = self._load_meta(path)
        uploaded_at = meta.get("uploaded_at")
        return StorageFile(
            key=key,
            size=stat.st_size,
            last_modified=datetime.fromisoformat(uploaded_at) if uploaded_at else None,
            content_type=meta.get("content_type"),
            etag=meta.get("etag"),
            metadata=dict(meta.get("custom") or {}),
        )

    def _walk_keys(self) -> list[str]:
        if not self._base.exists():
            return []
        return sorted(
            p.relative_to(self._base).as_posix()
            for p in self._base.rglob("*")
            if p.is_file() and not p.name.endswith(METADATA_SUFFIX)
        )

    def _prune_empty_dirs(self, start: Path) -> None:
        current = start
        while current != self._base and current.is_relative_to(self._base):
            try:
                current.rmdir()
            except OSError:
                return
            current = current.parent

    # --- operations ---

    async def upload(
        self, key: str, data: bytes, options: UploadOptions | None = None
    ) -> StorageFile:
        options = options or UploadOptions()
        path = self._path(key)
        now = self._clock()
        meta = {
            "content_type": options.content_type or DEFAULT_CONTENT_TYPE,
            "size": len(data),
            "uploaded_at": now.isoformat(),
            "original_name": options.metadata.get("original_name", path.name),
            "etag": hashlib.md5(data, usedforsecurity=False).hexdigest(),
            "custom": dict(options.metadata),
        }

        def write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            self._save_meta(path, meta)

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            raise _translate_os_error(e, key, "upload") from e
        return StorageFile(
            key=key,
            size=len(data),
            last_modified=now,
            content_type=meta["content_type"],
            etag=meta["etag"],
            metadata=dict(options.metadata),
        )

    async def download(self, key: str) -> DownloadResult:
        path = self._path(key)

        def read() -> tuple[bytes, dict[str, Any]]:
            return path.read_bytes(), self._load_meta(path)

        try:
            data, meta = await asyncio.to_thread(read)
        except OSError as e:
            raise _translate_os_error(e, key, "download") from e
        uploaded_at = meta.get("uploaded_at")
        return DownloadResult(
            data=data,
            content_type=meta.get("content_type"),
            etag=meta.get("etag"),
            last_modified=datetime.fromisoformat(uploaded_at) if uploaded_at else None,
            metadata=dict(meta.get("custom") or {}),
        )

    async def delete(self, key: str, options: DeleteOptions | None = None) -> DeleteResult:
        options = options or DeleteOptions()
        path = self._path(key)

        def remove() -> bool:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            self._meta_path(path).unlink(missing_ok=True)
            self._prune_empty_dirs(path.parent)
            return True

        try:
            deleted = await asyncio.to_thread(remove)
        except OSError as e:
            error = _translate_os_error(e, key, "delete")
            if not options.quiet:
                raise error from e
            return DeleteResult(
                deleted=False,
                errors=[DeleteError(key=key, code=error.code, message=str(error))],
            )
        return DeleteResult(deleted=deleted)

    async def list(self, options: ListOptions | None = None) -> ListResult:
        options = options or ListOptions()

        def scan() -> ListResult:
            result = ListResult()
            prefixes: set[str] = set()
            for key in self._walk_keys():
                if options.start_after is not None and key <= options.start_after:
                    continue
                if not key.startswith(options.prefix):
                    continue
                if options.delimiter:
                    rest = key[len(options.prefix) :]
                    idx = rest.find(options.delimiter)
                    if idx != -1:
                        prefixes.add(options.prefix + rest[: idx + len(options.delimiter)])
                        continue
                if len(result.files) >= options.max_keys:
                    result.is_truncated = True
                    break
                result.files.append(self._describe(key, self._base / key))
            result.common_prefixes = sorted(prefixes)
            return result

        try:
            return await asyncio.to_thread(scan)
        except OSError as e:
            raise _translate_os_error(e, options.prefix, "list") from e

    async def exists(self, key: str) -> bool:
        path = self._path(key)
        return await asyncio.to_thread(path.is_file)

    async def head(self, key: str) -> StorageFile | None:
        path = self._path(key)
        try:
            return await asyncio.to_thread(self._describe, key, path)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise _translate_os_error(e, key, "head") from e

    async def copy(
        self, source_key: str, dest_key: str, options: CopyOptions | None = None
    ) -> StorageFile:
        options = options or CopyOptions()
        source = self._path(source_key)
        dest = self._path(dest_key)

        def do_copy() -> StorageFile:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
            meta = self._load_meta(source)
            if meta:
                meta = dict(meta)
                if options.metadata_directive is MetadataDirective.REPLACE:
                    meta["custom"] = dict(options.metadata)
                    if options.content_type:
                        meta["content_type"] = options.content_type
                self._save_meta(dest, meta)
            return self._describe(dest_key, dest)

        try:
            return await asyncio.to_thread(do_copy)
        except FileNotFoundError as e:
            raise ObjectNotFound(source_key, operation="copy") from e
        except OSError as e:
            raise _translate_os_error(e, source_key, "copy") from e

    # --- signed URLs ---

    def _signature(self, key: str, operation: str, ts: int, expires: int) -> str:
        payload = f"{key}:{operation}:{ts}:{expires}".encode()
        return hmac.new(self._secret, payload, hashlib.sha256).hexdigest()

    async def get_signed_url(
        self,
        key: str,
        operation: SignedUrlOperation,
        options: SignedUrlOptions | None = None,
    ) -> str:
        """``local://<key>?op=&ts=&exp=&sig=`` signed with HMAC-SHA256."""
        self._path(key)
        options = options or SignedUrlOptions()
        op = SignedUrlOperation(operation).value
        ts = int(self._clock().timestamp() * 1000)
        sig = self._signature(key, op, ts, options.expires)
        return f"local://{quote(key)}?op={op}&ts={ts}&exp={options.expires}&sig={sig}"

    def verify_signed_url(self, url: str) -> bool:
        """Check signature and expiry of a URL from get_signed_url."""
        parts = urlsplit(url)
        if parts.scheme != "local":
            return False
        key = unquote(parts.netloc + parts.path)
        query = parse_qs(parts.query)
        try:
            op = query["op"][0]
            ts = int(query["ts"][0])
            expires = int(query["exp"][0])
            sig = query["sig"][0]
        except (KeyError, IndexError, ValueError):
            return False
        if not hmac.compare_digest(sig, self._signature(key, op, ts, expires)):
            return False
        now_ms = int(self._clock().timestamp() * 1000)
        return now_ms <= ts + expires * 1000
