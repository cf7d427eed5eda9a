"""Unit tests for the retrying storage facade."""

from pathlib import Path

import pytest

from docflow.application.dto import SignedUrlOperation, UploadOptions
from docflow.application.services import RetryPolicy, StorageFacade
from docflow.application.services.storage_keys import (
    comparison_result_key,
    document_key,
    safe_segment,
    temp_key,
)
from docflow.domain.exceptions import (
    ObjectNotFound,
    RetriesExhausted,
    StorageAccessDenied,
    StorageNotInitialized,
    StorageThrottled,
)

from tests.conftest import T0, FakeClock, FlakyStorageProvider, RecordingSleep


@pytest.mark.asyncio
async def test_operations_fail_before_initialize() -> None:
    facade = StorageFacade()
    assert not facade.is_initialized
    with pytest.raises(StorageNotInitialized):
        await facade.download("a.txt")
    with pytest.raises(StorageNotInitialized):
        facade.object_url("a.txt")


@pytest.mark.asyncio
async def test_shutdown_uninitializes(storage: StorageFacade) -> None:
    assert storage.is_initialized
    await storage.shutdown()
    with pytest.raises(StorageNotInitialized):
        await storage.exists("a.txt")


@pytest.mark.asyncio
async def test_upload_then_download(storage: StorageFacade) -> None:
    stored = await storage.upload("docs/a.txt", b"abc", UploadOptions(content_type="text/plain"))
    assert stored.size == 3
    downloaded = await storage.download("docs/a.txt")
    assert downloaded.data == b"abc"
    assert downloaded.content_type == "text/plain"
    assert storage.object_url("docs/a.txt") == "local://docs/a.txt"


@pytest.mark.asyncio
async def test_throttled_upload_is_retried(
    storage: StorageFacade, provider: FlakyStorageProvider, fake_sleep: RecordingSleep
) -> None:
    provider.fail_next("upload", StorageThrottled("slow down", code="SlowDown"))
    await storage.upload("docs/a.txt", b"abc")
    assert provider.calls["upload"] == 2
    assert fake_sleep.delays == [1.0]
    assert await storage.exists("docs/a.txt")


@pytest.mark.asyncio
async def test_persistent_throttling_exhausts(
    storage: StorageFacade, provider: FlakyStorageProvider
) -> None:
    provider.fail_next("head", *(StorageThrottled("busy") for _ in range(3)))
    with pytest.raises(RetriesExhausted) as info:
        await storage.head("docs/a.txt")
    assert info.value.attempts == 3
    assert provider.calls["head"] == 3


@pytest.mark.asyncio
async def test_missing_object_is_not_retried(
    storage: StorageFacade, provider: FlakyStorageProvider, fake_sleep: RecordingSleep
) -> None:
    with pytest.raises(ObjectNotFound):
        await storage.download("docs/missing.txt")
    assert provider.calls["download"] == 1
    assert fake_sleep.delays == []


@pytest.mark.asyncio
async def test_access_denied_is_not_retried(
    storage: StorageFacade, provider: FlakyStorageProvider, fake_sleep: RecordingSleep
) -> None:
    provider.fail_next(
        "upload", StorageAccessDenied("denied", code="AccessDenied", status_code=403)
    )
    with pytest.raises(StorageAccessDenied):
        await storage.upload("docs/a.txt", b"data")
    assert provider.calls["upload"] == 1
    assert fake_sleep.delays == []
    assert not await storage.exists("docs/a.txt")


@pytest.mark.asyncio
async def test_signed_url_is_not_retried(tmp_path: Path) -> None:
    clock = FakeClock()
    provider = FlakyStorageProvider(tmp_path, clock=clock)
    facade = StorageFacade(RetryPolicy(3, 0.0), sleep=RecordingSleep())
    await facade.initialize(provider)
    url = await facade.get_signed_url("docs/a.txt", SignedUrlOperation.PUT)
    assert url.startswith("local://docs/a.txt?op=put")
    assert provider.verify_signed_url(url)


def test_storage_keys() -> None:
    assert safe_segment("../../etc/passwd") == "passwd"
    assert safe_segment("my report (final).pdf") == "my_report_final_.pdf"
    assert safe_segment("...") == "file"
    assert safe_segment("Договор поставки.txt") == "Договор_поставки.txt"
    assert document_key("u 1", "abc", "C:\\tmp\\a.txt") == "users/u_1/documents/abc/a.txt"
    assert (
        comparison_result_key("alice@example.com", 7, prefix="dev/")
        == "dev/users/alice@example.com/comparisons/7/result.json"
    )
    assert temp_key("draft v2.docx", T0) == f"temp/{int(T0.timestamp() * 1000)}-draft_v2.docx"
