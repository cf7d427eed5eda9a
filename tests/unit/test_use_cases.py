"""Unit tests for use cases and queue task handlers."""

import json

import pytest

from docflow.application.dto import (
    CompareInput,
    DocumentUploadInput,
    ExtractionRequestStatus,
    QueryOptions,
)
from docflow.application.ports import ComparisonOutcome
from docflow.application.services import StorageFacade, TaskQueue
from docflow.application.use_cases.comparison.compare_documents import (
    CompareDocumentsUseCase,
    CompareWithReferenceHandler,
    GetComparisonUseCase,
)
from docflow.application.use_cases.document.download_document import DownloadDocumentUseCase
from docflow.application.use_cases.document.extract_text import ExtractTextHandler
from docflow.application.use_cases.document.get_document import (
    DeleteDocumentUseCase,
    GetDocumentUseCase,
    ListDocumentsUseCase,
)
from docflow.application.use_cases.document.request_extraction import (
    GetExtractionStatusUseCase,
    RequestExtractionUseCase,
)
from docflow.application.use_cases.document.set_reference import SetReferenceDocumentUseCase
from docflow.application.use_cases.document.upload_document import UploadDocumentUseCase
from docflow.domain.exceptions import (
    AccessDenied,
    NotFound,
    ObjectNotFound,
    RetriesExhausted,
    StorageThrottled,
    ValidationError,
)
from docflow.domain.value_objects import (
    ComparisonStatus,
    DocumentStatus,
    QueueStatus,
    TaskType,
)
from docflow.infrastructure.comparison import WordSetComparer
from docflow.infrastructure.persistence.memory import MemoryEntityStore
from docflow.infrastructure.text_extraction import ParserRegistryExtractor

from tests.conftest import FakeClock, FlakyStorageProvider, make_document, make_stored_document


class ExplodingComparer:
    def compare(self, text1: str, text2: str) -> ComparisonOutcome:
        raise RuntimeError("comparer crashed")


@pytest.fixture
def upload(store: MemoryEntityStore, storage: StorageFacade, queue: TaskQueue) -> UploadDocumentUseCase:
    return UploadDocumentUseCase(store, storage, queue, ParserRegistryExtractor())


@pytest.fixture
def compare(
    store: MemoryEntityStore, storage: StorageFacade, clock: FakeClock
) -> CompareDocumentsUseCase:
    return CompareDocumentsUseCase(store, WordSetComparer(), storage, clock=clock)


def _input(owner: str = "user-1", name: str = "a.txt", data: bytes = b"supply agreement", **kw):
    return DocumentUploadInput(owner_id=owner, filename=name, data=data, **kw)


# --- UploadDocumentUseCase ---


@pytest.mark.asyncio
async def test_upload_stores_file_and_queues_extraction(
    upload: UploadDocumentUseCase, storage: StorageFacade, store: MemoryEntityStore
) -> None:
    result = await upload.execute(_input(content_type="text/plain"))

    doc = result.document
    assert not result.duplicate
    assert doc.status == DocumentStatus.UPLOADED
    assert doc.storage_key == f"users/user-1/documents/{doc.content_hash}/a.txt"
    assert doc.storage_url == f"local://{doc.storage_key}"
    assert doc.metadata["storage_provider"] == "flaky"
    assert (await storage.download(doc.storage_key)).data == b"supply agreement"

    assert result.queue_item.task_type == TaskType.EXTRACT_TEXT
    assert result.queue_item.document_id == doc.id
    assert len(await store.queue_items.find_all()) == 1


@pytest.mark.asyncio
async def test_same_owner_same_bytes_is_deduplicated(
    upload: UploadDocumentUseCase, store: MemoryEntityStore
) -> None:
    first = await upload.execute(_input(name="a.txt"))
    second = await upload.execute(_input(name="renamed.txt"))

    assert second.duplicate
    assert second.document.id == first.document.id
    assert second.queue_item is None
    assert len(await store.documents.find_by_user("user-1")) == 1
    assert len(await store.queue_items.find_all()) == 1


@pytest.mark.asyncio
async def test_different_owners_get_separate_records(upload: UploadDocumentUseCase) -> None:
    first = await upload.execute(_input(owner="alice"))
    second = await upload.execute(_input(owner="bob"))
    assert not second.duplicate
    assert first.document.id != second.document.id
    assert first.document.content_hash == second.document.content_hash


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "bad",
    [
        _input(data=b""),
        _input(name=""),
        _input(name="malware.exe", content_type="application/x-msdownload"),
    ],
)
async def test_upload_validation(upload: UploadDocumentUseCase, bad: DocumentUploadInput) -> None:
    with pytest.raises(ValidationError):
        await upload.execute(bad)


@pytest.mark.asyncio
async def test_upload_as_reference_replaces_previous(
    upload: UploadDocumentUseCase, store: MemoryEntityStore
) -> None:
    first = await upload.execute(_input(data=b"one", is_reference=True))
    second = await upload.execute(_input(data=b"two", is_reference=True))

    assert second.document.is_reference
    reference = await store.documents.get_reference("user-1")
    assert reference.id == second.document.id
    assert not (await store.documents.get_by_id(first.document.id)).is_reference


# --- Get / list / delete / reference ---


@pytest.mark.asyncio
async def test_get_document_checks_owner(store: MemoryEntityStore) -> None:
    doc = await make_document(store, owner_id="alice")
    use_case = GetDocumentUseCase(store)
    assert (await use_case.execute("alice", doc.id)).id == doc.id
    with pytest.raises(AccessDenied):
        await use_case.execute("bob", doc.id)
    with pytest.raises(NotFound):
        await use_case.execute("alice", 999)


@pytest.mark.asyncio
async def test_list_documents_is_per_owner(store: MemoryEntityStore, clock: FakeClock) -> None:
    first = await make_document(store, content=b"1")
    clock.advance(1)
    second = await make_document(store, content=b"2")
    await make_document(store, owner_id="other", content=b"3")

    docs = await ListDocumentsUseCase(store).execute("user-1")
    assert [d.id for d in docs] == [second.id, first.id]
    page = await ListDocumentsUseCase(store).execute("user-1", QueryOptions(limit=1, offset=1))
    assert [d.id for d in page] == [first.id]


@pytest.mark.asyncio
async def test_delete_removes_record_and_file(
    store: MemoryEntityStore, storage: StorageFacade, queue: TaskQueue
) -> None:
    doc = await make_stored_document(store, storage)
    await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)

    await DeleteDocumentUseCase(store, storage).execute("user-1", doc.id)

    assert await store.documents.get_by_id(doc.id) is None
    assert not await storage.exists(doc.storage_key)
    assert await queue.find_by_document(doc.id) == []


@pytest.mark.asyncio
async def test_delete_tolerates_missing_file(
    store: MemoryEntityStore, storage: StorageFacade
) -> None:
    doc = await make_document(store)
    await DeleteDocumentUseCase(store, storage).execute("user-1", doc.id)
    assert await store.documents.get_by_id(doc.id) is None


@pytest.mark.asyncio
async def test_set_reference(store: MemoryEntityStore) -> None:
    first = await make_document(store, content=b"1", is_reference=True)
    second = await make_document(store, content=b"2")
    use_case = SetReferenceDocumentUseCase(store)

    updated = await use_case.execute("user-1", second.id)
    assert updated.is_reference
    assert not (await store.documents.get_by_id(first.id)).is_reference

    with pytest.raises(AccessDenied):
        await use_case.execute("intruder", first.id)


# --- DownloadDocumentUseCase ---


@pytest.mark.asyncio
async def test_download_returns_stored_bytes(
    store: MemoryEntityStore, storage: StorageFacade
) -> None:
    doc = await make_stored_document(store, storage, content=b"clause one")
    download = await DownloadDocumentUseCase(store, storage).execute("user-1", doc.id)
    assert download.data == b"clause one"
    assert download.content_type == "text/plain"
    assert download.document.id == doc.id


@pytest.mark.asyncio
async def test_download_guesses_type_from_name(
    store: MemoryEntityStore, storage: StorageFacade
) -> None:
    doc = await make_document(store, name="scan.pdf", content=b"%PDF-1.4")
    await storage.upload(doc.storage_key, b"%PDF-1.4")
    download = await DownloadDocumentUseCase(store, storage).execute("user-1", doc.id)
    assert download.content_type == "application/pdf"


@pytest.mark.asyncio
async def test_download_checks_owner_and_file(
    store: MemoryEntityStore, storage: StorageFacade
) -> None:
    use_case = DownloadDocumentUseCase(store, storage)
    stored = await make_stored_document(store, storage, content=b"a")
    missing = await make_document(store, content=b"b")
    with pytest.raises(AccessDenied):
        await use_case.execute("user-2", stored.id)
    with pytest.raises(ObjectNotFound):
        await use_case.execute("user-1", missing.id)
    with pytest.raises(NotFound):
        await use_case.execute("user-1", 999)


# --- RequestExtractionUseCase ---


@pytest.mark.asyncio
async def test_request_extraction_queues_at_high_priority(
    store: MemoryEntityStore, queue: TaskQueue
) -> None:
    doc = await make_document(store)
    result = await RequestExtractionUseCase(store, queue).execute("user-1", doc.id)
    assert result.status is ExtractionRequestStatus.QUEUED
    assert result.queue_item.task_type == TaskType.EXTRACT_TEXT
    assert result.queue_item.priority == 1


@pytest.mark.asyncio
async def test_request_extraction_reports_pending_task(
    store: MemoryEntityStore, queue: TaskQueue
) -> None:
    doc = await make_document(store)
    pending = await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)
    use_case = RequestExtractionUseCase(store, queue)

    result = await use_case.execute("user-1", doc.id)
    assert result.status is ExtractionRequestStatus.ALREADY_QUEUED
    assert result.queue_item.id == pending.id

    await queue.get_next()
    claimed = await use_case.execute("user-1", doc.id)
    assert claimed.status is ExtractionRequestStatus.ALREADY_QUEUED

    await queue.fail_permanently(pending.id, "validation_error: The request is invalid")
    again = await use_case.execute("user-1", doc.id)
    assert again.status is ExtractionRequestStatus.QUEUED
    assert again.queue_item.id != pending.id


@pytest.mark.asyncio
async def test_request_extraction_skips_extracted_documents(
    store: MemoryEntityStore, queue: TaskQueue
) -> None:
    doc = await make_document(store, extracted_text="already here")
    result = await RequestExtractionUseCase(store, queue).execute("user-1", doc.id)
    assert result.status is ExtractionRequestStatus.ALREADY_EXTRACTED
    assert result.queue_item is None
    assert await queue.find_by_document(doc.id) == []
    with pytest.raises(AccessDenied):
        await RequestExtractionUseCase(store, queue).execute("user-2", doc.id)


@pytest.mark.asyncio
async def test_extraction_status_lists_only_extraction_tasks(
    store: MemoryEntityStore, queue: TaskQueue, clock: FakeClock
) -> None:
    doc = await make_document(store)
    first = await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)
    await queue.enqueue(doc.id, TaskType.COMPARE)
    clock.advance(1)
    second = await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)

    status = await GetExtractionStatusUseCase(store, queue).execute("user-1", doc.id)
    assert status.document.id == doc.id
    assert [t.id for t in status.tasks] == [second.id, first.id]


# --- ExtractTextHandler ---


@pytest.mark.asyncio
async def test_extract_text_success(
    store: MemoryEntityStore, storage: StorageFacade, queue: TaskQueue, clock: FakeClock
) -> None:
    doc = await make_stored_document(store, storage, content=b"clause one\nclause two")
    item = await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)
    handler = ExtractTextHandler(store, storage, ParserRegistryExtractor(), clock=clock)

    await handler.handle(item)

    fresh = await store.documents.get_by_id(doc.id)
    assert fresh.status == DocumentStatus.PROCESSED
    assert fresh.extracted_text == "clause one\nclause two"
    assert fresh.metadata["extraction"] == {
        "pages": None,
        "method": "txt",
        "characters": 21,
        "extracted_at": clock.now.isoformat(),
    }
    assert fresh.metadata["source_file_type"] == "txt"


@pytest.mark.asyncio
async def test_extract_text_missing_file_marks_error(
    store: MemoryEntityStore, storage: StorageFacade, queue: TaskQueue
) -> None:
    doc = await make_document(store)
    item = await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)
    handler = ExtractTextHandler(store, storage, ParserRegistryExtractor())

    with pytest.raises(ObjectNotFound):
        await handler.handle(item)
    assert (await store.documents.get_by_id(doc.id)).status == DocumentStatus.ERROR


@pytest.mark.asyncio
async def test_extract_text_unparseable_marks_error(
    store: MemoryEntityStore, storage: StorageFacade, queue: TaskQueue
) -> None:
    doc = await make_stored_document(store, storage, name="broken.pdf", content=b"not a pdf")
    item = await queue.enqueue(doc.id, TaskType.EXTRACT_TEXT)

    with pytest.raises(ValidationError):
        await ExtractTextHandler(store, storage, ParserRegistryExtractor()).handle(item)
    assert (await store.documents.get_by_id(doc.id)).status == DocumentStatus.ERROR


# --- CompareDocumentsUseCase ---


@pytest.mark.asyncio
async def test_compare_stores_result(
    store: MemoryEntityStore, storage: StorageFacade, compare: CompareDocumentsUseCase
) -> None:
    a = await make_document(store, content=b"a", extracted_text="supply agreement terms")
    b = await make_document(store, content=b"b", extracted_text="supply agreement penalties")

    comparison = await compare.execute(CompareInput("user-1", a.id, b.id))

    assert comparison.status == ComparisonStatus.COMPLETED
    assert comparison.similarity_score == 0.5
    assert comparison.processing_time_ms is not None
    key = f"users/user-1/comparisons/{comparison.id}/result.json"
    assert comparison.result_url == f"local://{key}"
    stored = await storage.download(key)
    assert stored.content_type == "application/json"
    payload = json.loads(stored.data)
    assert payload["document1"] == {"id": a.id, "name": "contract.txt"}
    assert payload["similarity_score"] == 0.5


@pytest.mark.asyncio
async def test_compare_reuses_completed_pair(
    store: MemoryEntityStore, compare: CompareDocumentsUseCase
) -> None:
    a = await make_document(store, content=b"a", extracted_text="alpha beta")
    b = await make_document(store, content=b"b", extracted_text="gamma delta")
    first = await compare.execute(CompareInput("user-1", a.id, b.id))
    again = await compare.execute(CompareInput("user-1", b.id, a.id))
    assert again.id == first.id


@pytest.mark.asyncio
async def test_compare_rejects_bad_input(
    store: MemoryEntityStore, compare: CompareDocumentsUseCase
) -> None:
    a = await make_document(store, content=b"a", extracted_text="text")
    pending = await make_document(store, content=b"b")
    foreign = await make_document(store, owner_id="other", content=b"c", extracted_text="x")

    with pytest.raises(ValidationError):
        await compare.execute(CompareInput("user-1", a.id, a.id))
    with pytest.raises(ValidationError):
        await compare.execute(CompareInput("user-1", a.id, pending.id))
    with pytest.raises(AccessDenied):
        await compare.execute(CompareInput("user-1", a.id, foreign.id))
    with pytest.raises(NotFound):
        await compare.execute(CompareInput("user-1", a.id, 999))


@pytest.mark.asyncio
async def test_compare_failure_marks_error(
    store: MemoryEntityStore, storage: StorageFacade
) -> None:
    a = await make_document(store, content=b"a", extracted_text="one")
    b = await make_document(store, content=b"b", extracted_text="two")
    use_case = CompareDocumentsUseCase(store, ExplodingComparer(), storage)

    with pytest.raises(RuntimeError):
        await use_case.execute(CompareInput("user-1", a.id, b.id))
    failed = await store.comparisons.find_by_documents(a.id, b.id)
    assert failed.status == ComparisonStatus.ERROR
    assert failed.error_message == "internal_error: An internal error occurred"


@pytest.mark.asyncio
async def test_compare_failure_keeps_storage_detail_out_of_record(
    store: MemoryEntityStore, storage: StorageFacade, provider: FlakyStorageProvider
) -> None:
    a = await make_document(store, content=b"a", extracted_text="one two")
    b = await make_document(store, content=b"b", extracted_text="two three")
    throttled = [
        StorageThrottled("SlowDown from bucket internal-prod-7 at 10.0.3.4", code="SlowDown")
        for _ in range(3)
    ]
    provider.fail_next("upload", *throttled)
    use_case = CompareDocumentsUseCase(store, WordSetComparer(), storage)

    with pytest.raises(RetriesExhausted):
        await use_case.execute(CompareInput("user-1", a.id, b.id))
    failed = await store.comparisons.find_by_documents(a.id, b.id)
    assert failed.status == ComparisonStatus.ERROR
    assert failed.error_message == "retries_exhausted: The operation failed after several attempts"
    assert "internal-prod-7" not in failed.error_message


@pytest.mark.asyncio
async def test_get_comparison_checks_owner(
    store: MemoryEntityStore, compare: CompareDocumentsUseCase
) -> None:
    a = await make_document(store, content=b"a", extracted_text="one")
    b = await make_document(store, content=b"b", extracted_text="two")
    comparison = await compare.execute(CompareInput("user-1", a.id, b.id))
    use_case = GetComparisonUseCase(store)
    assert (await use_case.execute("user-1", comparison.id)).id == comparison.id
    with pytest.raises(AccessDenied):
        await use_case.execute("other", comparison.id)
    with pytest.raises(NotFound):
        await use_case.execute("user-1", 999)


# --- CompareWithReferenceHandler ---


@pytest.mark.asyncio
async def test_compare_with_reference(
    store: MemoryEntityStore, queue: TaskQueue, compare: CompareDocumentsUseCase
) -> None:
    reference = await make_document(
        store, content=b"r", extracted_text="template clause", is_reference=True
    )
    doc = await make_document(store, content=b"d", extracted_text="template clause changed")
    handler = CompareWithReferenceHandler(store, compare)

    await handler.handle(await queue.enqueue(doc.id, TaskType.COMPARE))
    comparison = await store.comparisons.find_by_documents(reference.id, doc.id)
    assert comparison.status == ComparisonStatus.COMPLETED
    assert comparison.document1_id == reference.id

    # the reference compared with itself is a no-op
    await handler.handle(await queue.enqueue(reference.id, TaskType.COMPARE))
    assert len(await store.comparisons.find_by_user("user-1")) == 1


@pytest.mark.asyncio
async def test_compare_with_reference_requires_reference(
    store: MemoryEntityStore, queue: TaskQueue, compare: CompareDocumentsUseCase
) -> None:
    doc = await make_document(store, extracted_text="text")
    item = await queue.enqueue(doc.id, TaskType.COMPARE)
    with pytest.raises(ValidationError):
        await CompareWithReferenceHandler(store, compare).handle(item)
    assert (await store.queue_items.get_by_id(item.id)).status == QueueStatus.QUEUED
