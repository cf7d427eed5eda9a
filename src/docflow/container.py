"""Shared instances wired from settings.

Everything here is created once per process and passed down; nothing holds
module-level state.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from docflow.application.ports import (
    DocumentComparer,
    EntityStore,
    StorageProvider,
    TextExtractor,
)
from docflow.application.services import RetryPolicy, StorageFacade, TaskQueue
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
from docflow.config import Settings
from docflow.domain.clock import Clock, utc_now
from docflow.domain.value_objects import TaskType
from docflow.infrastructure.comparison import WordSetComparer
from docflow.infrastructure.persistence import create_entity_store
from docflow.infrastructure.storage import create_storage_provider
from docflow.infrastructure.text_extraction import ParserRegistryExtractor
from docflow.interfaces.worker.queue_worker import QueueWorker


@dataclass
class Services:
    settings: Settings
    store: EntityStore
    provider: StorageProvider
    storage: StorageFacade
    queue: TaskQueue
    worker: QueueWorker
    upload_document: UploadDocumentUseCase
    list_documents: ListDocumentsUseCase
    get_document: GetDocumentUseCase
    delete_document: DeleteDocumentUseCase
    download_document: DownloadDocumentUseCase
    request_extraction: RequestExtractionUseCase
    extraction_status: GetExtractionStatusUseCase
    set_reference: SetReferenceDocumentUseCase
    compare_documents: CompareDocumentsUseCase
    get_comparison: GetComparisonUseCase

    async def start(self) -> None:
        await self.store.initialize()
        await self.storage.initialize(self.provider)

    async def stop(self) -> None:
        await self.worker.stop()
        await self.storage.shutdown()
        await self.store.shutdown()


def build_services(
    settings: Settings,
    *,
    store: EntityStore | None = None,
    provider: StorageProvider | None = None,
    extractor: TextExtractor | None = None,
    comparer: DocumentComparer | None = None,
    clock: Clock = utc_now,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Services:
    """Build every shared instance. Explicit arguments replace the configured ones."""
    store = store or create_entity_store(settings, clock)
    provider = provider or create_storage_provider(settings)
    extractor = extractor or ParserRegistryExtractor()
    comparer = comparer or WordSetComparer()

    storage = StorageFacade(
        RetryPolicy(
            max_attempts=settings.storage_max_attempts,
            base_delay=settings.storage_base_delay,
        ),
        sleep=sleep,
    )
    queue = TaskQueue(
        store.queue_items,
        retry_delay=settings.queue_retry_delay,
        claim_timeout=settings.queue_claim_timeout,
        default_priority=settings.queue_default_priority,
        default_max_attempts=settings.queue_max_attempts,
        clock=clock,
    )
    compare_documents = CompareDocumentsUseCase(
        store, comparer, storage, key_prefix=settings.storage_key_prefix, clock=clock
    )
    worker = QueueWorker(
        queue,
        {
            TaskType.EXTRACT_TEXT: ExtractTextHandler(store, storage, extractor, clock=clock),
            TaskType.COMPARE: CompareWithReferenceHandler(store, compare_documents),
        },
        concurrency=settings.worker_concurrency,
        poll_interval=settings.worker_poll_interval,
        task_timeout=settings.worker_task_timeout,
        sweep_interval=settings.worker_sweep_interval,
    )
    return Services(
        settings=settings,
        store=store,
        provider=provider,
        storage=storage,
        queue=queue,
        worker=worker,
        upload_document=UploadDocumentUseCase(
            store, storage, queue, extractor, key_prefix=settings.storage_key_prefix
        ),
        list_documents=ListDocumentsUseCase(store),
        get_document=GetDocumentUseCase(store),
        delete_document=DeleteDocumentUseCase(store, storage),
        download_document=DownloadDocumentUseCase(store, storage),
        request_extraction=RequestExtractionUseCase(store, queue),
        extraction_status=GetExtractionStatusUseCase(store, queue),
        set_reference=SetReferenceDocumentUseCase(store),
        compare_documents=compare_documents,
        get_comparison=GetComparisonUseCase(store),
    )
