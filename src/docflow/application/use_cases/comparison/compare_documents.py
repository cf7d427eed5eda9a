"""Compare documents use case and the queue handler built on it."""

import asyncio
import json
import logging
import time

from docflow.application.dto import CompareInput, NewComparison, UploadOptions
from docflow.application.ports import DocumentComparer, EntityStore
from docflow.application.services.storage_facade import StorageFacade
from docflow.application.services.storage_keys import comparison_result_key
from docflow.application.use_cases.document.get_document import load_owned_document
from docflow.domain.clock import Clock, utc_now
from docflow.domain.entities import Comparison, Document, QueueItem
from docflow.domain.exceptions import AccessDenied, NotFound, ValidationError, public_message
from docflow.domain.value_objects import ComparisonStatus

logger = logging.getLogger(__name__)


def _require_text(document: Document) -> str:
    if not document.extracted_text:
        raise ValidationError(f"Document {document.id} has no extracted text yet")
    return document.extracted_text


class CompareDocumentsUseCase:
    """Compare two processed documents of one owner.

    A completed comparison of the same pair (in either order) is returned
    as is. Otherwise a new comparison runs, its result JSON is stored next to
    the owner's documents and the record ends COMPLETED or ERROR.
    """

    def __init__(
        self,
        store: EntityStore,
        comparer: DocumentComparer,
        storage: StorageFacade,
        *,
        key_prefix: str = "",
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._comparer = comparer
        self._storage = storage
        self._key_prefix = key_prefix
        self._clock = clock

    async def execute(self, input_data: CompareInput) -> Comparison:
        if input_data.document1_id == input_data.document2_id:
            raise ValidationError("A document cannot be compared with itself")
        doc1 = await load_owned_document(self._store, input_data.owner_id, input_data.document1_id)
        doc2 = await load_owned_document(self._store, input_data.owner_id, input_data.document2_id)
        text1, text2 = _require_text(doc1), _require_text(doc2)

        existing = await self._store.comparisons.find_by_documents(doc1.id, doc2.id)
        if existing and existing.status == ComparisonStatus.COMPLETED:
            return existing

        comparison = await self._store.comparisons.create(
            NewComparison(
                document1_id=doc1.id,
                document2_id=doc2.id,
                owner_id=input_data.owner_id,
                status=ComparisonStatus.PROCESSING,
            )
        )
        started = time.monotonic()
        try:
            outcome = await asyncio.to_thread(self._comparer.compare, text1, text2)
            elapsed_ms = int((time.monotonic() - started) * 1000)
            key = comparison_result_key(input_data.owner_id, comparison.id, self._key_prefix)
            payload = {
                "comparison_id": comparison.id,
                "document1": {"id": doc1.id, "name": doc1.original_name},
                "document2": {"id": doc2.id, "name": doc2.original_name},
                "similarity_score": outcome.similarity_score,
                "summary": outcome.summary,
                "key_differences": outcome.key_differences,
                "suggestions": outcome.suggestions,
                "completed_at": self._clock().isoformat(),
            }
            await self._storage.upload(
                key,
                json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8"),
                UploadOptions(content_type="application/json"),
            )
            await self._store.comparisons.update(
                comparison.id,
                {
                    "status": ComparisonStatus.COMPLETED,
                    "similarity_score": outcome.similarity_score,
                    "summary": outcome.summary,
                    "key_differences": outcome.key_differences,
                    "suggestions": outcome.suggestions,
                    "result_url": self._storage.object_url(key),
                    "processing_time_ms": elapsed_ms,
                },
            )
        except (Exception, asyncio.CancelledError) as e:
            logger.error("Comparison %d failed: %s", comparison.id, str(e) or type(e).__name__)
            await self._store.comparisons.update(
                comparison.id,
                {"status": ComparisonStatus.ERROR, "error_message": public_message(e)},
            )
            raise

        logger.info(
            "Compared documents %d and %d (score=%.4f)",
            doc1.id,
            doc2.id,
            outcome.similarity_score,
        )
        result = await self._store.comparisons.get_by_id(comparison.id)
        if result is None:
            raise NotFound("Comparison", comparison.id)
        return result


class CompareWithReferenceHandler:
    """Queue handler: compare the item's document with its owner's reference."""

    def __init__(self, store: EntityStore, compare: CompareDocumentsUseCase) -> None:
        self._store = store
        self._compare = compare

    async def handle(self, item: QueueItem) -> None:
        document = await self._store.documents.get_by_id(item.document_id)
        if document is None:
            raise NotFound("Document", item.document_id)
        reference = await self._store.documents.get_reference(document.owner_id)
        if reference is None:
            raise ValidationError(f"Owner {document.owner_id} has no reference document")
        if reference.id == document.id:
            logger.info("Document %d is the reference itself; nothing to compare", document.id)
            return
        await self._compare.execute(
            CompareInput(
                owner_id=document.owner_id,
                document1_id=reference.id,
                document2_id=document.id,
            )
        )


class GetComparisonUseCase:
    """Get comparison by id for its owner."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def execute(self, owner_id: str, comparison_id: int) -> Comparison:
        comparison = await self._store.comparisons.get_by_id(comparison_id)
        if comparison is None:
            raise NotFound("Comparison", comparison_id)
        if comparison.owner_id != owner_id:
            raise AccessDenied(
                f"Comparison {comparison_id} belongs to another owner", entity="comparison"
            )
        return comparison
