"""Entity -> JSON dict conversion for responses."""

from datetime import datetime

from docflow.application.dto import ExtractionRequest, ExtractionStatus, QueueStats, TaskResult
from docflow.domain.entities import Comparison, Document, QueueItem


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def document_to_dict(d: Document, *, include_text: bool = False) -> dict:
    data = {
        "id": d.id,
        "original_name": d.original_name,
        "file_type": d.file_type,
        "size": d.size,
        "content_hash": d.content_hash,
        "storage_url": d.storage_url,
        "status": d.status.value,
        "is_reference": d.is_reference,
        "has_text": bool(d.extracted_text),
        "metadata": d.metadata,
        "created_at": _iso(d.created_at),
        "updated_at": _iso(d.updated_at),
    }
    if include_text:
        data["extracted_text"] = d.extracted_text
    return data


def comparison_to_dict(c: Comparison) -> dict:
    return {
        "id": c.id,
        "document1_id": c.document1_id,
        "document2_id": c.document2_id,
        "status": c.status.value,
        "similarity_score": c.similarity_score,
        "summary": c.summary,
        "key_differences": c.key_differences,
        "suggestions": c.suggestions,
        "result_url": c.result_url,
        "error_message": c.error_message,
        "processing_time_ms": c.processing_time_ms,
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }


def queue_item_to_dict(q: QueueItem) -> dict:
    return {
        "id": q.id,
        "document_id": q.document_id,
        "task_type": q.task_type.value,
        "status": q.status.value,
        "priority": q.priority,
        "attempts": q.attempts,
        "max_attempts": q.max_attempts,
        "scheduled_at": _iso(q.scheduled_at),
        "created_at": _iso(q.created_at),
    }


def task_result_to_dict(r: TaskResult) -> dict:
    return {
        "id": r.item_id,
        "document_id": r.document_id,
        "task_type": r.task_type.value,
        "status": r.outcome.value,
        "attempts": r.attempts,
        "duration_ms": r.duration_ms,
        "error": r.error,
    }


def queue_stats_to_dict(s: QueueStats) -> dict:
    def summary(i) -> dict:
        return {
            "id": i.id,
            "document_id": i.document_id,
            "task_type": i.task_type,
            "status": i.status,
            "attempts": i.attempts,
            "max_attempts": i.max_attempts,
            "scheduled_at": _iso(i.scheduled_at),
            "error_message": i.error_message,
        }

    return {
        "counts": s.counts,
        "total": s.total,
        "queued": [summary(i) for i in s.queued],
        "failed": [summary(i) for i in s.failed],
    }


def extraction_request_to_dict(r: ExtractionRequest) -> dict:
    return {
        "status": r.status.value,
        "document": {
            "id": r.document.id,
            "original_name": r.document.original_name,
            "characters": len(r.document.extracted_text or ""),
        },
        "queue_item": queue_item_to_dict(r.queue_item) if r.queue_item else None,
    }


def extraction_status_to_dict(s: ExtractionStatus) -> dict:
    d = s.document
    return {
        "document": {
            "id": d.id,
            "original_name": d.original_name,
            "status": d.status.value,
            "has_text": bool(d.extracted_text),
            "characters": len(d.extracted_text or ""),
        },
        "tasks": [
            {
                "id": t.id,
                "status": t.status.value,
                "attempts": t.attempts,
                "created_at": _iso(t.created_at),
                "error_message": t.error_message,
            }
            for t in s.tasks
        ],
    }
