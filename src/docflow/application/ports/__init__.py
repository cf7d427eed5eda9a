"""Application ports - interfaces for external adapters."""

from docflow.application.ports.document_comparer import (
    ComparisonOutcome,
    DocumentComparer,
)
from docflow.application.ports.entity_store import EntityStore
from docflow.application.ports.storage_provider import StorageProvider
from docflow.application.ports.text_extractor import TextExtractor

__all__ = [
    "ComparisonOutcome",
    "DocumentComparer",
    "EntityStore",
    "StorageProvider",
    "TextExtractor",
]
