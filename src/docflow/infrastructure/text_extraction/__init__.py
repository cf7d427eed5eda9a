"""Text extraction: plain text, CSV/TSV, PDF and DOCX."""

from docflow.infrastructure.text_extraction.registry import (
    ParserRegistryExtractor,
    get_parser,
    supported_extensions,
)

__all__ = ["ParserRegistryExtractor", "get_parser", "supported_extensions"]
