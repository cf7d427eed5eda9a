"""Select a parser by extension or MIME type."""

from collections.abc import Callable
from pathlib import Path

from docflow.application.dto import ExtractedText
from docflow.domain.exceptions import ValidationError
from docflow.infrastructure.text_extraction.docx_parser import parse_docx
from docflow.infrastructure.text_extraction.pdf_parser import parse_pdf
from docflow.infrastructure.text_extraction.text_parser import (
    parse_csv,
    parse_text,
    parse_tsv,
)

Parser = Callable[[bytes, str | None], ExtractedText]

# extension (lower) -> parse function
_PARSERS_BY_EXT: dict[str, Parser] = {
    "txt": parse_text,
    "md": parse_text,
    "csv": parse_csv,
    "tsv": parse_tsv,
    "docx": parse_docx,
    "pdf": parse_pdf,
}

_MIME_TO_EXT: dict[str, str] = {
    "text/plain": "txt",
    "text/markdown": "md",
    "text/csv": "csv",
    "text/tab-separated-values": "tsv",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/pdf": "pdf",
}


def get_parser(filename: str | None, content_type: str | None = None) -> Parser | None:
    """Parser for the file extension, else for the MIME type, else None."""
    if filename:
        ext = Path(filename).suffix.lstrip(".").lower()
        if ext in _PARSERS_BY_EXT:
            return _PARSERS_BY_EXT[ext]
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        ext = _MIME_TO_EXT.get(mime)
        if ext:
            return _PARSERS_BY_EXT[ext]
    return None


def supported_extensions() -> list[str]:
    return sorted(_PARSERS_BY_EXT)


class ParserRegistryExtractor:
    """TextExtractor backed by the parser table above."""

    def supports(self, filename: str, content_type: str | None = None) -> bool:
        return get_parser(filename, content_type) is not None

    def extract(
        self, data: bytes, filename: str, content_type: str | None = None
    ) -> ExtractedText:
        parser = get_parser(filename, content_type)
        if parser is None:
            ext = Path(filename).suffix or content_type or "unknown"
            raise ValidationError(
                f"Unsupported file type: {ext}. Supported: {', '.join(supported_extensions())}"
            )
        return parser(data, filename)
