"""PDF text via pypdf."""

import io
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from docflow.application.dto import ExtractedText
from docflow.domain.exceptions import ValidationError
from docflow.infrastructure.text_extraction.metadata_keys import (
    PARSER_KEY_TO_CANONICAL,
    normalize_value,
)


def _parse_pdf_date(value: str) -> str:
    """``D:YYYYMMDD...`` -> ``YYYY-MM-DD``."""
    if not value.startswith("D:"):
        return value
    s = value[2:].strip()
    if len(s) >= 8:
        return f"{s[:4]}-{s[4:6]}-{s[6:8]}"
    return value


def _map_metadata(reader: PdfReader) -> dict[str, object]:
    result: dict[str, object] = {}
    meta = reader.metadata
    if not meta:
        return result
    for key, canonical in PARSER_KEY_TO_CANONICAL.items():
        if not key.startswith("/") or key not in meta or meta[key] is None:
            continue
        value = str(meta[key])
        if not value:
            continue
        result[canonical] = _parse_pdf_date(value) if "Date" in key else normalize_value(value)
    return result


def parse_pdf(data: bytes, filename: str | None = None) -> ExtractedText:
    """Extract page text and document info."""
    try:
        reader = PdfReader(io.BytesIO(data))
        parts = [t for t in (page.extract_text() for page in reader.pages) if t]
    except (PdfReadError, ValueError, KeyError) as e:
        raise ValidationError(f"Invalid or corrupted PDF: {e}") from e
    metadata = _map_metadata(reader)
    metadata["page_count"] = len(reader.pages)
    metadata["source_file_type"] = "pdf"
    if filename:
        metadata["source_file_name"] = Path(filename).name
    return ExtractedText(text="\n\n".join(parts), metadata=metadata)
