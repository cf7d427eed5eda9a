"""Word (.docx) text via python-docx."""

import io
from pathlib import Path
from zipfile import BadZipFile

from docx import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError

from docflow.application.dto import ExtractedText
from docflow.domain.exceptions import ValidationError
from docflow.infrastructure.text_extraction.metadata_keys import (
    PARSER_KEY_TO_CANONICAL,
    normalize_value,
)


def _map_metadata(core_props: object) -> dict[str, object]:
    result: dict[str, object] = {}
    for name in ("title", "subject", "author", "created", "modified", "language"):
        value = getattr(core_props, name, None)
        if value is None or value == "":
            continue
        canonical = PARSER_KEY_TO_CANONICAL[name]
        # subject only fills title when there is no title
        if canonical in result:
            continue
        result[canonical] = normalize_value(value)
    return result


def parse_docx(data: bytes, filename: str | None = None) -> ExtractedText:
    """Paragraphs first, then table rows."""
    try:
        doc = DocxDocument(io.BytesIO(data))
    except (PackageNotFoundError, BadZipFile, KeyError) as e:
        raise ValidationError("Invalid or corrupted docx file") from e
    paragraphs = [p.text for p in doc.paragraphs if p.text.strip()]
    table_rows: list[str] = []
    for table in doc.tables:
        for row in table.rows:
            cells = [c.text.strip() for c in row.cells if c.text.strip()]
            if cells:
                table_rows.append(" ".join(cells))
    text = "\n\n".join(paragraphs)
    if table_rows:
        text = f"{text}\n\n" + "\n".join(table_rows) if text else "\n".join(table_rows)
    metadata = _map_metadata(doc.core_properties)
    metadata["source_file_type"] = "docx"
    if filename:
        metadata["source_file_name"] = Path(filename).name
    return ExtractedText(text=text, metadata=metadata)
