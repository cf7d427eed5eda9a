"""Plain text, markdown, CSV and TSV."""

import csv
import io
from pathlib import Path

from docflow.application.dto import ExtractedText


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        try:
            return data.decode("cp1251")
        except UnicodeDecodeError:
            return data.decode("utf-8", errors="replace")


def _source_metadata(filename: str | None, file_type: str) -> dict[str, object]:
    metadata: dict[str, object] = {"source_file_type": file_type}
    if filename:
        metadata["source_file_name"] = Path(filename).name
    return metadata


def parse_text(data: bytes, filename: str | None = None) -> ExtractedText:
    """UTF-8 text, falling back to cp1251, then lossy UTF-8."""
    ext = Path(filename).suffix.lstrip(".").lower() if filename else ""
    return ExtractedText(text=_decode(data), metadata=_source_metadata(filename, ext or "txt"))


def parse_csv_tsv(data: bytes, filename: str | None = None, delimiter: str = ",") -> ExtractedText:
    """One line per row, non-empty cells joined by spaces."""
    reader = csv.reader(io.StringIO(_decode(data)), delimiter=delimiter)
    lines = [" ".join(cell.strip() for cell in row if cell.strip()) for row in reader]
    file_type = "csv" if delimiter == "," else "tsv"
    return ExtractedText(text="\n".join(lines), metadata=_source_metadata(filename, file_type))


def parse_csv(data: bytes, filename: str | None = None) -> ExtractedText:
    return parse_csv_tsv(data, filename, delimiter=",")


def parse_tsv(data: bytes, filename: str | None = None) -> ExtractedText:
    return parse_csv_tsv(data, filename, delimiter="\t")
