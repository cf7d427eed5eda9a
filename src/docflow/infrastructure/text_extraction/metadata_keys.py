"""Canonical metadata keys shared by every file format."""

CANONICAL_KEYS = frozenset(
    {
        "title",
        "author",
        "created_date",
        "modified_date",
        "page_count",
        "language",
        "source_file_name",
        "source_file_type",
    }
)

# Parser-specific key -> canonical key
PARSER_KEY_TO_CANONICAL: dict[str, str] = {
    # docx / OOXML core properties
    "title": "title",
    "subject": "title",
    "author": "author",
    "created": "created_date",
    "modified": "modified_date",
    "language": "language",
    # pdf document info
    "/Title": "title",
    "/Author": "author",
    "/CreationDate": "created_date",
    "/ModDate": "modified_date",
    "/Lang": "language",
}


def normalize_value(value: object) -> str:
    """Render a metadata value as a string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
