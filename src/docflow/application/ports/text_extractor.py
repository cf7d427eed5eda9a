"""Text extractor port."""

from typing import Protocol

from docflow.application.dto import ExtractedText


class TextExtractor(Protocol):
    """Turns file bytes into plain text."""

    def supports(self, filename: str, content_type: str | None = None) -> bool: ...

    def extract(
        self, data: bytes, filename: str, content_type: str | None = None
    ) -> ExtractedText: ...
