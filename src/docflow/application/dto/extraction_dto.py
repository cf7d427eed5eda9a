"""Text extraction result."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ExtractedText:
    """Plain text pulled out of a file plus whatever metadata the format offers."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
