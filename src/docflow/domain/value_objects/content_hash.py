"""Content hash for upload deduplication."""

import hashlib
import re
from dataclasses import dataclass

_SHA256_HEX = re.compile(r"^[0-9a-f]{64}$")


@dataclass(frozen=True)
class ContentHash:
    """SHA-256 hash of uploaded file bytes (lowercase hex)."""

    value: str

    def __post_init__(self) -> None:
        if not _SHA256_HEX.match(self.value):
            raise ValueError("Content hash must be 64 lowercase hex characters")

    @classmethod
    def of(cls, data: bytes) -> "ContentHash":
        """Hash raw bytes."""
        return cls(hashlib.sha256(data).hexdigest())

    def __str__(self) -> str:
        return self.value
