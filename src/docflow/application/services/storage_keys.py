"""Storage key layout."""

import re
from datetime import datetime

_UNSAFE = re.compile(r"[^\w@.-]+")


def safe_segment(value: str) -> str:
    """Last path segment; runs of anything but word characters, '@', '.' and '-' become '_'."""
    name = value.replace("\\", "/").rsplit("/", 1)[-1].strip()
    name = _UNSAFE.sub("_", name).strip("._")
    return name or "file"


def document_key(owner_id: str, content_hash: str, filename: str, prefix: str = "") -> str:
    return (
        f"{prefix}users/{safe_segment(owner_id)}/documents/"
        f"{content_hash}/{safe_segment(filename)}"
    )


def comparison_result_key(owner_id: str, comparison_id: int, prefix: str = "") -> str:
    return f"{prefix}users/{safe_segment(owner_id)}/comparisons/{comparison_id}/result.json"


def temp_key(filename: str, now: datetime, prefix: str = "") -> str:
    """Scratch key for intermediate files, unique per millisecond."""
    return f"{prefix}temp/{int(now.timestamp() * 1000)}-{safe_segment(filename)}"
