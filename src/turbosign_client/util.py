from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

_SAFE = re.compile(r"[^a-zA-Z0-9._-]+")


def guess_content_type(filename: Optional[str]) -> str:
    if not filename:
        return "application/octet-stream"
    ext = Path(filename).suffix.lower().lstrip(".")
    return {
        "pdf": "application/pdf",
        "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "doc": "application/msword",
        "json": "application/json",
        "txt": "text/plain",
    }.get(ext, "application/octet-stream")


def safe_filename(name: str, max_len: int = 120) -> str:
    cleaned = _SAFE.sub("_", name).strip("._-")
    if not cleaned:
        cleaned = "document"
    return cleaned[:max_len]
