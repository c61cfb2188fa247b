"""Bounded, encoding-tolerant file reads and light content classification."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from logview.errors import FileTooLargeError, UnreadableFileError
from logview.models import FileKind

LOGGER = logging.getLogger(__name__)

# latin-1 maps every byte, so it is the guaranteed last resort.
ENCODINGS: tuple[str, ...] = ("utf-8", "gbk", "latin-1")

_EXTENSION_KINDS: dict[str, FileKind] = {
    ".json": "json",
    ".log": "text",
    ".txt": "text",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".html": "html",
    ".htm": "html",
}


def truncation_notice(limit: int) -> str:
    return f"\n\n... (file too large, showing first {limit} bytes / {limit / 1024:.2f} KB)"


def read_content(
    path: Path,
    max_file_size: int,
    max_preview_size: int,
    *,
    encodings: Sequence[str] = ENCODINGS,
) -> tuple[str, bool]:
    """Read ``path`` as text.

    Returns ``(content, truncated)``. Files above ``max_file_size`` are refused
    without being opened; files above ``max_preview_size`` yield only their
    first ``max_preview_size`` bytes followed by a notice.
    """
    path = Path(path)
    size = path.stat().st_size

    if size > max_file_size:
        raise FileTooLargeError(size, max_file_size)

    if size > max_preview_size:
        with path.open("rb") as handle:
            data = handle.read(max_preview_size)
        # The cut can fall inside a multi-byte sequence.
        preview = data.decode("utf-8", errors="replace")
        return preview + truncation_notice(max_preview_size), True

    with path.open("rb") as handle:
        data = handle.read()

    for encoding in encodings:
        try:
            return data.decode(encoding), False
        except (UnicodeDecodeError, LookupError):
            LOGGER.debug("Decoding %s as %s failed", path.name, encoding)
    raise UnreadableFileError(f"Unable to decode file: {path.name}")


def _is_json(content: str) -> bool:
    try:
        json.loads(content)
    except ValueError:
        return False
    return True


def detect_type(filename: str, content: str) -> FileKind:
    """Classify content by extension, sniffing JSON for unknown extensions."""
    kind = _EXTENSION_KINDS.get(Path(filename).suffix.lower())
    if kind is not None:
        return kind
    return "json" if _is_json(content) else "text"


def format_for_display(content: str, kind: FileKind) -> str:
    if kind != "json":
        return content
    try:
        parsed = json.loads(content)
    except ValueError:
        return content
    return json.dumps(parsed, indent=2, ensure_ascii=False)
