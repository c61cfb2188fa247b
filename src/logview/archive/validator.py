"""Container-level validation of downloaded archives."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from logview.errors import ArchiveInvalidError

LOGGER = logging.getLogger(__name__)

INVALID_ARCHIVE = "invalid archive"


def is_valid_archive(path: Path) -> bool:
    """Return True if ``path`` is a structurally sound ZIP container.

    Only the end-of-central-directory record and the central directory are
    parsed; no member is decompressed. Any I/O problem counts as invalid.
    """
    try:
        with zipfile.ZipFile(path) as archive:
            archive.infolist()
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as exc:
        LOGGER.debug("Archive %s failed validation: %s", path, exc)
        return False
    return True


def ensure_valid_archive(path: Path) -> None:
    """Raise :class:`ArchiveInvalidError` unless ``path`` is a readable ZIP."""
    if not is_valid_archive(path):
        raise ArchiveInvalidError(INVALID_ARCHIVE)
