"""Utility helpers for working with files under a storage root."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from logview.errors import InvalidInputError

LOGGER = logging.getLogger(__name__)


def is_within(root: Path | str, candidate: Path | str) -> bool:
    """Return True if ``candidate`` resolves strictly inside ``root``.

    Both sides go through ``os.path.realpath`` and the comparison adds a
    trailing separator so ``/data/log1`` does not match ``/data/log10``.
    """
    root_str = os.path.realpath(root) + os.sep
    candidate_str = os.path.realpath(candidate)
    return candidate_str.startswith(root_str)


def safe_join(root: Path, relative: str) -> Path:
    """Join a caller-supplied relative path onto ``root`` or raise."""
    if "\0" in relative:
        raise InvalidInputError("Invalid path: contains null byte")
    candidate = Path(os.path.realpath(os.path.join(root, relative.lstrip("/"))))
    if not is_within(root, candidate):
        raise InvalidInputError(f"Invalid path: {relative}")
    return candidate


def remove_quietly(path: Path) -> None:
    """Delete a file if present; a missing file is not an error."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        LOGGER.warning("Unable to remove %s: %s", path, exc)


def remove_tree(path: Path) -> None:
    """Recursively delete a directory; a missing directory is not an error."""
    if path.exists():
        shutil.rmtree(path)
