"""Retrieval pipeline: fetch, validate, extract, browse and read log bundles."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from logview.archive.extractor import extract_archive
from logview.archive.validator import ensure_valid_archive
from logview.cache import TTLCache, tree_key
from logview.config import AppConfig
from logview.content import detect_type, format_for_display, read_content
from logview.errors import (
    ArchiveInvalidError,
    ExtractError,
    NotFoundError,
    ReadFailure,
    RemoteError,
    StorageError,
)
from logview.models import DownloadOutcome, FileContent, FileTreeNode
from logview.remote import RemoteClient
from logview.tree import build_tree
from logview.utils.files import remove_quietly, remove_tree, safe_join

LOGGER = logging.getLogger(__name__)

LOG_NOT_FOUND = "Log not found"
FILE_NOT_FOUND = "File not found"


class LogFileService:
    """Owns the on-disk side of every log bundle.

    Two concurrent downloads of the same identifier are not serialized; the
    last one to finish wins both the directory contents and the record.
    """

    def __init__(
        self,
        config: AppConfig,
        client: RemoteClient,
        *,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.cache = cache if cache is not None else TTLCache(config.tree_cache_ttl)
        config.zip_root.mkdir(parents=True, exist_ok=True)
        config.extract_root.mkdir(parents=True, exist_ok=True)

    def archive_path(self, log_id: str) -> Path:
        return self.config.zip_root / f"{log_id}.zip"

    def extract_path(self, log_id: str) -> Path:
        return self.config.extract_root / log_id

    def download_and_extract(self, log_id: str) -> DownloadOutcome:
        """Fetch the bundle for ``log_id`` and unpack it.

        Remote and filesystem failures come back as an unsuccessful outcome;
        nothing is raised. The temporary archive never survives the call, and a
        failed re-download leaves the previous extraction untouched.
        """
        url = self.client.download_url(log_id)
        zip_path = self.archive_path(log_id)

        LOGGER.info("Downloading log %s", log_id)
        try:
            self.client.download(url, zip_path)
        except RemoteError as exc:
            LOGGER.warning("Download of %s failed: %s", log_id, exc.message)
            return DownloadOutcome(success=False, error=exc.message)
        except OSError as exc:
            LOGGER.error("Unable to save archive for %s: %s", log_id, exc)
            return DownloadOutcome(success=False, error=f"failed to save archive: {exc.strerror}")

        try:
            ensure_valid_archive(zip_path)
        except ArchiveInvalidError as exc:
            LOGGER.warning("Downloaded archive for %s is not a valid ZIP", log_id)
            remove_quietly(zip_path)
            return DownloadOutcome(success=False, error=exc.message)

        extract_dir = self.extract_path(log_id)
        staging = self.staging_path(log_id)
        # The previous extraction stays in place until the new one is complete.
        self._remove_extraction(staging)
        try:
            report = extract_archive(zip_path, staging)
            self._install(staging, extract_dir)
        except ExtractError as exc:
            LOGGER.error("Extraction of %s failed: %s", log_id, exc.message)
            self._remove_extraction(staging)
            return DownloadOutcome(success=False, error=exc.message)
        except OSError as exc:
            LOGGER.error("Unable to replace extraction of %s: %s", log_id, exc)
            self._remove_extraction(staging)
            return DownloadOutcome(
                success=False, error=f"failed to replace extraction: {exc.strerror}"
            )
        finally:
            remove_quietly(zip_path)
            self.cache.delete(tree_key(log_id))

        if report.skipped:
            LOGGER.warning("Log %s: %d unsafe entries skipped", log_id, len(report.skipped))
        return DownloadOutcome(
            success=True,
            extract_path=str(extract_dir),
            file_path="",
            skipped=list(report.skipped),
        )

    def staging_path(self, log_id: str) -> Path:
        return self.config.extract_root / f".{log_id}.partial"

    def _install(self, staging: Path, extract_dir: Path) -> None:
        """Swap a finished staging directory into ``extract_dir``.

        The old extraction is moved aside first and restored when the swap
        fails, so a readable directory exists at every point.
        """
        backup = self.config.extract_root / f".{extract_dir.name}.old"
        remove_tree(backup)
        if extract_dir.exists():
            os.replace(extract_dir, backup)
        try:
            os.replace(staging, extract_dir)
        except OSError:
            if backup.exists():
                os.replace(backup, extract_dir)
            raise
        self._remove_extraction(backup)

    def _remove_extraction(self, extract_dir: Path) -> None:
        try:
            remove_tree(extract_dir)
        except OSError as exc:
            LOGGER.warning("Unable to clean up %s: %s", extract_dir, exc)

    def get_tree(self, log_id: str, skipped: Optional[List[str]] = None) -> FileTreeNode:
        """Return the file tree for ``log_id``, building it on a cache miss."""
        key = tree_key(log_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        extract_dir = self.extract_path(log_id)
        if not extract_dir.is_dir():
            raise NotFoundError(LOG_NOT_FOUND)

        try:
            tree = build_tree(extract_dir, "", skipped)
        except FileNotFoundError as exc:
            raise NotFoundError(LOG_NOT_FOUND) from exc
        except OSError as exc:
            raise StorageError(f"Unable to read log directory: {exc.strerror}") from exc
        self.cache.set(key, tree)
        return tree

    def invalidate_tree(self, log_id: str) -> None:
        self.cache.delete(tree_key(log_id))

    def read_file(self, log_id: str, relative_path: str) -> FileContent:
        """Read one file of an extracted bundle for display.

        Size ceilings and decode failures produce a ``FileContent`` of type
        ``error`` rather than an exception.
        """
        extract_dir = self.extract_path(log_id)
        if not extract_dir.is_dir():
            raise NotFoundError(LOG_NOT_FOUND)

        full_path = safe_join(extract_dir, relative_path)
        if not full_path.is_file():
            raise NotFoundError(FILE_NOT_FOUND)

        try:
            content, truncated = read_content(
                full_path,
                self.config.max_file_size,
                self.config.max_preview_size,
            )
        except ReadFailure as exc:
            return FileContent(content=f"Error reading file: {exc.message}", type="error", size=0)
        except OSError as exc:
            LOGGER.warning("Unable to read %s in log %s: %s", relative_path, log_id, exc)
            return FileContent(content=f"Error reading file: {exc.strerror}", type="error", size=0)

        kind = detect_type(relative_path, content)
        return FileContent(
            content=format_for_display(content, kind),
            type=kind,
            size=len(content),
            truncated=truncated,
        )

    def delete_files(self, log_id: str) -> None:
        """Forget the cached tree and remove the extraction directory."""
        self.invalidate_tree(log_id)
        remove_tree(self.extract_path(log_id))
        LOGGER.info("Removed files for log %s", log_id)
