"""Safe extraction of ZIP archives into a per-log directory."""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from logview.errors import ExtractError
from logview.utils.files import is_within

LOGGER = logging.getLogger(__name__)

COPY_BUFFER = 1024 * 1024


@dataclass(slots=True)
class ExtractReport:
    """Entries written to disk and entries rejected as unsafe."""

    extracted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def extract_archive(archive_path: Path, dest_dir: Path) -> ExtractReport:
    """Unpack ``archive_path`` into ``dest_dir``.

    Every member is resolved against the destination and skipped when it would
    land outside of it (``../`` segments, absolute names, anything else that
    resolves elsewhere). Failing to create or write an accepted member aborts
    the whole extraction with :class:`ExtractError`; the destination may then
    be partially populated.
    """
    dest_dir = Path(dest_dir)
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractError(f"failed to create directory {dest_dir.name}: {_reason(exc)}") from exc

    root = Path(os.path.realpath(dest_dir))
    report = ExtractReport()

    try:
        archive = zipfile.ZipFile(archive_path)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ExtractError(f"failed to open archive: {_reason(exc)}") from exc

    with archive:
        for member in archive.infolist():
            target = Path(os.path.realpath(os.path.join(root, member.filename)))
            if not is_within(root, target):
                LOGGER.warning("Skipping unsafe archive entry %r", member.filename)
                report.skipped.append(member.filename)
                continue

            if member.is_dir():
                try:
                    target.mkdir(parents=True, exist_ok=True)
                except OSError as exc:
                    raise ExtractError(
                        f"failed to create directory {member.filename}: {_reason(exc)}",
                        entry=member.filename,
                    ) from exc
                continue

            _extract_member(archive, member, target)
            report.extracted.append(member.filename)

    LOGGER.info(
        "Extracted %d entries into %s (%d skipped)",
        len(report.extracted),
        dest_dir,
        len(report.skipped),
    )
    return report


def _extract_member(archive: zipfile.ZipFile, member: zipfile.ZipInfo, target: Path) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ExtractError(
            f"failed to create parent directory for {member.filename}: {_reason(exc)}",
            entry=member.filename,
        ) from exc

    try:
        with archive.open(member, "r") as src, target.open("wb") as dst:
            shutil.copyfileobj(src, dst, length=COPY_BUFFER)
    except (OSError, zipfile.BadZipFile, EOFError, NotImplementedError, RuntimeError) as exc:
        raise ExtractError(
            f"failed to extract {member.filename}: {_reason(exc)}", entry=member.filename
        ) from exc


def _reason(exc: BaseException) -> str:
    # str() of an OSError embeds the absolute filename.
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc)
