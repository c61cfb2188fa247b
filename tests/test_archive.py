"""Tests for archive validation and safe extraction."""

from __future__ import annotations

import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from logview.archive.extractor import extract_archive
from logview.archive.validator import (
    INVALID_ARCHIVE,
    ensure_valid_archive,
    is_valid_archive,
)
from logview.errors import ArchiveInvalidError, ExtractError


class TestIsValidArchive:
    """Test is_valid_archive function."""

    def test_valid_zip(self, make_zip) -> None:
        """Should accept a well-formed archive."""
        path = make_zip({"a.txt": b"hello"})

        assert is_valid_archive(path) is True

    def test_empty_zip(self, make_zip) -> None:
        """An archive with no entries is still a valid container."""
        path = make_zip({})

        assert is_valid_archive(path) is True

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should treat a missing file as invalid rather than raising."""
        assert is_valid_archive(tmp_path / "missing.zip") is False

    def test_not_a_zip(self, tmp_path: Path) -> None:
        path = tmp_path / "page.zip"
        path.write_text("<html>Service unavailable</html>")

        assert is_valid_archive(path) is False

    def test_truncated_footer(self, make_zip) -> None:
        """Should reject an archive whose central directory was cut off."""
        path = make_zip({"a.txt": b"x" * 500})
        data = path.read_bytes()
        path.write_bytes(data[: len(data) - 10])

        assert is_valid_archive(path) is False

    def test_does_not_modify_file(self, make_zip) -> None:
        path = make_zip({"a.txt": b"hello"})
        before = path.read_bytes()

        is_valid_archive(path)

        assert path.read_bytes() == before

    def test_ensure_valid_archive_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "page.zip"
        path.write_text("<html></html>")

        with pytest.raises(ArchiveInvalidError) as excinfo:
            ensure_valid_archive(path)

        assert excinfo.value.message == INVALID_ARCHIVE
        assert excinfo.value.status_code == 422

    def test_ensure_valid_archive_accepts(self, make_zip) -> None:
        ensure_valid_archive(make_zip({"a.txt": b"a"}))


class TestExtractArchive:
    """Test extract_archive function."""

    def test_extracts_files_and_directories(self, make_zip, tmp_path: Path) -> None:
        """Should recreate the archive layout under the destination."""
        archive = make_zip({"empty/": None, "a/b.json": b'{"k": 1}', "top.log": b"line\n"})
        dest = tmp_path / "out" / "log1"

        report = extract_archive(archive, dest)

        assert (dest / "empty").is_dir()
        assert (dest / "a" / "b.json").read_bytes() == b'{"k": 1}'
        assert (dest / "top.log").read_text() == "line\n"
        assert sorted(report.extracted) == ["a/b.json", "top.log"]
        assert report.skipped == []

    def test_creates_destination(self, make_zip, tmp_path: Path) -> None:
        archive = make_zip({})
        dest = tmp_path / "deep" / "nested" / "dest"

        extract_archive(archive, dest)

        assert dest.is_dir()

    def test_rejects_parent_traversal(self, make_zip, tmp_path: Path) -> None:
        """Should skip ../ entries while extracting the rest."""
        archive = make_zip({"../evil.txt": b"pwned", "ok.txt": b"fine", "a/../../evil2.txt": b"x"})
        dest = tmp_path / "dest"

        report = extract_archive(archive, dest)

        assert not (tmp_path / "evil.txt").exists()
        assert not (tmp_path / "evil2.txt").exists()
        assert (dest / "ok.txt").read_text() == "fine"
        assert set(report.skipped) == {"../evil.txt", "a/../../evil2.txt"}

    def test_rejects_absolute_path(self, make_zip, tmp_path: Path) -> None:
        target = tmp_path / "outside" / "abs.txt"
        archive = make_zip({str(target): b"abs", "keep.txt": b"keep"})
        dest = tmp_path / "dest"

        report = extract_archive(archive, dest)

        assert not target.exists()
        assert (dest / "keep.txt").exists()
        assert report.skipped == [str(target)]

    def test_rejects_sibling_prefix(self, make_zip, tmp_path: Path) -> None:
        """A path into a sibling that shares the destination prefix is outside."""
        archive = make_zip({"../dest-other/x.txt": b"x"})
        dest = tmp_path / "dest"

        report = extract_archive(archive, dest)

        assert not (tmp_path / "dest-other").exists()
        assert report.skipped == ["../dest-other/x.txt"]

    def test_overwrites_existing_file(self, make_zip, tmp_path: Path) -> None:
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "a.txt").write_text("old")
        archive = make_zip({"a.txt": b"new"})

        extract_archive(archive, dest)

        assert (dest / "a.txt").read_text() == "new"

    def test_corrupt_archive_raises(self, tmp_path: Path) -> None:
        bogus = tmp_path / "bogus.zip"
        bogus.write_bytes(b"not a zip")

        with pytest.raises(ExtractError):
            extract_archive(bogus, tmp_path / "dest")

    def test_copy_failure_names_entry(self, make_zip, tmp_path: Path) -> None:
        """A failing member aborts the extraction and is reported."""
        archive = make_zip({"good.txt": b"ok", "bad.txt": b"boom"})
        real_open = zipfile.ZipFile.open

        def failing_open(self, member, *args, **kwargs):
            name = member.filename if isinstance(member, zipfile.ZipInfo) else member
            if name == "bad.txt":
                raise zipfile.BadZipFile("Bad CRC-32 for file 'bad.txt'")
            return real_open(self, member, *args, **kwargs)

        with patch.object(zipfile.ZipFile, "open", failing_open):
            with pytest.raises(ExtractError) as excinfo:
                extract_archive(archive, tmp_path / "dest")

        assert excinfo.value.entry == "bad.txt"
        assert "bad.txt" in excinfo.value.message

    def test_file_where_directory_exists(self, make_zip, tmp_path: Path) -> None:
        """Should fail when a file entry collides with an existing directory."""
        dest = tmp_path / "dest"
        (dest / "clash").mkdir(parents=True)
        archive = make_zip({"clash": b"data"})

        with pytest.raises(ExtractError) as excinfo:
            extract_archive(archive, dest)

        assert excinfo.value.entry == "clash"

    def test_error_message_omits_absolute_path(self, make_zip, tmp_path: Path) -> None:
        """Filesystem errors are reported by entry name and reason only."""
        archive = make_zip({"a/": None, "a": b"x"})
        dest = tmp_path / "dest"

        with pytest.raises(ExtractError) as excinfo:
            extract_archive(archive, dest)

        assert excinfo.value.entry == "a"
        assert excinfo.value.message.startswith("failed to extract a: ")
        assert str(tmp_path) not in excinfo.value.message

    def test_unopenable_archive_message_omits_path(self, tmp_path: Path) -> None:
        with pytest.raises(ExtractError) as excinfo:
            extract_archive(tmp_path / "missing.zip", tmp_path / "dest")

        assert excinfo.value.message == "failed to open archive: No such file or directory"
