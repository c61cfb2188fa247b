"""Tests for file utility functions."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from logview.errors import InvalidInputError
from logview.utils.files import is_within, remove_quietly, remove_tree, safe_join


class TestIsWithin:
    """Test is_within function."""

    def test_child_is_within(self, tmp_path: Path) -> None:
        assert is_within(tmp_path, tmp_path / "a" / "b.txt") is True

    def test_root_itself_is_not_within(self, tmp_path: Path) -> None:
        """The root is not strictly inside itself."""
        assert is_within(tmp_path, tmp_path) is False

    def test_sibling_with_shared_prefix(self, tmp_path: Path) -> None:
        """Should not treat /x/log1 as containing /x/log10."""
        assert is_within(tmp_path / "log1", tmp_path / "log10" / "f") is False

    def test_parent_traversal(self, tmp_path: Path) -> None:
        assert is_within(tmp_path / "root", tmp_path / "root" / ".." / "other") is False

    def test_symlink_escape(self, tmp_path: Path) -> None:
        """A symlink pointing outside the root resolves outside it."""
        root = tmp_path / "root"
        root.mkdir()
        outside = tmp_path / "outside"
        outside.mkdir()
        (root / "link").symlink_to(outside)

        assert is_within(root, root / "link" / "secret") is False


class TestSafeJoin:
    """Test safe_join function."""

    def test_relative_path(self, tmp_path: Path) -> None:
        assert safe_join(tmp_path, "a/b.txt") == Path(os.path.realpath(tmp_path)) / "a" / "b.txt"

    def test_leading_slash_stays_inside(self, tmp_path: Path) -> None:
        result = safe_join(tmp_path, "/etc/passwd")

        assert result == Path(os.path.realpath(tmp_path)) / "etc" / "passwd"

    def test_traversal_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidInputError, match="Invalid path"):
            safe_join(tmp_path / "log1", "../log2/a.txt")

    def test_null_byte_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidInputError):
            safe_join(tmp_path, "a\0b")


class TestRemoveHelpers:
    """Test remove_quietly and remove_tree."""

    def test_remove_quietly_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "f.zip"
        target.write_bytes(b"x")

        remove_quietly(target)

        assert not target.exists()

    def test_remove_quietly_missing(self, tmp_path: Path) -> None:
        remove_quietly(tmp_path / "missing.zip")

    def test_remove_quietly_logs_other_errors(self, tmp_path: Path) -> None:
        target = tmp_path / "f.zip"
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with patch("logview.utils.files.LOGGER") as logger:
                remove_quietly(target)

        logger.warning.assert_called_once()

    def test_remove_tree(self, tmp_path: Path) -> None:
        root = tmp_path / "tree"
        (root / "a" / "b").mkdir(parents=True)
        (root / "a" / "b" / "c.txt").write_text("c")

        remove_tree(root)

        assert not root.exists()

    def test_remove_tree_missing(self, tmp_path: Path) -> None:
        remove_tree(tmp_path / "missing")
