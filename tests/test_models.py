"""Tests for core data models."""

from __future__ import annotations

import dataclasses

import pytest

from logview.models import (
    DeviceCheckResult,
    DownloadOutcome,
    FileContent,
    FileTreeNode,
    LogRecord,
    RemoteLog,
)


class TestLogRecord:
    """Test LogRecord dataclass."""

    def test_defaults(self) -> None:
        record = LogRecord(
            id=1,
            log_id="42",
            file_path="",
            extract_path="/data/42",
            download_time="2024-05-01 10:00:00",
        )

        assert record.tags == ""
        assert record.notes == ""
        assert record.to_dict()["extract_path"] == "/data/42"


class TestFileTreeNode:
    """Test FileTreeNode dataclass."""

    def test_file_node_dict(self) -> None:
        node = FileTreeNode(name="a.log", path="x/a.log", type="file", size=3)

        assert node.is_dir is False
        assert node.to_dict() == {"name": "a.log", "path": "x/a.log", "type": "file", "size": 3}

    def test_directory_node_dict(self) -> None:
        leaf = FileTreeNode(name="a.log", path="x/a.log", type="file", size=3)
        node = FileTreeNode(name="x", path="x", type="directory", children=(leaf,))

        assert node.is_dir is True
        assert node.to_dict() == {
            "name": "x",
            "path": "x",
            "type": "directory",
            "children": [leaf.to_dict()],
        }

    def test_empty_directory_keeps_children_key(self) -> None:
        node = FileTreeNode(name="empty", path="empty", type="directory", children=())

        assert node.to_dict()["children"] == []

    def test_frozen(self) -> None:
        node = FileTreeNode(name="a", path="a", type="file", size=1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            node.name = "b"  # type: ignore[misc]


class TestResultModels:
    def test_file_content(self) -> None:
        content = FileContent(content="hi", type="text", size=2)

        assert content.to_dict() == {"content": "hi", "type": "text", "size": 2, "truncated": False}

    def test_download_outcome_defaults(self) -> None:
        outcome = DownloadOutcome(success=False, error="invalid archive")

        assert outcome.to_dict() == {
            "success": False,
            "extract_path": "",
            "file_path": "",
            "error": "invalid archive",
            "skipped": [],
        }

    def test_remote_log(self) -> None:
        log = RemoteLog(id="1", boxname="box", createat="2024", description="d")

        assert log.to_dict() == {"id": "1", "boxname": "box", "createat": "2024", "description": "d"}

    def test_device_result_omits_empty_fields(self) -> None:
        failed = DeviceCheckResult(success=False, error="offline")

        assert failed.to_dict() == {"success": False, "error": "offline"}

        ok = DeviceCheckResult(
            success=True, output="pong", device_name="box", device_address="box.heiyu.space"
        )
        assert ok.to_dict() == {
            "success": True,
            "output": "pong",
            "device_name": "box",
            "device_address": "box.heiyu.space",
        }
