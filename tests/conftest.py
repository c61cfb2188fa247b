"""Shared fixtures for LogView tests."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable, Iterator, Mapping
from urllib.parse import unquote

import httpx
import pytest

from logview.config import AppConfig
from logview.remote import RemoteClient


def build_zip_bytes(entries: Mapping[str, bytes | None]) -> bytes:
    """Build an in-memory ZIP; a ``None`` value makes a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, data in entries.items():
            if data is None:
                archive.writestr(zipfile.ZipInfo(name if name.endswith("/") else name + "/"), b"")
            else:
                archive.writestr(name, data)
    return buffer.getvalue()


@pytest.fixture
def zip_bytes() -> Callable[[Mapping[str, bytes | None]], bytes]:
    return build_zip_bytes


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    def _make(entries: Mapping[str, bytes | None], name: str = "bundle.zip") -> Path:
        path = tmp_path / name
        path.write_bytes(build_zip_bytes(entries))
        return path

    return _make


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        db_path=Path("logs.db"),
        base_dir=tmp_path / "data",
        zip_dir=Path("zips"),
        extract_dir=Path("extracted"),
        remote_base_url="https://logs.test/api/v1",
        remote_username="user",
        remote_password="secret",
        remote_timeout=5,
        max_file_size=1024,
        max_preview_size=256,
    )


class FakeRemote:
    """Stand-in for the remote log service behind an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.archives: dict[str, bytes] = {}
        self.search_results: list = []
        self.status_overrides: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/search"):
            return httpx.Response(200, json=self.search_results)
        marker = "/download-log/"
        if marker in path:
            log_id = unquote(path.split(marker, 1)[1])
            if log_id in self.status_overrides:
                return httpx.Response(self.status_overrides[log_id])
            if log_id not in self.archives:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, content=self.archives[log_id])
        return httpx.Response(404)


@pytest.fixture
def fake_remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def remote_client(app_config: AppConfig, fake_remote: FakeRemote) -> Iterator[RemoteClient]:
    client = RemoteClient.from_config(
        app_config, transport=httpx.MockTransport(fake_remote.handler)
    )
    yield client
    client.close()
