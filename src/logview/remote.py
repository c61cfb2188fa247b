"""Authenticated HTTP access to the remote log service."""

from __future__ import annotations

import logging
from pathlib import Path
from time import monotonic
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

from logview.config import AppConfig
from logview.errors import RemoteError, RemoteNotFoundError
from logview.models import RemoteLog
from logview.utils.files import remove_quietly
from logview.utils.ids import coerce_remote_id

LOGGER = logging.getLogger(__name__)

USER_AGENT = "LogView/1.0"
NOT_FOUND_OR_EXPIRED = "not found or expired"


class RemoteClient:
    """One pooled, authenticated ``httpx.Client`` shared by every remote call.

    Built once at startup and handed to the services that need it; tests pass
    an ``httpx.MockTransport`` through ``transport``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        username: str = "",
        password: str = "",
        timeout: float = 300.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        auth = httpx.BasicAuth(username, password) if username else None
        self._client = httpx.Client(
            auth=auth,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(
                max_connections=100,
                max_keepalive_connections=10,
                keepalive_expiry=90.0,
            ),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls, config: AppConfig, *, transport: Optional[httpx.BaseTransport] = None
    ) -> "RemoteClient":
        return cls(
            config.remote_base_url,
            username=config.remote_username,
            password=config.remote_password,
            timeout=config.remote_timeout,
            transport=transport,
        )

    def __enter__(self) -> "RemoteClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def download_url(self, log_id: str) -> str:
        return self.url(f"download-log/{quote(log_id, safe='')}")

    def download(self, url: str, dest: Path) -> int:
        """Stream the body of ``url`` into ``dest`` and return the byte count.

        ``timeout`` bounds the whole transfer as well as each network read.
        Whatever goes wrong, a partially written ``dest`` is removed before the
        error propagates.
        """
        written = 0
        deadline = monotonic() + self.timeout
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code == 404:
                    raise RemoteNotFoundError(NOT_FOUND_OR_EXPIRED)
                if not response.is_success:
                    raise RemoteError(f"HTTP error: {response.status_code}")
                with dest.open("wb") as handle:
                    for chunk in response.iter_bytes():
                        if monotonic() > deadline:
                            raise RemoteError(f"download timed out after {self.timeout:g}s")
                        handle.write(chunk)
                        written += len(chunk)
        except httpx.HTTPError as exc:
            remove_quietly(dest)
            raise RemoteError(f"network error: {exc}") from exc
        except Exception:
            remove_quietly(dest)
            raise
        LOGGER.debug("Downloaded %d bytes to %s", written, dest.name)
        return written

    def get_json(self, url: str, params: Optional[Mapping[str, str]] = None) -> Any:
        try:
            response = self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise RemoteError(f"network error: {exc}") from exc
        if not response.is_success:
            raise RemoteError(f"HTTP error: {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteError(f"invalid response: {exc}") from exc


def _get_string(item: Mapping[str, Any], key: str) -> str:
    value = item.get(key)
    return value if isinstance(value, str) else ""


class RemoteLogService:
    """Search the remote service for available log bundles."""

    def __init__(self, client: RemoteClient) -> None:
        self.client = client

    def list_remote_logs(self, keyword: str = "") -> List[RemoteLog]:
        payload = self.client.get_json(
            self.client.url("search"), params={"queryType": "1", "keyword": keyword}
        )
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise RemoteError("invalid response: expected a JSON array")

        results: List[RemoteLog] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            results.append(_format_remote_log(item))
        return results


def _format_remote_log(item: Dict[str, Any]) -> RemoteLog:
    return RemoteLog(
        id=coerce_remote_id(item.get("id")),
        boxname=_get_string(item, "x-boxname"),
        createat=_get_string(item, "createat"),
        description=_get_string(item, "description"),
    )
