"""Application configuration defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024
DEFAULT_MAX_PREVIEW_SIZE = 10 * 1024 * 1024
DEFAULT_REMOTE_URL = "https://logs.example.com/api/v1"


def _get_str(environ: Mapping[str, str], key: str, default: str) -> str:
    value = environ.get(key, "")
    return value if value else default


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key, "")
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s=%r, using %s", key, value, default)
        return default


@dataclass(slots=True)
class AppConfig:
    host: str = "127.0.0.1"
    port: int = 5001
    mode: str = "release"
    server_timeout: int = 30

    db_path: Path = Path("logs.db")

    base_dir: Path = Path(".")
    zip_dir: Path = Path("storage/zips")
    extract_dir: Path = Path("storage/extracted")
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_preview_size: int = DEFAULT_MAX_PREVIEW_SIZE

    remote_base_url: str = DEFAULT_REMOTE_URL
    remote_username: str = ""
    remote_password: str = ""
    remote_timeout: int = 300

    tree_cache_ttl: float = 300.0
    tree_cache_sweep_interval: float = 60.0

    device_binary: str = "./dht"
    device_domain_suffix: str = ".heiyu.space"
    device_timeout: int = 30

    def __post_init__(self) -> None:
        self.db_path = Path(self.db_path)
        self.base_dir = Path(self.base_dir)
        self.zip_dir = Path(self.zip_dir)
        self.extract_dir = Path(self.extract_dir)
        self.remote_base_url = self.remote_base_url.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a configuration from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            host=_get_str(env, "LOGVIEW_HOST", defaults.host),
            port=_get_int(env, "PORT", defaults.port),
            mode=_get_str(env, "LOGVIEW_MODE", defaults.mode),
            server_timeout=_get_int(env, "SERVER_TIMEOUT", defaults.server_timeout),
            db_path=Path(_get_str(env, "DB_PATH", str(defaults.db_path))),
            base_dir=Path(_get_str(env, "STORAGE_BASE_DIR", str(defaults.base_dir))),
            zip_dir=Path(_get_str(env, "STORAGE_ZIP_DIR", str(defaults.zip_dir))),
            extract_dir=Path(_get_str(env, "STORAGE_EXTRACT_DIR", str(defaults.extract_dir))),
            max_file_size=_get_int(env, "MAX_FILE_SIZE", defaults.max_file_size),
            max_preview_size=_get_int(env, "MAX_PREVIEW_SIZE", defaults.max_preview_size),
            remote_base_url=_get_str(env, "REMOTE_API_URL", defaults.remote_base_url),
            remote_username=_get_str(env, "REMOTE_API_USERNAME", defaults.remote_username),
            remote_password=_get_str(env, "REMOTE_API_PASSWORD", defaults.remote_password),
            remote_timeout=_get_int(env, "REMOTE_API_TIMEOUT", defaults.remote_timeout),
            tree_cache_ttl=_get_int(env, "TREE_CACHE_TTL", int(defaults.tree_cache_ttl)),
            tree_cache_sweep_interval=_get_int(
                env, "TREE_CACHE_SWEEP_INTERVAL", int(defaults.tree_cache_sweep_interval)
            ),
            device_binary=_get_str(env, "DEVICE_CHECK_BINARY", defaults.device_binary),
            device_domain_suffix=_get_str(
                env, "DEVICE_DOMAIN_SUFFIX", defaults.device_domain_suffix
            ),
            device_timeout=_get_int(env, "DEVICE_CHECK_TIMEOUT", defaults.device_timeout),
        )

    @property
    def debug(self) -> bool:
        return self.mode == "debug"

    def resolve_path(self, path: Path) -> Path:
        """Resolve a storage path against ``base_dir`` unless it is absolute."""
        if Path(path).is_absolute():
            return Path(path)
        return self.base_dir / path

    def resolve_db_path(self) -> Path:
        return self.resolve_path(self.db_path)

    @property
    def zip_root(self) -> Path:
        return self.resolve_path(self.zip_dir)

    @property
    def extract_root(self) -> Path:
        return self.resolve_path(self.extract_dir)

    def ensure_directories(self) -> None:
        self.zip_root.mkdir(parents=True, exist_ok=True)
        self.extract_root.mkdir(parents=True, exist_ok=True)
        self.resolve_db_path().parent.mkdir(parents=True, exist_ok=True)
