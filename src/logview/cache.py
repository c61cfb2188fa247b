"""Time-bounded in-memory cache for built file trees."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_TTL = 5 * 60.0
DEFAULT_SWEEP_INTERVAL = 60.0


def tree_key(log_id: str) -> str:
    return f"tree:{log_id}"


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers waiting for the lock block new readers so a steady stream of
    ``get`` calls cannot starve ``set``.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float

    def expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache:
    """Key/value store whose entries vanish ``ttl`` seconds after being set.

    Expired entries are dropped lazily by :meth:`get` and eagerly by
    :meth:`sweep_expired`, which :meth:`start_sweeper` runs on a daemon thread.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = float(ttl)
        self._clock = clock
        self._items: Dict[str, CacheEntry] = {}
        self._lock = ReadWriteLock()
        self._stop = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    @property
    def ttl(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._items)

    def get(self, key: str) -> Any:
        with self._lock.read():
            entry = self._items.get(key)
            if entry is None:
                return None
            if not entry.expired(self._clock()):
                return entry.value

        with self._lock.write():
            # Another caller may have refreshed the key in between.
            entry = self._items.get(key)
            if entry is not None and entry.expired(self._clock()):
                del self._items[key]
                return None
            return entry.value if entry is not None else None

    def set(self, key: str, value: Any) -> None:
        with self._lock.write():
            self._items[key] = CacheEntry(value=value, expires_at=self._clock() + self._ttl)

    def delete(self, key: str) -> None:
        with self._lock.write():
            self._items.pop(key, None)

    def clear(self) -> None:
        with self._lock.write():
            self._items = {}

    def sweep_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock.write():
            now = self._clock()
            expired = [key for key, entry in self._items.items() if entry.expired(now)]
            for key in expired:
                del self._items[key]
        if expired:
            LOGGER.debug("Swept %d expired cache entries", len(expired))
        return len(expired)

    def start_sweeper(self, interval: float = DEFAULT_SWEEP_INTERVAL) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, args=(interval,), name="tree-cache-sweeper", daemon=True
        )
        self._sweeper.start()

    def stop_sweeper(self) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=5)
            self._sweeper = None

    def _sweep_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.sweep_expired()
            except Exception:  # pragma: no cover - keep the sweeper alive
                LOGGER.exception("Cache sweep failed")
