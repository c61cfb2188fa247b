"""SQLite store for log bundle metadata."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from logview.errors import StorageError
from logview.models import LogRecord

LOGGER = logging.getLogger(__name__)

_SELECT_COLUMNS = """
    SELECT id, log_id, file_path, extract_path,
           datetime(download_time, 'localtime') AS download_time,
           tags, notes
    FROM logs
"""

# (column, DDL) pairs added to databases created before the column existed.
_MIGRATIONS = (
    ("tags", "ALTER TABLE logs ADD COLUMN tags TEXT DEFAULT ''"),
    ("notes", "ALTER TABLE logs ADD COLUMN notes TEXT DEFAULT ''"),
)


def _row_to_record(row: sqlite3.Row) -> LogRecord:
    return LogRecord(
        id=row["id"],
        log_id=row["log_id"],
        file_path=row["file_path"],
        extract_path=row["extract_path"],
        download_time=row["download_time"] or "",
        tags=row["tags"] or "",
        notes=row["notes"] or "",
    )


class SQLiteLogStore:
    """Persistence layer for log records.

    A record is only created once a bundle has been fully extracted, so the
    presence of a row implies the extraction directory exists.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise StorageError(f"Unable to open database {self.db_path.name}: {exc}") from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> "SQLiteLogStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise StorageError(str(exc)) from exc
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    log_id TEXT UNIQUE NOT NULL,
                    file_path TEXT NOT NULL,
                    extract_path TEXT NOT NULL,
                    download_time TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    tags TEXT DEFAULT '',
                    notes TEXT DEFAULT ''
                )
                """
            )
            columns = {row["name"] for row in conn.execute("PRAGMA table_info(logs)")}
            for column, ddl in _MIGRATIONS:
                if column not in columns:
                    LOGGER.info("Migrating logs table: adding column %s", column)
                    conn.execute(ddl)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_logs_log_id ON logs(log_id)")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_logs_download_time ON logs(download_time DESC)"
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_logs_tags ON logs(tags)")

    def create_record(self, log_id: str, file_path: str, extract_path: str) -> None:
        """Insert a record, replacing (and re-timestamping) any previous one."""
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO logs(log_id, file_path, extract_path)
                VALUES (?, ?, ?)
                """,
                (log_id, file_path, extract_path),
            )

    def get_record(self, log_id: str) -> Optional[LogRecord]:
        try:
            row = self._conn.execute(
                _SELECT_COLUMNS + " WHERE log_id = ?", (log_id,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return _row_to_record(row) if row is not None else None

    def list_records(self) -> List[LogRecord]:
        try:
            rows = self._conn.execute(
                _SELECT_COLUMNS + " ORDER BY logs.download_time DESC, id DESC"
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        return [_row_to_record(row) for row in rows]

    def delete_record(self, log_id: str) -> bool:
        """Delete a record; returns True if a row was removed."""
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM logs WHERE log_id = ?", (log_id,))
        return cursor.rowcount > 0

    def update_tags(self, log_id: str, tags: str) -> None:
        with self.transaction() as conn:
            conn.execute("UPDATE logs SET tags = ? WHERE log_id = ?", (tags, log_id))

    def update_notes(self, log_id: str, notes: str) -> None:
        with self.transaction() as conn:
            conn.execute("UPDATE logs SET notes = ? WHERE log_id = ?", (notes, log_id))

    def update_tags_and_notes(self, log_id: str, tags: str, notes: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                "UPDATE logs SET tags = ?, notes = ? WHERE log_id = ?",
                (tags, notes, log_id),
            )
