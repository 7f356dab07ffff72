"""
Device-local key/value storage backed by SQLite.

Holds everything the client keeps between runs: the signed-in account, the
like set, play history, per-day play suppression sets and the catalog cache.
"""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional

from loguru import logger

from .config import get_data_dir


def get_storage_path() -> Path:
    """Get the path to the device storage database."""
    return get_data_dir() / "device.db"


@contextmanager
def get_storage_connection(db_path: Optional[Path] = None):
    """Get a storage connection with proper cleanup."""
    path = db_path or get_storage_path()
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, timeout=30.0)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


class DeviceStorage:
    """String-keyed JSON values persisted on this device.

    Values that fail to decode are reported as absent so callers fall back
    to their defaults.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path or get_storage_path()
        self._memory_conn: Optional[sqlite3.Connection] = None
        if str(self.db_path) == ":memory:":
            # Shared connection: each new :memory: connection is a fresh database
            self._memory_conn = sqlite3.connect(":memory:", check_same_thread=False)
            self._memory_conn.row_factory = sqlite3.Row
        self._init_schema()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        if self._memory_conn is not None:
            yield self._memory_conn
            return
        with get_storage_connection(self.db_path) as conn:
            yield conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()

    def get_raw(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def put_raw(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                """,
                (key, value),
            )
            conn.commit()

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a stored JSON value, returning ``default`` if absent or corrupt."""
        try:
            raw = self.get_raw(key)
        except sqlite3.Error as e:
            logger.warning(f"Device storage read failed for {key}: {e}")
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding malformed value for {key}")
            return default

    def put_json(self, key: str, value: Any) -> bool:
        """Store a JSON-serializable value. Returns False if the write failed."""
        try:
            self.put_raw(key, json.dumps(value))
            return True
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.warning(f"Device storage write failed for {key}: {e}")
            return False

    def remove(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()

    def keys(self, prefix: str = "") -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        return [row["key"] for row in rows]
