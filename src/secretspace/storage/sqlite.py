from __future__ import annotations
import logging
import sqlite3
import threading
from pathlib import Path
from secretspace.core.errors import SecretNotFound, StoreFailure
from secretspace.core.primitives import now_iso
from secretspace.storage.base import Store

logger = logging.getLogger(__name__)


class SqliteStore(Store):
    def __init__(self, db_path: Path, name: str | None = None) -> None:
        self._db_path = Path(db_path)
        self.name = name or str(self._db_path)
        # relocations may run on a thread pool; one connection, serialized
        self._lock = threading.Lock()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS secrets ("
                "  key TEXT PRIMARY KEY,"
                "  data BLOB NOT NULL,"
                "  updated_at TEXT NOT NULL"
                ")"
            )
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StoreFailure(str(self._db_path), str(e)) from e

    def get(self, key: str) -> bytes:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT data FROM secrets WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreFailure(key, str(e)) from e
        if row is None:
            raise SecretNotFound(key)
        return bytes(row[0])

    def put(self, key: str, data: bytes) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO secrets (key, data, updated_at) VALUES (?, ?, ?)",
                    (key, sqlite3.Binary(data), now_iso()),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            raise StoreFailure(key, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            with self._lock:
                cursor = self._conn.execute("DELETE FROM secrets WHERE key = ?", (key,))
                self._conn.commit()
        except sqlite3.Error as e:
            raise StoreFailure(key, str(e)) from e
        if cursor.rowcount == 0:
            raise SecretNotFound(key)

    def list(self) -> list[str]:
        try:
            with self._lock:
                rows = self._conn.execute("SELECT key FROM secrets ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StoreFailure(self.name, str(e)) from e
        return [key for (key,) in rows]

    def exists(self, key: str) -> bool:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT 1 FROM secrets WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreFailure(key, str(e)) from e
        return row is not None

    def close(self) -> None:
        logger.debug("Closing sqlite store %s", self.name)
        self._conn.close()
