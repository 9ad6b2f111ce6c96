"""Key-value persistence used by the notification center.

The center only needs two calls, ``load(key)`` and ``save(key, data)``, so any
backend providing them can be injected. Errors are raised to the caller; the
center decides how to degrade.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Protocol

from notifications.models.schema_sql import ensure_kv_schema
from utils.db import connect
from utils.timefmt import utcnow_iso


logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def load(self, key: str) -> Optional[bytes]:
        ...

    def save(self, key: str, data: bytes) -> None:
        ...


class SqliteKeyValueStore:
    """Stores each key as one row of the ``kv_store`` table."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _conn(self) -> sqlite3.Connection:
        conn = connect(self.path)
        ensure_kv_schema(conn)
        return conn

    def load(self, key: str) -> Optional[bytes]:
        conn = self._conn()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None or row["value"] is None:
            return None
        value = row["value"]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def save(self, key: str, data: bytes) -> None:
        conn = self._conn()
        try:
            conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                (key, sqlite3.Binary(data), utcnow_iso()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("[storage] wrote %d bytes to %s:%s", len(data), self.path.name, key)


class MemoryKeyValueStore:
    """Process-local store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None) -> None:
        self._data: Dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)


__all__ = ["KeyValueStore", "SqliteKeyValueStore", "MemoryKeyValueStore"]
