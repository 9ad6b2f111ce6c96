from __future__ import annotations

import sqlite3


KV_STORE_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value BLOB,
    updated_at TEXT
);
"""


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, decl: str) -> None:
    cur = conn.execute(f"PRAGMA table_info({table})")
    cols = [row[1] for row in cur]
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl}")


def ensure_kv_schema(conn: sqlite3.Connection) -> None:
    """Create the key-value table and newer columns idempotently."""
    conn.execute(KV_STORE_SCHEMA)
    _ensure_column(conn, "kv_store", "updated_at", "TEXT")
