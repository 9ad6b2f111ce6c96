"""Light weight SQLite connection helpers.

The notification store keeps its database under the data directory, which
defaults to ``data`` in the working directory and can be redirected with the
``HELIDECK_DATA_DIR`` environment variable (tests point it at ``tmp_path``).
"""
from __future__ import annotations

import os
import sqlite3
from pathlib import Path


def data_dir() -> Path:
    """Return the configured base directory for local data files."""
    return Path(os.environ.get("HELIDECK_DATA_DIR", "data"))


def connect(path: Path | str) -> sqlite3.Connection:
    """Create a SQLite connection with row factory configured."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


__all__ = ["data_dir", "connect"]
