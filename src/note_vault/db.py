"""SQLite database wrapper backing the durable storage slots."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .data_paths import db_path
from .logger import configure_logging

_LOG = configure_logging()

SCHEMA_VERSION = 2

BASE_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS slots (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ''
);
"""


class Database:
    """Lightweight SQLite manager with schema migrations."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path or db_path()
        self._connection: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        if self._connection is None:
            _LOG.info("Opening database at %s", self.path)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(self.path)
            self._connection.row_factory = sqlite3.Row
            self._connection.execute("PRAGMA foreign_keys=ON;")
        return self._connection

    @contextmanager
    def cursor(self) -> Iterator[sqlite3.Cursor]:
        conn = self.connect()
        cur = conn.cursor()
        try:
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cur.close()

    def initialise(self) -> None:
        with self.cursor() as cur:
            cur.executescript(BASE_SQL)
            cur.execute(
                "INSERT OR IGNORE INTO meta (key, value) VALUES (?, ?)",
                ("schema_version", "1"),
            )
            version = self._schema_version(cur)
            if version is None or version < 2:
                self._migrate_to_v2(cur)
            else:
                cur.executescript(SCHEMA_SQL)
            cur.execute(
                "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
                ("schema_version", str(SCHEMA_VERSION)),
            )

    def close(self) -> None:
        if self._connection is not None:
            _LOG.info("Closing database")
            self._connection.close()
            self._connection = None

    # ------------------------------------------------------------------
    # Schema helpers
    # ------------------------------------------------------------------
    def _schema_version(self, cur: sqlite3.Cursor) -> Optional[int]:
        cur.execute("SELECT value FROM meta WHERE key = 'schema_version'")
        row = cur.fetchone()
        if row is None:
            return None
        try:
            return int(row["value"])
        except (TypeError, ValueError):  # pragma: no cover - defensive
            return None

    def _migrate_to_v2(self, cur: sqlite3.Cursor) -> None:
        _LOG.info("Upgrading database schema to version 2")
        # version 1 kept slots without a write timestamp
        cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='slots'")
        if cur.fetchone():
            cur.execute("PRAGMA table_info(slots)")
            columns = {row[1] for row in cur.fetchall()}
            if "updated_at" not in columns:
                cur.execute("ALTER TABLE slots ADD COLUMN updated_at TEXT NOT NULL DEFAULT ''")
        cur.executescript(SCHEMA_SQL)
