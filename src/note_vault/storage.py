"""Single-slot durable key/value backends."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Dict, Optional, Protocol

from .db import Database
from .errors import StorageError, StorageWriteError
from .logger import configure_logging

_LOG = configure_logging()


class SlotStorage(Protocol):
    """Minimal storage surface the persistence layer relies on."""

    def read(self, key: str) -> Optional[str]:
        ...

    def write(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...


def _check_capacity(key: str, value: str, capacity: Optional[int]) -> None:
    if capacity is None:
        return
    size = len(value.encode("utf-8"))
    if size > capacity:
        msg = f"slot {key!r} would hold {size} bytes; capacity is {capacity}"
        raise StorageWriteError(msg)


class MemorySlotStorage:
    """Dict-backed slots, used by tests and throwaway sessions."""

    def __init__(self, capacity: Optional[int] = None) -> None:
        self.capacity = capacity
        self._slots: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._slots.get(key)

    def write(self, key: str, value: str) -> None:
        _check_capacity(key, value, self.capacity)
        self._slots[key] = value

    def remove(self, key: str) -> None:
        self._slots.pop(key, None)


class SqliteSlotStorage:
    """Slots persisted in the application database, one row per key."""

    def __init__(self, database: Optional[Database] = None, capacity: Optional[int] = None) -> None:
        self.db = database or Database()
        self.db.initialise()
        self.capacity = capacity

    def read(self, key: str) -> Optional[str]:
        try:
            with self.db.cursor() as cur:
                cur.execute("SELECT value FROM slots WHERE key = ?", (key,))
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"failed to read slot {key!r}: {exc}") from exc
        if row is None:
            return None
        return row["value"]

    def write(self, key: str, value: str) -> None:
        _check_capacity(key, value, self.capacity)
        try:
            with self.db.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO slots (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now(UTC).isoformat()),
                )
        except sqlite3.Error as exc:
            raise StorageWriteError(f"failed to write slot {key!r}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            with self.db.cursor() as cur:
                cur.execute("DELETE FROM slots WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"failed to remove slot {key!r}: {exc}") from exc
        _LOG.debug("Removed slot %s", key)


__all__ = [
    "MemorySlotStorage",
    "SlotStorage",
    "SqliteSlotStorage",
]
