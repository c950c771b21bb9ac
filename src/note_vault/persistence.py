"""Whole-collection persistence of notes into a single storage slot."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional

from . import config
from .crypto import is_encrypted
from .errors import StorageCorruptError, StorageWriteError
from .logger import configure_logging
from .models import Note
from .storage import SlotStorage

_LOG = configure_logging()


def notes_to_json(notes: Iterable[Note], *, indent: Optional[int] = None) -> str:
    return json.dumps([note.to_dict() for note in notes], ensure_ascii=False, indent=indent)


def notes_from_json(raw: str) -> List[Note]:
    """Parse a JSON array of notes, raising :class:`StorageCorruptError` on any defect."""
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageCorruptError(f"notes payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise StorageCorruptError(f"notes payload must be a list, got {type(payload).__name__}")
    try:
        return [Note.from_dict(entry) for entry in payload]
    except (TypeError, ValueError) as exc:
        raise StorageCorruptError(f"notes payload has an invalid entry: {exc}") from exc


class NotePersistence:
    """Loads and rewrites the full note collection.

    Every save is a complete rewrite of the slot; there is no incremental
    diffing, which keeps the format trivial at the cost of scaling only to
    modest collections.  The slot is owned by one process at a time and the
    last writer wins.
    """

    def __init__(self, storage: SlotStorage, key: Optional[str] = None) -> None:
        self.storage = storage
        self.key = key or config.STORAGE_KEY

    def load(self) -> List[Note]:
        raw = self.storage.read(self.key)
        if not raw:
            _LOG.info("No notes found in slot %s, starting empty", self.key)
            return []
        try:
            notes = notes_from_json(raw)
        except StorageCorruptError as exc:
            _LOG.warning("Discarding corrupt notes slot %s: %s", self.key, exc)
            self.clear()
            return []
        _LOG.info("Loaded %s notes from slot %s", len(notes), self.key)
        return notes

    def save(self, notes: Iterable[Note]) -> bool:
        try:
            self.save_or_raise(notes)
        except StorageWriteError as exc:
            _LOG.error("Error saving notes to slot %s: %s", self.key, exc)
            return False
        return True

    def save_or_raise(self, notes: Iterable[Note]) -> None:
        notes = list(notes)
        for note in notes:
            if note.is_password_protected and not is_encrypted(note.content):
                raise StorageWriteError(f"refusing to persist protected note {note.id} without encryption")
        self.storage.write(self.key, notes_to_json(notes))
        _LOG.info("Saved %s notes to slot %s", len(notes), self.key)

    def clear(self) -> None:
        self.storage.remove(self.key)
        _LOG.info("Cleared notes slot %s", self.key)


__all__ = [
    "NotePersistence",
    "notes_from_json",
    "notes_to_json",
]
