"""Composition root wiring storage, persistence and the note store."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from . import config
from .db import Database
from .dev_seed import seed_if_requested
from .errors import NoteNotFoundError
from .export_import import ExportImportManager
from .lock import LockController
from .logger import configure_logging
from .persistence import NotePersistence
from .storage import SlotStorage, SqliteSlotStorage
from .store import NoteStore

_LOG = configure_logging()


class NotesApplication:
    """Owns the single :class:`NoteStore` of a running process.

    The UI layer receives this object (or its ``store``) explicitly; nothing
    in the package keeps module-level state about notes.
    """

    def __init__(self, storage: Optional[SlotStorage] = None, database: Optional[Database] = None) -> None:
        self.database: Optional[Database] = None
        if storage is None:
            self.database = database or Database()
            storage = SqliteSlotStorage(self.database, capacity=config.STORAGE_CAPACITY)
        self.persistence = NotePersistence(storage)
        self.store = NoteStore(self.persistence)
        self.export_import = ExportImportManager(self.store)
        self._started = False

    def startup(self) -> NoteStore:
        if not self._started:
            _LOG.info("Starting %s %s", config.APP_NAME, config.APP_VERSION)
            self.store.load()
            seed_if_requested(self.store)
            self._started = True
        return self.store

    def open_session(self, note_id: Optional[str] = None) -> LockController:
        """Start editing an existing note, or a new one when ``note_id`` is None."""
        if note_id is None:
            return LockController()
        note = self.store.get(note_id)
        if note is None:
            raise NoteNotFoundError(f"Note {note_id} not found")
        self.store.set_selected(note_id)
        return LockController(note)

    def export_to(self, destination: Optional[Path] = None) -> Path:
        return self.export_import.export_to_path(destination)

    def import_from(self, source: Path) -> List[str]:
        return self.export_import.import_from_path(source)

    def shutdown(self) -> None:
        if self.database is not None:
            self.database.close()


def create_application(storage: Optional[SlotStorage] = None) -> NotesApplication:
    app = NotesApplication(storage)
    app.startup()
    return app
