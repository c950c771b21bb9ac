"""Local export/import of the note collection as .notespack archives."""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import List, Optional

from .crypto import is_encrypted
from .data_paths import exports_dir
from .errors import ImportFormatError, StorageCorruptError
from .logger import configure_logging
from .models import Note, utcnow
from .persistence import notes_from_json
from .store import NoteStore, SetNotes

_LOG = configure_logging()

EXPORT_MANIFEST = "manifest.json"
EXPORT_VERSION = 1


class ExportImportManager:
    """Handles .notespack archives for offline backup and restore.

    Protected notes travel as the ciphertext already held in the store;
    exporting never needs a password and never sees plaintext.
    """

    def __init__(self, store: NoteStore) -> None:
        self.store = store

    def export_to_path(self, destination: Optional[Path] = None) -> Path:
        if destination is None:
            stamp = utcnow().strftime("%Y%m%d-%H%M%S")
            destination = exports_dir() / f"notes-{stamp}.notespack"
        entries = [note.to_dict() for note in self.store.notes]
        payload = json.dumps({"version": EXPORT_VERSION, "notes": entries}, indent=2, ensure_ascii=False)
        with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(EXPORT_MANIFEST, payload)
        _LOG.info("Exported %s notes to %s", len(entries), destination)
        return destination

    def import_from_path(self, source: Path) -> List[str]:
        """Replace the collection with the notes stored in ``source``.

        ``source`` may be a .notespack archive or a bare JSON array of notes.
        The store is only touched once the whole document has parsed.
        """
        notes = self._read_notes(source)
        self.store.dispatch(SetNotes(tuple(notes)))
        _LOG.info("Imported %s notes from %s", len(notes), source)
        return [note.id for note in self.store.notes]

    def _read_notes(self, source: Path) -> List[Note]:
        if zipfile.is_zipfile(source):
            with zipfile.ZipFile(source, "r") as archive:
                try:
                    manifest = json.loads(archive.read(EXPORT_MANIFEST).decode("utf-8"))
                except (KeyError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                    raise ImportFormatError(f"{source} has no readable {EXPORT_MANIFEST}") from exc
            if not isinstance(manifest, dict) or not isinstance(manifest.get("notes"), list):
                raise ImportFormatError(f"{source} manifest does not contain a notes list")
            raw = json.dumps(manifest["notes"])
        else:
            try:
                raw = source.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ImportFormatError(f"cannot read {source}: {exc}") from exc
        try:
            notes = notes_from_json(raw)
        except StorageCorruptError as exc:
            raise ImportFormatError("Invalid JSON format") from exc
        unsealed = [note.id for note in notes if note.is_password_protected and not is_encrypted(note.content)]
        if unsealed:
            raise ImportFormatError(f"protected notes without encrypted content: {', '.join(unsealed)}")
        return notes
