from __future__ import annotations

import json
import sys
import tempfile
import unittest
import zipfile
from datetime import UTC, datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from note_vault.application import NotesApplication
from note_vault.crypto import encrypt
from note_vault.data_paths import exports_dir
from note_vault.errors import ImportFormatError
from note_vault.models import Note
from note_vault.storage import MemorySlotStorage


def build_notes() -> list[Note]:
    now = datetime(2024, 6, 1, 8, 0, tzinfo=UTC)
    return [
        Note(id="n1", title="Plain", content="hello", created_at=now, updated_at=now, tags=("a",)),
        Note(
            id="n2",
            title="Locked",
            content=encrypt("private", "secret"),
            created_at=now,
            updated_at=now,
            is_password_protected=True,
            is_pinned=True,
        ),
    ]


class ExportImportTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.tmp_path = Path(self.tmpdir.name)
        self.app = NotesApplication(MemorySlotStorage())
        self.app.startup()
        for note in reversed(build_notes()):
            self.app.store.add_note(note)

    def test_export_clear_import_restores_collection(self) -> None:
        original = self.app.store.notes
        archive = self.app.export_to(self.tmp_path / "backup.notespack")
        self.assertTrue(archive.exists())

        with zipfile.ZipFile(archive, "r") as zp:
            manifest = json.loads(zp.read("manifest.json"))
        self.assertEqual(manifest["version"], 1)
        self.assertEqual([entry["id"] for entry in manifest["notes"]], ["n1", "n2"])
        self.assertNotIn("private", json.dumps(manifest))

        self.app.store.clear_all()
        self.assertEqual(self.app.store.notes, ())

        imported = self.app.import_from(archive)
        self.assertEqual(imported, ["n1", "n2"])
        self.assertEqual(self.app.store.notes, original)
        stored = json.loads(self.app.persistence.storage.read(self.app.persistence.key))
        self.assertEqual(len(stored), 2)

    def test_import_plain_json_array(self) -> None:
        source = self.tmp_path / "notes.json"
        source.write_text(json.dumps([build_notes()[0].to_dict()]), encoding="utf-8")
        self.assertEqual(self.app.import_from(source), ["n1"])

    def test_invalid_import_leaves_state_untouched(self) -> None:
        before = self.app.store.notes
        bad_json = self.tmp_path / "bad.json"
        bad_json.write_text("{oops", encoding="utf-8")
        bad_zip = self.tmp_path / "bad.notespack"
        with zipfile.ZipFile(bad_zip, "w") as zp:
            zp.writestr("readme.txt", "no manifest here")
        wrong_shape = self.tmp_path / "shape.notespack"
        with zipfile.ZipFile(wrong_shape, "w") as zp:
            zp.writestr("manifest.json", json.dumps({"version": 1, "notes": {"id": "x"}}))

        for source in (bad_json, bad_zip, wrong_shape, self.tmp_path / "missing.json"):
            with self.subTest(source=source.name):
                with self.assertRaises(ImportFormatError):
                    self.app.import_from(source)
                self.assertEqual(self.app.store.notes, before)

    def test_default_export_lands_in_exports_dir(self) -> None:
        archive = self.app.export_to()
        self.addCleanup(archive.unlink)
        self.assertEqual(archive.parent, exports_dir())
        self.assertTrue(archive.name.endswith(".notespack"))
        self.assertTrue(zipfile.is_zipfile(archive))

    def test_protected_plaintext_records_are_rejected(self) -> None:
        before = self.app.store.notes
        record = build_notes()[0].to_dict()
        record["isPasswordProtected"] = True
        source = self.tmp_path / "legacy.json"
        source.write_text(json.dumps([record]), encoding="utf-8")
        with self.assertRaises(ImportFormatError):
            self.app.import_from(source)
        self.assertEqual(self.app.store.notes, before)


if __name__ == "__main__":
    unittest.main()
