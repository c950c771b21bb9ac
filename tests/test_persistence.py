from __future__ import annotations

import json
import sqlite3
import sys
import tempfile
import unittest
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from note_vault.crypto import encrypt
from note_vault.db import Database
from note_vault.errors import StorageWriteError
from note_vault.models import Note
from note_vault.persistence import NotePersistence
from note_vault.storage import MemorySlotStorage, SqliteSlotStorage

KEY = "shareable-notes"


def sample_notes() -> list[Note]:
    created = datetime(2024, 3, 1, 9, 30, 15, 123456, tzinfo=UTC)
    return [
        Note(
            id="lx1abc",
            title="Shopping",
            content="<p>milk</p>",
            created_at=created,
            updated_at=created + timedelta(minutes=5),
            is_pinned=True,
            tags=("home", "errands"),
            summary="Things to buy",
        ),
        Note(
            id="lx2def",
            title="Diary",
            content=encrypt("dear diary", "secret"),
            created_at=created,
            updated_at=created.astimezone(timezone(timedelta(hours=2))),
            is_password_protected=True,
            glossary="diary: a journal",
            grammar_results="No issues",
        ),
    ]


class MemoryPersistenceTest(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = MemorySlotStorage()
        self.persistence = NotePersistence(self.storage, key=KEY)

    def test_missing_slot_loads_empty(self) -> None:
        self.assertEqual(self.persistence.load(), [])

    def test_save_then_load_round_trips(self) -> None:
        notes = sample_notes()
        self.assertTrue(self.persistence.save(notes))
        self.assertEqual(self.persistence.load(), notes)

    def test_record_uses_camel_case_fields(self) -> None:
        self.persistence.save(sample_notes())
        records = json.loads(self.storage.read(KEY))
        first, second = records
        self.assertEqual(first["createdAt"], "2024-03-01T09:30:15.123456Z")
        self.assertEqual(first["tags"], ["home", "errands"])
        self.assertTrue(first["isPinned"])
        self.assertNotIn("glossary", first)
        self.assertEqual(second["grammarResults"], "No issues")
        self.assertTrue(second["content"].startswith("encrypted:"))

    def test_corrupt_slot_is_cleared(self) -> None:
        self.storage.write(KEY, "{not json")
        self.assertEqual(self.persistence.load(), [])
        self.assertIsNone(self.storage.read(KEY))
        self.assertEqual(self.persistence.load(), [])

    def test_wrong_shapes_count_as_corruption(self) -> None:
        for raw in ('{"id": "x"}', "[1, 2]", '[{"id": "x", "title": "t"}]',
                    '[{"id": "x", "title": "t", "content": "c", "createdAt": "yesterday", "updatedAt": "x"}]'):
            with self.subTest(raw=raw):
                self.storage.write(KEY, raw)
                self.assertEqual(self.persistence.load(), [])
                self.assertIsNone(self.storage.read(KEY))

    def test_browser_timestamps_are_reconstituted(self) -> None:
        record = {
            "id": "abc",
            "title": "From the browser",
            "content": "hi",
            "createdAt": "2024-05-06T07:08:09.010Z",
            "updatedAt": "2024-05-06T07:08:09.010Z",
            "isPinned": False,
            "isPasswordProtected": False,
            "tags": [],
        }
        self.storage.write(KEY, json.dumps([record]))
        (note,) = self.persistence.load()
        self.assertEqual(note.created_at, datetime(2024, 5, 6, 7, 8, 9, 10000, tzinfo=UTC))
        self.assertIsNotNone(note.updated_at.tzinfo)

    def test_capacity_overflow_reports_failure(self) -> None:
        storage = MemorySlotStorage(capacity=32)
        persistence = NotePersistence(storage, key=KEY)
        self.assertFalse(persistence.save(sample_notes()))
        self.assertIsNone(storage.read(KEY))
        with self.assertRaises(StorageWriteError):
            persistence.save_or_raise(sample_notes())

    def test_protected_plaintext_is_never_written(self) -> None:
        self.persistence.save([])
        leaky = Note(
            id="leak",
            title="Secret",
            content="plaintext secret",
            created_at=datetime.now(UTC),
            updated_at=datetime.now(UTC),
            is_password_protected=True,
        )
        self.assertFalse(self.persistence.save([leaky]))
        self.assertEqual(self.storage.read(KEY), "[]")


class SqlitePersistenceTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.db_file = Path(self.tmpdir.name) / "notes.sqlite3"

    def _persistence(self, capacity=None) -> NotePersistence:
        database = Database(self.db_file)
        self.addCleanup(database.close)
        return NotePersistence(SqliteSlotStorage(database, capacity=capacity), key=KEY)

    def test_round_trip_survives_reopen(self) -> None:
        notes = sample_notes()
        self.assertTrue(self._persistence().save(notes))
        self.assertEqual(self._persistence().load(), notes)

    def test_overwrite_keeps_single_row(self) -> None:
        persistence = self._persistence()
        persistence.save(sample_notes())
        persistence.save(sample_notes()[:1])
        self.assertEqual(len(persistence.load()), 1)
        with persistence.storage.db.cursor() as cur:
            cur.execute("SELECT COUNT(*) FROM slots")
            self.assertEqual(cur.fetchone()[0], 1)

    def test_capacity_limit(self) -> None:
        persistence = self._persistence(capacity=10)
        self.assertFalse(persistence.save(sample_notes()))
        self.assertEqual(persistence.load(), [])

    def test_clear_removes_slot(self) -> None:
        persistence = self._persistence()
        persistence.save(sample_notes())
        persistence.clear()
        self.assertIsNone(persistence.storage.read(KEY))

    def test_migrates_version_one_slots(self) -> None:
        con = sqlite3.connect(self.db_file)
        con.executescript(
            """
            CREATE TABLE meta (key TEXT PRIMARY KEY, value TEXT NOT NULL);
            INSERT INTO meta VALUES ('schema_version', '1');
            CREATE TABLE slots (key TEXT PRIMARY KEY, value TEXT NOT NULL);
            INSERT INTO slots VALUES ('shareable-notes', '[]');
            """
        )
        con.commit()
        con.close()

        persistence = self._persistence()
        self.assertEqual(persistence.load(), [])
        self.assertTrue(persistence.save(sample_notes()))
        with persistence.storage.db.cursor() as cur:
            cur.execute("SELECT value FROM meta WHERE key = 'schema_version'")
            self.assertEqual(cur.fetchone()[0], "2")
            cur.execute("SELECT updated_at FROM slots")
            self.assertTrue(cur.fetchone()[0])


if __name__ == "__main__":
    unittest.main()
