"""Development fixtures for offline UI testing."""

from __future__ import annotations

from . import config
from .logger import configure_logging
from .models import Note, utcnow
from .store import NoteStore

_LOG = configure_logging()


def seed_if_requested(store: NoteStore) -> None:
    if not config.DEV_PROFILE_ENABLED:
        return
    if store.notes:
        _LOG.info("Dev profile requested but store already populated; skipping seed")
        return

    sample = Note.new(
        title="Welcome",
        content="# Notes\n\n- Pin the notes you use most\n- Lock anything private with a password",
    )
    store.add_note(sample)
    _LOG.info("Seeded development note data at %s", utcnow().isoformat())
