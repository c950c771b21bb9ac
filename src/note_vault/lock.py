"""Editing sessions that govern when a protected note may be held decrypted."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Iterable, List, Optional

from . import config
from .crypto import decrypt, encrypt, is_encrypted
from .errors import DecryptionError, NoteLockedError, NoteNotFoundError, ValidationError
from .logger import configure_logging
from .models import Note, dedupe_tags, generate_id, utcnow
from .store import Clock, NoteStore, validate_note_fields

_LOG = configure_logging()

LOCKED_MESSAGE = "Note is locked. Unlock to save changes."


class LockState(enum.Enum):
    PLAINTEXT = "plaintext"
    LOCKED = "locked"
    UNLOCKING = "unlocking"
    UNLOCKED = "unlocked"


class PromptMode(enum.Enum):
    VERIFY = "verify"
    CREATE = "create"


def validate_new_password(password: str, confirm: str) -> None:
    if not (password or "").strip():
        raise ValidationError("Password is required")
    if len(password) < config.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters")
    if password != confirm:
        raise ValidationError("Passwords do not match")


class LockController:
    """One editing session over a single note (or a note being created).

    Decrypted content and the password live only on this object.  Nothing
    leaves the session except through :meth:`build_note`, which re-encrypts
    protected content, and :meth:`close` drops both.
    """

    def __init__(self, note: Optional[Note] = None, *, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._original = note
        self._password: Optional[str] = None
        self._prompt: Optional[PromptMode] = None
        self._resume_state = LockState.PLAINTEXT

        self.title = note.title if note else ""
        self.tags: List[str] = list(note.tags) if note else []
        self.summary = note.summary if note else None
        self.glossary = note.glossary if note else None
        self.grammar_results = note.grammar_results if note else None
        self.is_password_protected = note.is_password_protected if note else False

        if note is not None and note.is_password_protected and is_encrypted(note.content):
            self._content = ""
            self._state = LockState.LOCKED
        else:
            self._content = note.content if note else ""
            self._state = LockState.UNLOCKED if self.is_password_protected else LockState.PLAINTEXT
        self._baseline_content = self._content

    # ------------------------------------------------------------------
    # State inspection
    # ------------------------------------------------------------------
    @property
    def state(self) -> LockState:
        return self._state

    @property
    def prompt_mode(self) -> Optional[PromptMode]:
        return self._prompt

    @property
    def note(self) -> Optional[Note]:
        return self._original

    @property
    def is_locked(self) -> bool:
        return self._state is LockState.LOCKED or self._prompt is PromptMode.VERIFY

    @property
    def is_editable(self) -> bool:
        return self._state in (LockState.PLAINTEXT, LockState.UNLOCKED)

    @property
    def content(self) -> str:
        """Editable content; an empty placeholder while the note is locked."""
        return self._content

    @content.setter
    def content(self, value: str) -> None:
        if not self.is_editable:
            raise NoteLockedError(LOCKED_MESSAGE)
        self._content = value

    @property
    def has_unsaved_changes(self) -> bool:
        note = self._original
        if note is None:
            return bool(self.title.strip() or self._content.strip())
        return (
            self.title != note.title
            or self._content != self._baseline_content
            or tuple(self.tags) != note.tags
            or (self.summary or None) != note.summary
            or (self.glossary or None) != note.glossary
            or (self.grammar_results or None) != note.grammar_results
            or self.is_password_protected != note.is_password_protected
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def request_unlock(self) -> None:
        if self._state is not LockState.LOCKED:
            msg = f"cannot unlock from state {self._state.value}"
            raise ValueError(msg)
        self._state = LockState.UNLOCKING
        self._prompt = PromptMode.VERIFY
        self._resume_state = LockState.LOCKED

    def submit_password(self, password: str) -> str:
        """Try ``password`` against the stored ciphertext.

        On failure the session falls back to LOCKED and the error propagates;
        nothing about the note changes and the prompt stays open for a retry.
        """
        if self._prompt is not PromptMode.VERIFY:
            raise ValueError("no unlock prompt is active")
        if not (password or "").strip():
            raise ValidationError("Password is required")
        if self._original is None or not is_encrypted(self._original.content):
            raise ValueError("no encrypted content to unlock")
        try:
            plain = decrypt(self._original.content, password)
        except DecryptionError:
            self._state = LockState.LOCKED
            raise
        self._content = plain
        self._baseline_content = plain
        self._password = password
        self._state = LockState.UNLOCKED
        self._prompt = None
        _LOG.info("Unlocked note %s", self._original.id)
        return plain

    def request_protection(self) -> None:
        if self._state not in (LockState.PLAINTEXT, LockState.UNLOCKED):
            msg = f"cannot set a password from state {self._state.value}"
            raise ValueError(msg)
        self._resume_state = self._state
        self._state = LockState.UNLOCKING
        self._prompt = PromptMode.CREATE

    def set_password(self, password: str, confirm: str) -> None:
        if self._prompt is not PromptMode.CREATE:
            raise ValueError("no password prompt is active")
        validate_new_password(password, confirm)
        self._password = password
        self.is_password_protected = True
        self._state = LockState.UNLOCKED
        self._prompt = None

    def cancel_prompt(self) -> None:
        if self._prompt is None:
            return
        self._state = self._resume_state
        self._prompt = None

    def disable_protection(self) -> None:
        if self._state is not LockState.UNLOCKED:
            if self._state is LockState.PLAINTEXT:
                return
            raise NoteLockedError(LOCKED_MESSAGE)
        self._password = None
        self.is_password_protected = False
        self._state = LockState.PLAINTEXT

    def close(self) -> None:
        """End the session, forgetting the password and any decrypted text."""
        self._password = None
        self._prompt = None
        self._content = ""
        self._baseline_content = ""
        note = self._original
        if note is not None and note.is_password_protected and is_encrypted(note.content):
            self.is_password_protected = True
            self._state = LockState.LOCKED
        else:
            self.is_password_protected = False
            self._state = LockState.PLAINTEXT

    # ------------------------------------------------------------------
    # Derived content from the enrichment collaborator
    # ------------------------------------------------------------------
    def enrichment_input(self) -> str:
        if self.is_locked:
            raise NoteLockedError(LOCKED_MESSAGE)
        return self._content

    def apply_enrichment(
        self,
        *,
        summary: Optional[str] = None,
        tags: Iterable[str] = (),
        glossary: Optional[str] = None,
        grammar_results: Optional[str] = None,
    ) -> None:
        if summary is not None:
            self.summary = summary
        if glossary is not None:
            self.glossary = glossary
        if grammar_results is not None:
            self.grammar_results = grammar_results
        self.tags = list(dedupe_tags([*self.tags, *tags]))

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------
    def build_note(self, *, now: Optional[datetime] = None, is_pinned: Optional[bool] = None) -> Note:
        if not self.is_editable:
            raise NoteLockedError(LOCKED_MESSAGE)
        validate_note_fields(self.title, self._content)

        content = self._content
        if self.is_password_protected:
            if not self._password:
                raise ValidationError("Set a password before saving a protected note")
            content = encrypt(content, self._password)

        stamp = now or self._clock()
        original = self._original
        if original is not None:
            stamp = max(stamp, original.updated_at)
        pinned = is_pinned if is_pinned is not None else (original.is_pinned if original else False)
        return Note(
            id=original.id if original else generate_id(),
            title=self.title.strip(),
            content=content,
            created_at=original.created_at if original else stamp,
            updated_at=stamp,
            is_pinned=pinned,
            is_password_protected=self.is_password_protected,
            tags=tuple(self.tags),
            summary=self.summary or None,
            glossary=self.glossary or None,
            grammar_results=self.grammar_results or None,
        )

    def save(self, store: NoteStore) -> Note:
        """Validate, encrypt if needed and dispatch the note into ``store``."""
        current = store.get(self._original.id) if self._original is not None else None
        if self._original is not None and current is None:
            raise NoteNotFoundError(f"Note {self._original.id} was deleted; its edits were not saved")
        note = self.build_note(is_pinned=current.is_pinned if current else None)
        if self._original is not None:
            store.update_note(note)
        else:
            store.add_note(note)
            store.set_selected(note.id)
        self._original = note
        self.title = note.title
        self._baseline_content = self._content
        _LOG.info("Saved note %s (protected=%s)", note.id, note.is_password_protected)
        return note


__all__ = [
    "LOCKED_MESSAGE",
    "LockController",
    "LockState",
    "PromptMode",
    "validate_new_password",
]
