"""Reducer-driven note collection and its persistence-aware dispatcher."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple, Union, assert_never

from .errors import StorageError, ValidationError
from .logger import configure_logging
from .models import Note, utcnow
from .persistence import NotePersistence

_LOG = configure_logging()

LOAD_ERROR = "Failed to load notes from storage"
SAVE_ERROR = "Failed to save notes to storage"
CLEAR_ERROR = "Failed to clear notes from storage"

Clock = Callable[[], datetime]


@dataclass(frozen=True, slots=True)
class NotesState:
    notes: Tuple[Note, ...] = ()
    selected_id: Optional[str] = None
    search_term: str = ""
    error: Optional[str] = None
    is_loading: bool = False

    def find(self, note_id: Optional[str]) -> Optional[Note]:
        if note_id is None:
            return None
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    @property
    def selected_note(self) -> Optional[Note]:
        return self.find(self.selected_id)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class SetNotes:
    notes: Tuple[Note, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class AddNote:
    note: Note


@dataclass(frozen=True, slots=True)
class UpdateNote:
    note: Note


@dataclass(frozen=True, slots=True)
class DeleteNote:
    note_id: str


@dataclass(frozen=True, slots=True)
class TogglePin:
    note_id: str


@dataclass(frozen=True, slots=True)
class SetSelected:
    note_id: Optional[str]


@dataclass(frozen=True, slots=True)
class SetSearchTerm:
    term: str


@dataclass(frozen=True, slots=True)
class SetLoading:
    is_loading: bool


@dataclass(frozen=True, slots=True)
class SetError:
    message: Optional[str]


@dataclass(frozen=True, slots=True)
class ClearError:
    pass


Command = Union[
    SetNotes,
    AddNote,
    UpdateNote,
    DeleteNote,
    TogglePin,
    SetSelected,
    SetSearchTerm,
    SetLoading,
    SetError,
    ClearError,
]


def _unique_by_id(notes: Iterable[Note]) -> Tuple[Note, ...]:
    seen = set()
    out = []
    for note in notes:
        if note.id in seen:
            continue
        seen.add(note.id)
        out.append(note)
    return tuple(out)


def _contains(state: NotesState, note_id: str) -> bool:
    return any(note.id == note_id for note in state.notes)


def reduce(state: NotesState, command: Command, *, clock: Clock = utcnow) -> NotesState:
    """Apply one command and return the next state.

    Every transition is total: commands naming an id that is not in the
    collection leave the state untouched.
    """
    match command:
        case SetNotes(notes=notes):
            notes = _unique_by_id(notes)
            selected = state.selected_id if any(n.id == state.selected_id for n in notes) else None
            return replace(state, notes=notes, selected_id=selected, error=None)

        case AddNote(note=note):
            rest = tuple(n for n in state.notes if n.id != note.id)
            return replace(state, notes=(note, *rest), error=None)

        case UpdateNote(note=note):
            if not _contains(state, note.id):
                _LOG.debug("Ignoring update for unknown note %s", note.id)
                return state
            notes = tuple(note if n.id == note.id else n for n in state.notes)
            return replace(state, notes=notes, error=None)

        case DeleteNote(note_id=note_id):
            if not _contains(state, note_id):
                _LOG.debug("Ignoring delete for unknown note %s", note_id)
                return state
            notes = tuple(n for n in state.notes if n.id != note_id)
            selected = None if state.selected_id == note_id else state.selected_id
            return replace(state, notes=notes, selected_id=selected, error=None)

        case TogglePin(note_id=note_id):
            if not _contains(state, note_id):
                _LOG.debug("Ignoring pin toggle for unknown note %s", note_id)
                return state
            now = clock()
            notes = tuple(
                replace(n, is_pinned=not n.is_pinned, updated_at=max(now, n.updated_at))
                if n.id == note_id
                else n
                for n in state.notes
            )
            return replace(state, notes=notes, error=None)

        case SetSelected(note_id=note_id):
            return replace(state, selected_id=note_id)

        case SetSearchTerm(term=term):
            return replace(state, search_term=term)

        case SetLoading(is_loading=is_loading):
            return replace(state, is_loading=is_loading)

        case SetError(message=message):
            return replace(state, error=message, is_loading=False)

        case ClearError():
            return replace(state, error=None)

        case _:
            assert_never(command)


def validate_note_fields(title: str, content: str) -> None:
    """Reject blank user input before an add/update command is issued."""
    if not (title or "").strip():
        raise ValidationError("Title is required")
    if not (content or "").strip():
        raise ValidationError("Note content cannot be empty")


def matches_search(note: Note, term: str) -> bool:
    if not term:
        return True
    needle = term.lower()
    return (
        needle in note.title.lower()
        or needle in note.content.lower()
        or any(needle in tag.lower() for tag in note.tags)
    )


class NoteStore:
    """Holds the current :class:`NotesState` and persists committed changes.

    Dispatch is strictly sequential: each command is reduced and, when it
    changed the collection, saved before ``dispatch`` returns.  A failed save
    is reported through ``state.error``; the in-memory state stays
    authoritative so the next mutation retries the write.
    """

    def __init__(self, persistence: NotePersistence, *, clock: Clock = utcnow) -> None:
        self.persistence = persistence
        self._clock = clock
        self._state = NotesState(is_loading=True)

    @property
    def state(self) -> NotesState:
        return self._state

    @property
    def notes(self) -> Tuple[Note, ...]:
        return self._state.notes

    @property
    def selected_note(self) -> Optional[Note]:
        return self._state.selected_note

    def get(self, note_id: str) -> Optional[Note]:
        return self._state.find(note_id)

    def dispatch(self, command: Command) -> NotesState:
        previous = self._state
        self._state = reduce(previous, command, clock=self._clock)
        if self._state.notes is not previous.notes and not self._state.is_loading:
            self._persist()
        return self._state

    def _persist(self) -> None:
        if not self.persistence.save(self._state.notes):
            self._state = reduce(self._state, SetError(SAVE_ERROR))

    def load(self) -> NotesState:
        self.dispatch(SetLoading(True))
        try:
            notes = self.persistence.load()
        except StorageError as exc:
            _LOG.error("Error loading notes: %s", exc)
            self.dispatch(SetError(LOAD_ERROR))
        else:
            self.dispatch(SetNotes(tuple(notes)))
        finally:
            self.dispatch(SetLoading(False))
        return self._state

    def clear_all(self) -> None:
        """Drop every note from memory and remove the storage slot.

        If the slot cannot be removed the collection is kept so memory and
        storage still agree, and the failure is reported via ``state.error``.
        """
        try:
            self.persistence.clear()
        except StorageError as exc:
            _LOG.error("Error clearing notes: %s", exc)
            self._state = reduce(self._state, SetError(CLEAR_ERROR))
            return
        self._state = reduce(self._state, SetNotes(()))

    # ------------------------------------------------------------------
    # Command helpers
    # ------------------------------------------------------------------
    def add_note(self, note: Note) -> NotesState:
        return self.dispatch(AddNote(note))

    def update_note(self, note: Note) -> NotesState:
        return self.dispatch(UpdateNote(note))

    def delete_note(self, note_id: str) -> NotesState:
        return self.dispatch(DeleteNote(note_id))

    def toggle_pin(self, note_id: str) -> NotesState:
        return self.dispatch(TogglePin(note_id))

    def set_selected(self, note: Union[Note, str, None]) -> NotesState:
        note_id = note.id if isinstance(note, Note) else note
        return self.dispatch(SetSelected(note_id))

    def set_search_term(self, term: str) -> NotesState:
        return self.dispatch(SetSearchTerm(term))

    def clear_error(self) -> NotesState:
        return self.dispatch(ClearError())

    def visible_notes(self) -> List[Note]:
        """Search-filtered notes, pinned first, most recently updated first."""
        term = self._state.search_term
        filtered = [note for note in self._state.notes if matches_search(note, term)]
        filtered.sort(key=lambda note: note.updated_at, reverse=True)
        filtered.sort(key=lambda note: not note.is_pinned)
        return filtered


__all__ = [
    "AddNote",
    "CLEAR_ERROR",
    "ClearError",
    "Command",
    "DeleteNote",
    "LOAD_ERROR",
    "NoteStore",
    "NotesState",
    "SAVE_ERROR",
    "SetError",
    "SetLoading",
    "SetNotes",
    "SetSearchTerm",
    "SetSelected",
    "TogglePin",
    "UpdateNote",
    "matches_search",
    "reduce",
    "validate_note_fields",
]
