"""Exception hierarchy shared by the note store components."""

from __future__ import annotations


class NoteVaultError(Exception):
    """Base class for every error raised by note_vault."""


class StorageError(NoteVaultError):
    pass


class StorageCorruptError(StorageError):
    """The persisted slot could not be parsed back into notes."""


class StorageWriteError(StorageError):
    """The slot could not be written (capacity, I/O, or a refused payload)."""


class DecryptionError(NoteVaultError):
    """Wrong password or a damaged ciphertext."""


class ValidationError(NoteVaultError):
    """User-entered fields were rejected before a command was issued."""


class NoteLockedError(ValidationError):
    """The note is locked and its content cannot be read or edited."""


class NoteNotFoundError(ValidationError):
    """No note with the requested id is in the collection."""


class ImportFormatError(NoteVaultError):
    """An import archive or JSON document is not a valid note collection."""


__all__ = [
    "DecryptionError",
    "ImportFormatError",
    "NoteLockedError",
    "NoteNotFoundError",
    "NoteVaultError",
    "StorageCorruptError",
    "StorageError",
    "StorageWriteError",
    "ValidationError",
]
