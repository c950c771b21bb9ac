"""Helpers for resolving XDG data locations."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAMESPACE = "note-vault"


def _ensure(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def user_data_dir() -> Path:
    base = os.environ.get("XDG_DATA_HOME")
    if not base:
        base = os.path.join(Path.home(), ".local/share")
    return _ensure(Path(base) / APP_NAMESPACE)


def log_dir() -> Path:
    return _ensure(user_data_dir() / "logs")


def exports_dir() -> Path:
    return _ensure(user_data_dir() / "exports")


def db_path() -> Path:
    return user_data_dir() / "notes.sqlite3"
