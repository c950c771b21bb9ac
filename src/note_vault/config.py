"""Runtime configuration read from the environment.

Every value has a default suitable for a local single-user install; the
environment only needs to be touched for development profiles or tests.
"""

from __future__ import annotations

import os

from nacl import pwhash


def _truthy_env(name: str, default: str = "0") -> bool:
    value = os.getenv(name, default)
    return value not in {"0", "false", "False"}


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


DEV_PROFILE_ENABLED: bool = _truthy_env("DEV_PROFILE_ENABLED", "0")
LOG_LEVEL: str = os.getenv("NOTE_VAULT_LOG_LEVEL", "INFO").upper()

# Slot key kept compatible with notes written by the browser build.
STORAGE_KEY: str = os.getenv("NOTE_VAULT_STORAGE_KEY", "shareable-notes")

# localStorage grants roughly 5 MiB per origin; mirror that ceiling.
STORAGE_CAPACITY: int = _int_env("NOTE_VAULT_STORAGE_CAPACITY", 5 * 1024 * 1024)

KDF_OPSLIMIT: int = _int_env("NOTE_VAULT_KDF_OPSLIMIT", pwhash.argon2id.OPSLIMIT_INTERACTIVE)
KDF_MEMLIMIT: int = _int_env("NOTE_VAULT_KDF_MEMLIMIT", pwhash.argon2id.MEMLIMIT_INTERACTIVE)

MIN_PASSWORD_LENGTH = 4

APP_NAME = "Note Vault"
APP_VERSION = "0.1.0"
