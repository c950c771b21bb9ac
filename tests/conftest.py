from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

# keep log files and databases out of the real home directory
_XDG_ROOT = tempfile.mkdtemp(prefix="note-vault-tests-")
for _name in ("XDG_DATA_HOME", "XDG_CONFIG_HOME", "XDG_CACHE_HOME"):
    os.environ[_name] = os.path.join(_XDG_ROOT, _name.lower())

from nacl import pwhash  # noqa: E402

from note_vault import config  # noqa: E402


@pytest.fixture(autouse=True)
def fast_kdf(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "KDF_OPSLIMIT", pwhash.argon2id.OPSLIMIT_MIN)
    monkeypatch.setattr(config, "KDF_MEMLIMIT", pwhash.argon2id.MEMLIMIT_MIN)
