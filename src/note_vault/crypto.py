"""Password-based encryption of note content.

Ciphertext at rest looks like ``encrypted:<urlsafe-base64>``.  The decoded
blob is laid out as::

    version (1 byte) | opslimit (4) | memlimit (8) | salt | nonce | box

so every payload carries the Argon2id cost it was sealed with and can be
opened after the configured defaults change.
"""

from __future__ import annotations

import base64
import binascii
import struct
from typing import Optional

from nacl import pwhash, secret, utils
from nacl.exceptions import CryptoError

from . import config
from .errors import DecryptionError
from .logger import configure_logging

_LOG = configure_logging()

ENCRYPTED_PREFIX = "encrypted:"

_VERSION = 1
_HEADER = struct.Struct(">BIQ")
_SALT_BYTES = pwhash.argon2id.SALTBYTES
_MIN_BLOB = _HEADER.size + _SALT_BYTES + secret.SecretBox.NONCE_SIZE + secret.SecretBox.MACBYTES


def is_encrypted(payload: Optional[str]) -> bool:
    return bool(payload) and payload.startswith(ENCRYPTED_PREFIX)


def _derive_key(password: str, salt: bytes, opslimit: int, memlimit: int) -> bytes:
    return pwhash.argon2id.kdf(
        secret.SecretBox.KEY_SIZE,
        (password or "").encode("utf-8"),
        salt,
        opslimit=opslimit,
        memlimit=memlimit,
    )


def encrypt(
    plaintext: str,
    password: str,
    *,
    opslimit: Optional[int] = None,
    memlimit: Optional[int] = None,
) -> str:
    """Seal ``plaintext`` under ``password`` and return the tagged payload."""
    ops = opslimit if opslimit is not None else config.KDF_OPSLIMIT
    mem = memlimit if memlimit is not None else config.KDF_MEMLIMIT
    salt = utils.random(_SALT_BYTES)
    box = secret.SecretBox(_derive_key(password, salt, ops, mem))
    sealed = box.encrypt((plaintext or "").encode("utf-8"))
    blob = _HEADER.pack(_VERSION, ops, mem) + salt + bytes(sealed)
    return ENCRYPTED_PREFIX + base64.urlsafe_b64encode(blob).decode("ascii")


def decrypt(payload: str, password: str) -> str:
    """Open a tagged payload.

    Untagged input is already plaintext and is returned unchanged.  Any
    failure to authenticate or decode raises :class:`DecryptionError`; a
    wrong password never yields text.
    """
    if not is_encrypted(payload):
        return payload

    try:
        blob = base64.urlsafe_b64decode(payload[len(ENCRYPTED_PREFIX):].encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise DecryptionError("encrypted payload is not valid base64") from exc
    if len(blob) < _MIN_BLOB:
        raise DecryptionError("encrypted payload is truncated")

    version, ops, mem = _HEADER.unpack_from(blob)
    if version != _VERSION:
        raise DecryptionError(f"unsupported payload version {version}")
    if not (pwhash.argon2id.OPSLIMIT_MIN <= ops <= pwhash.argon2id.OPSLIMIT_MAX) or not (
        pwhash.argon2id.MEMLIMIT_MIN <= mem <= pwhash.argon2id.MEMLIMIT_SENSITIVE
    ):
        raise DecryptionError("encrypted payload has out-of-range key parameters")

    offset = _HEADER.size
    salt = blob[offset : offset + _SALT_BYTES]
    sealed = blob[offset + _SALT_BYTES :]
    box = secret.SecretBox(_derive_key(password, salt, ops, mem))
    try:
        plain = box.decrypt(sealed)
    except CryptoError as exc:
        _LOG.warning("Decryption failed: wrong password or corrupt payload")
        raise DecryptionError("Decryption failed - incorrect password") from exc
    try:
        return plain.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionError("decrypted payload is not valid text") from exc


__all__ = [
    "ENCRYPTED_PREFIX",
    "decrypt",
    "encrypt",
    "is_encrypted",
]
