"""
Field-level encryption for sensitive values at rest.

AES-256-GCM with a random 12-byte IV. A payload is a version number plus
``base64(iv || tag || ciphertext)``; the version lets the scheme change
without breaking stored values.

The key comes from ``DATA_ENCRYPTION_KEY``: 64 hex characters or base64,
either way exactly 32 bytes.
"""

import base64
import binascii
import os
import re
from collections.abc import Callable
from typing import Any

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel

from authbase.config import get_settings

PAYLOAD_VERSION = 1
IV_LENGTH = 12
TAG_LENGTH = 16
KEY_LENGTH = 32

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


class EncryptionPayload(BaseModel):
    version: int = PAYLOAD_VERSION
    ciphertext: str


def load_key(key_source: str | None) -> bytes:
    """
    Decode a 256-bit key from hex or base64.

    Raises:
        RuntimeError: no key configured
        ValueError: key does not decode to 32 bytes
    """
    if not key_source:
        raise RuntimeError("DATA_ENCRYPTION_KEY is required for encryption")

    if _HEX_KEY.match(key_source):
        key = bytes.fromhex(key_source)
    else:
        try:
            key = base64.b64decode(key_source, validate=True)
        except binascii.Error:
            raise ValueError("DATA_ENCRYPTION_KEY must be hex or base64") from None

    if len(key) != KEY_LENGTH:
        raise ValueError("DATA_ENCRYPTION_KEY must represent 32 bytes (256 bits)")
    return key


def _key(key_source: str | None) -> bytes:
    if key_source is None:
        key_source = get_settings().DATA_ENCRYPTION_KEY
    return load_key(key_source)


def encrypt_sensitive(
    value: Any,
    *,
    key: str | None = None,
    serialize: Callable[[Any], str] = str,
) -> EncryptionPayload:
    """
    Encrypt ``value`` (serialized with ``serialize``) into a versioned payload.

    Args:
        value: Value to protect
        key: Key source; defaults to the configured DATA_ENCRYPTION_KEY
        serialize: Turns ``value`` into text before encryption
    """
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(_key(key)).encrypt(iv, serialize(value).encode("utf-8"), None)
    # AESGCM appends the tag; stored layout puts it before the ciphertext
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return EncryptionPayload(
        version=PAYLOAD_VERSION,
        ciphertext=base64.b64encode(iv + tag + ciphertext).decode("ascii"),
    )


def decrypt_sensitive(
    payload: EncryptionPayload,
    *,
    key: str | None = None,
    deserialize: Callable[[str], Any] | None = None,
) -> Any:
    """
    Reverse ``encrypt_sensitive``.

    Raises:
        ValueError: unsupported payload version
        cryptography.exceptions.InvalidTag: wrong key or tampered payload
    """
    if payload.version != PAYLOAD_VERSION:
        raise ValueError(f"Unsupported encryption payload version: {payload.version}")

    raw = base64.b64decode(payload.ciphertext)
    iv = raw[:IV_LENGTH]
    tag = raw[IV_LENGTH : IV_LENGTH + TAG_LENGTH]
    ciphertext = raw[IV_LENGTH + TAG_LENGTH :]

    text = AESGCM(_key(key)).decrypt(iv, ciphertext + tag, None).decode("utf-8")
    return deserialize(text) if deserialize else text
