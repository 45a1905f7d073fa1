"""Authenticated encryption for tenants' delegated credentials.

Envelope layout (storage and wire format)::

    base64( nonce[12] || tag[16] || ciphertext[N] )

AES-256-GCM with a fresh random nonce per seal. Envelopes written by any
other implementation of this layout open here given the same key, and the
other way round.
"""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from folio_engine.common.exceptions import DecryptionError

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16
HEADER_SIZE = NONCE_SIZE + TAG_SIZE


class CredentialVault:
    """Seals and opens secrets under one 256-bit master key."""

    def __init__(self, key: bytes):
        if key and len(key) != KEY_SIZE:
            raise ValueError(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}")
        self._aead = AESGCM(key) if key else None

    @classmethod
    def from_settings(cls, settings) -> "CredentialVault":
        return cls(settings.encryption_key)

    @property
    def configured(self) -> bool:
        return self._aead is not None

    def _require_key(self) -> AESGCM:
        if self._aead is None:
            raise DecryptionError("Encryption key is not configured")
        return self._aead

    def seal(self, plaintext: bytes) -> str:
        """Encrypt `plaintext` and return the base64 envelope."""
        aead = self._require_key()
        nonce = os.urandom(NONCE_SIZE)
        # AESGCM appends the tag; the envelope carries it ahead of the ciphertext.
        sealed = aead.encrypt(nonce, bytes(plaintext), None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        return base64.b64encode(nonce + tag + ciphertext).decode("ascii")

    def open(self, envelope: str) -> bytes:
        """Decrypt a base64 envelope. Raises DecryptionError on any failure."""
        aead = self._require_key()
        try:
            raw = base64.b64decode(envelope, validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise DecryptionError("Malformed credential envelope") from exc
        if len(raw) < HEADER_SIZE:
            raise DecryptionError("Malformed credential envelope")

        nonce = raw[:NONCE_SIZE]
        tag = raw[NONCE_SIZE:HEADER_SIZE]
        ciphertext = raw[HEADER_SIZE:]
        try:
            return aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as exc:
            raise DecryptionError("Credential envelope failed authentication") from exc

    def seal_text(self, text: str) -> str:
        return self.seal(text.encode("utf-8"))

    def open_text(self, envelope: str) -> str:
        try:
            return self.open(envelope).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionError("Credential is not valid UTF-8") from exc
