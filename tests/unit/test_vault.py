"""Tests for the credential vault: envelope layout, tamper detection, nonces."""

import base64

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from folio_engine.common.exceptions import DecryptionError
from folio_engine.vault.cipher import HEADER_SIZE, NONCE_SIZE, TAG_SIZE, CredentialVault

KEY = bytes(range(32))


@pytest.fixture
def vault():
    return CredentialVault(KEY)


class TestRoundTrip:
    @pytest.mark.parametrize("plaintext", [
        b"",
        b"x",
        b"1//0refresh-token-value",
        bytes(range(256)) * 4,
    ])
    def test_open_returns_sealed_plaintext(self, vault, plaintext):
        assert vault.open(vault.seal(plaintext)) == plaintext

    def test_text_helpers(self, vault):
        secret = "1//0gYr-refresh-ção"
        assert vault.open_text(vault.seal_text(secret)) == secret

    def test_envelope_is_base64_with_header(self, vault):
        raw = base64.b64decode(vault.seal(b"abc"), validate=True)
        assert len(raw) == HEADER_SIZE + 3

    def test_other_key_cannot_open(self, vault):
        other = CredentialVault(bytes(32))
        with pytest.raises(DecryptionError):
            other.open(vault.seal(b"secret"))


class TestEnvelopeLayout:
    def test_nonce_tag_ciphertext_order(self, vault):
        """An envelope built by hand as nonce || tag || ciphertext opens."""
        nonce = b"\x01" * NONCE_SIZE
        sealed = AESGCM(KEY).encrypt(nonce, b"interop", None)
        ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        envelope = base64.b64encode(nonce + tag + ciphertext).decode()
        assert vault.open(envelope) == b"interop"

    def test_sealed_envelope_opens_with_plain_aesgcm(self, vault):
        raw = base64.b64decode(vault.seal(b"interop"))
        nonce, tag, ciphertext = raw[:NONCE_SIZE], raw[NONCE_SIZE:HEADER_SIZE], raw[HEADER_SIZE:]
        assert AESGCM(KEY).decrypt(nonce, ciphertext + tag, None) == b"interop"

    def test_ciphertext_then_tag_order_is_rejected(self, vault):
        nonce = b"\x02" * NONCE_SIZE
        sealed = AESGCM(KEY).encrypt(nonce, b"wrong order", None)
        envelope = base64.b64encode(nonce + sealed).decode()
        with pytest.raises(DecryptionError):
            vault.open(envelope)


class TestTamperDetection:
    def test_every_bit_flip_is_detected(self, vault):
        raw = bytearray(base64.b64decode(vault.seal(b"refresh-token")))
        for index in range(len(raw)):
            for bit in range(8):
                tampered = bytearray(raw)
                tampered[index] ^= 1 << bit
                with pytest.raises(DecryptionError):
                    vault.open(base64.b64encode(bytes(tampered)).decode())

    @pytest.mark.parametrize("envelope", [
        "",
        "not base64 at all!",
        base64.b64encode(b"short").decode(),
        base64.b64encode(b"\x00" * (HEADER_SIZE - 1)).decode(),
    ])
    def test_malformed_envelopes(self, vault, envelope):
        with pytest.raises(DecryptionError):
            vault.open(envelope)


class TestNonces:
    def test_ten_thousand_seals_use_distinct_nonces(self, vault):
        nonces = {
            base64.b64decode(vault.seal(b"same plaintext"))[:NONCE_SIZE]
            for _ in range(10_000)
        }
        assert len(nonces) == 10_000


class TestKeyHandling:
    def test_missing_key_refuses_to_seal(self):
        vault = CredentialVault(b"")
        assert vault.configured is False
        with pytest.raises(DecryptionError, match="not configured"):
            vault.seal(b"secret")

    def test_missing_key_refuses_to_open(self, vault):
        envelope = vault.seal(b"secret")
        with pytest.raises(DecryptionError):
            CredentialVault(b"").open(envelope)

    @pytest.mark.parametrize("size", [16, 31, 33])
    def test_wrong_key_size_rejected(self, size):
        with pytest.raises(ValueError):
            CredentialVault(b"k" * size)
