"""
Tests for the AES-256-GCM layer.
"""

from __future__ import annotations

import pytest

from record_envelope import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    AuthenticationError,
    CryptoError,
    InvalidKeySizeError,
    InvalidNonceSizeError,
    KeyGenerationError,
    SecureKey,
    SymmetricCipher,
)


@pytest.fixture
def cipher() -> SymmetricCipher:
    return SymmetricCipher()


def test_generate_key_is_32_bytes(cipher):
    key = cipher.generate_key()
    assert len(key) == AES_256_KEY_SIZE
    assert len(key.as_bytes()) == AES_256_KEY_SIZE


def test_generated_keys_do_not_collide(cipher):
    keys = {cipher.generate_key().as_bytes() for _ in range(10_000)}
    assert len(keys) == 10_000


def test_roundtrip(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"blood type: O+", key)

    assert len(encrypted.nonce) == NONCE_SIZE
    assert len(encrypted.ciphertext) == len(b"blood type: O+") + TAG_SIZE
    assert cipher.decrypt(encrypted.ciphertext, key, encrypted.nonce) == b"blood type: O+"


def test_empty_plaintext_roundtrip(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"", key)

    assert len(encrypted.ciphertext) == TAG_SIZE
    assert cipher.decrypt(encrypted.ciphertext, key, encrypted.nonce) == b""


def test_nonce_never_reused_under_same_key(cipher):
    key = cipher.generate_key()
    nonces = {cipher.encrypt(b"x", key).nonce for _ in range(10_000)}
    assert len(nonces) == 10_000


@pytest.mark.parametrize("size", [0, 16, 31, 33, 64])
def test_encrypt_rejects_wrong_key_size(cipher, size):
    with pytest.raises(InvalidKeySizeError):
        cipher.encrypt(b"data", SecureKey(b"\x01" * size))


def test_decrypt_rejects_wrong_key_size(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"data", key)
    with pytest.raises(InvalidKeySizeError):
        cipher.decrypt(encrypted.ciphertext, SecureKey(b"\x01" * 16), encrypted.nonce)


@pytest.mark.parametrize("size", [0, 8, 11, 13, 16])
def test_decrypt_rejects_wrong_nonce_size(cipher, size):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"data", key)
    with pytest.raises(InvalidNonceSizeError):
        cipher.decrypt(encrypted.ciphertext, key, b"\x00" * size)


def test_decrypt_detects_tampered_ciphertext(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"blood type: O+", key)
    tampered = bytes([encrypted.ciphertext[0] ^ 1]) + encrypted.ciphertext[1:]
    with pytest.raises(AuthenticationError):
        cipher.decrypt(tampered, key, encrypted.nonce)


def test_decrypt_detects_tampered_tag(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"blood type: O+", key)
    tampered = encrypted.ciphertext[:-1] + bytes([encrypted.ciphertext[-1] ^ 0x80])
    with pytest.raises(AuthenticationError):
        cipher.decrypt(tampered, key, encrypted.nonce)


def test_decrypt_detects_wrong_nonce(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"msg", key)
    bad_nonce = bytes([encrypted.nonce[0] ^ 1]) + encrypted.nonce[1:]
    with pytest.raises(AuthenticationError):
        cipher.decrypt(encrypted.ciphertext, key, bad_nonce)


def test_decrypt_detects_wrong_key(cipher):
    encrypted = cipher.encrypt(b"msg", cipher.generate_key())
    with pytest.raises(AuthenticationError):
        cipher.decrypt(encrypted.ciphertext, cipher.generate_key(), encrypted.nonce)


def test_decrypt_detects_truncated_ciphertext(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"msg", key)
    with pytest.raises(AuthenticationError):
        cipher.decrypt(encrypted.ciphertext[:5], key, encrypted.nonce)


def test_decrypt_rejects_non_bytes_ciphertext(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"msg", key)
    with pytest.raises(AuthenticationError):
        cipher.decrypt("not bytes", key, encrypted.nonce)


def test_aad_must_match(cipher):
    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"msg", key, aad=b"record-1")

    assert cipher.decrypt(encrypted.ciphertext, key, encrypted.nonce, aad=b"record-1") == b"msg"
    with pytest.raises(AuthenticationError):
        cipher.decrypt(encrypted.ciphertext, key, encrypted.nonce, aad=b"record-2")
    with pytest.raises(AuthenticationError):
        cipher.decrypt(encrypted.ciphertext, key, encrypted.nonce)


def test_uses_injected_random_source(scripted_random):
    key_bytes = bytes(range(32))
    nonce = bytes(range(100, 112))
    source = scripted_random([key_bytes, nonce])
    cipher = SymmetricCipher(source)

    key = cipher.generate_key()
    encrypted = cipher.encrypt(b"payload", key)

    assert key.as_bytes() == key_bytes
    assert encrypted.nonce == nonce
    assert source.requests == [AES_256_KEY_SIZE, NONCE_SIZE]
    assert cipher.decrypt(encrypted.ciphertext, key, nonce) == b"payload"


def test_failing_random_source_is_key_generation_error(scripted_random):
    cipher = SymmetricCipher(scripted_random([]))
    with pytest.raises(KeyGenerationError):
        cipher.generate_key()


def test_short_random_output_is_rejected(scripted_random):
    with pytest.raises(KeyGenerationError):
        SymmetricCipher(scripted_random([b"\x00" * 16])).generate_key()

    cipher = SymmetricCipher(scripted_random([b"\x00" * 8]))
    with pytest.raises(CryptoError):
        cipher.encrypt(b"data", SecureKey(b"\x01" * 32))


def test_exhausted_random_source_during_encrypt(scripted_random):
    cipher = SymmetricCipher(scripted_random([]))
    with pytest.raises(CryptoError):
        cipher.encrypt(b"data", SecureKey(b"\x01" * 32))


def test_secure_key_repr_is_redacted():
    key = SecureKey(b"\xaa" * 32)
    assert "REDACTED" in repr(key)
    assert "aa" not in repr(key).lower().replace("redacted", "")


def test_secure_key_wipe_and_context_manager():
    key = SecureKey(b"\xaa" * 32)
    with key as scoped:
        assert scoped.as_bytes() == b"\xaa" * 32
    assert key.as_bytes() == b"\x00" * 32


def test_secure_key_rejects_non_bytes():
    with pytest.raises(CryptoError):
        SecureKey("not bytes")  # type: ignore[arg-type]
