"""
Symmetric layer of the record envelope: AES-256-GCM.

This module provides:
- SecureKey: Per-record key wrapper with best-effort zeroization
- EncryptedData: Ciphertext (with auth tag) and the nonce that produced it
- SymmetricCipher: AES-256-GCM encryption/decryption with a fresh nonce per call
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .errors import (
    AuthenticationError,
    CryptoError,
    InvalidKeySizeError,
    InvalidNonceSizeError,
    KeyGenerationError,
)
from .rng import RandomSource, default_random_source

logger = logging.getLogger(__name__)

# Cryptographic constants
AES_256_KEY_SIZE: int = 32  # 256 bits
NONCE_SIZE: int = 12  # 96 bits (standard for AES-GCM)
TAG_SIZE: int = 16  # 128 bits (authentication tag)


class SecureKey:
    """
    Secure key wrapper with memory cleanup on deletion.

    Uses bytearray internally so the key can be overwritten in place.
    Python's garbage collector doesn't guarantee immediate cleanup, so
    callers that want a deterministic wipe use ``with`` or ``wipe()``.
    """

    __slots__ = ("_bytes",)

    def __init__(self, key_bytes: bytes | bytearray) -> None:
        """
        Create a SecureKey from raw bytes.

        Args:
            key_bytes: Raw key material (should be 32 bytes for AES-256)
        """
        if not isinstance(key_bytes, (bytes, bytearray)):
            raise CryptoError("Key must be bytes or bytearray")
        self._bytes = bytearray(key_bytes)

    @classmethod
    def generate(cls, random_source: Optional[RandomSource] = None) -> SecureKey:
        """Generate a random 32-byte key."""
        source = random_source or default_random_source()
        try:
            material = source.token_bytes(AES_256_KEY_SIZE)
        except Exception as e:
            raise KeyGenerationError(f"Random source failed: {type(e).__name__}") from e
        if len(material) != AES_256_KEY_SIZE:
            raise KeyGenerationError(
                f"Random source returned {len(material)} bytes, expected {AES_256_KEY_SIZE}"
            )
        return cls(material)

    def as_bytes(self) -> bytes:
        """Return key as immutable bytes."""
        return bytes(self._bytes)

    def wipe(self) -> None:
        """Overwrite the key material with zeros."""
        for i in range(len(self._bytes)):
            self._bytes[i] = 0

    def __enter__(self) -> SecureKey:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.wipe()

    def __len__(self) -> int:
        """Return key length in bytes."""
        return len(self._bytes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecureKey):
            return NotImplemented
        return hmac.compare_digest(self._bytes, other._bytes)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Redacted representation to prevent accidental key disclosure."""
        return "SecureKey([REDACTED])"

    def __del__(self) -> None:
        """Zero memory on deletion (best-effort)."""
        if hasattr(self, "_bytes"):
            self.wipe()


@dataclass(frozen=True)
class EncryptedData:
    """
    Output of one encryption call.

    The ciphertext includes the 16-byte authentication tag appended by AESGCM.
    """

    nonce: bytes  # 12 bytes
    ciphertext: bytes  # Ciphertext + 16-byte auth tag


class SymmetricCipher:
    """
    AES-256-GCM authenticated encryption.

    Stateless apart from the random source, so one instance can be shared
    between threads.
    """

    def __init__(self, random_source: Optional[RandomSource] = None) -> None:
        """
        Args:
            random_source: Source for keys and nonces (defaults to the OS CSPRNG)
        """
        self._random = random_source or default_random_source()

    def generate_key(self) -> SecureKey:
        """Generate a fresh per-record key."""
        return SecureKey.generate(self._random)

    def encrypt(
        self,
        plaintext: bytes,
        key: SecureKey,
        aad: Optional[bytes] = None,
    ) -> EncryptedData:
        """
        Encrypt plaintext with AES-256-GCM under a freshly drawn nonce.

        Args:
            plaintext: Data to encrypt (may be empty)
            key: 32-byte encryption key
            aad: Optional Additional Authenticated Data for binding

        Returns:
            EncryptedData with nonce and ciphertext (includes auth tag)

        Raises:
            InvalidKeySizeError: If the key is not 32 bytes
            CryptoError: If nonce generation or encryption fails
        """
        _check_key(key)

        try:
            nonce = self._random.token_bytes(NONCE_SIZE)
        except Exception as e:
            raise CryptoError(f"Random source failed: {type(e).__name__}") from e
        if len(nonce) != NONCE_SIZE:
            raise CryptoError(
                f"Random source returned {len(nonce)} nonce bytes, expected {NONCE_SIZE}"
            )

        try:
            ciphertext = AESGCM(key.as_bytes()).encrypt(nonce, plaintext, aad)
        except (TypeError, ValueError, OverflowError) as e:
            raise CryptoError(f"Encryption error: {e}") from e

        logger.debug("Encrypted %d bytes", len(plaintext))
        return EncryptedData(nonce=nonce, ciphertext=ciphertext)

    def decrypt(
        self,
        ciphertext: bytes,
        key: SecureKey,
        nonce: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Decrypt and authenticate ciphertext with AES-256-GCM.

        Args:
            ciphertext: Ciphertext with the 16-byte tag appended
            key: 32-byte decryption key
            nonce: 12-byte nonce used at encryption
            aad: Optional Additional Authenticated Data (must match encryption)

        Returns:
            Decrypted plaintext bytes

        Raises:
            InvalidKeySizeError: If the key is not 32 bytes
            InvalidNonceSizeError: If the nonce is not 12 bytes
            AuthenticationError: If the tag does not verify
        """
        _check_key(key)

        if len(nonce) != NONCE_SIZE:
            raise InvalidNonceSizeError(
                f"Invalid nonce size: expected {NONCE_SIZE}, got {len(nonce)}"
            )

        try:
            return AESGCM(key.as_bytes()).decrypt(nonce, ciphertext, aad)
        except (InvalidTag, TypeError):
            # Generic error to prevent oracle attacks
            raise AuthenticationError("Decryption failed") from None


def _check_key(key: SecureKey) -> None:
    if len(key) != AES_256_KEY_SIZE:
        raise InvalidKeySizeError(
            f"Invalid key size: expected {AES_256_KEY_SIZE}, got {len(key)}"
        )
