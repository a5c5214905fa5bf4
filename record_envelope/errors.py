"""
Exception classes for record envelope operations.

Every failure raised by this package is an EnvelopeError subclass, so callers
can tell the failing step apart (encryption, key wrapping, decoding, storage)
from the exception type alone. Messages never include key material.
"""

from __future__ import annotations


class EnvelopeError(Exception):
    """Base exception for all record envelope operations."""

    pass


class CryptoError(EnvelopeError):
    """Cryptographic operation failed (encryption, decryption, key generation)."""

    pass


class InvalidKeySizeError(CryptoError):
    """Symmetric key is not exactly 32 bytes."""

    pass


class InvalidNonceSizeError(CryptoError):
    """Nonce is not exactly 12 bytes."""

    pass


class AuthenticationError(CryptoError):
    """AES-GCM tag did not verify: tampered data, wrong key or wrong nonce."""

    pass


class KeyGenerationError(CryptoError):
    """Entropy source or library failed to produce key material."""

    pass


class WrapError(CryptoError):
    """Encrypting a symmetric key under an RSA public key failed."""

    pass


class UnwrapError(CryptoError):
    """Recovering a symmetric key with an RSA private key failed."""

    pass


class SerializationError(EnvelopeError):
    """Serialization or deserialization error."""

    pass


class Base64DecodeError(SerializationError):
    """Text is not valid standard base64."""

    pass


class KeyDecodeError(SerializationError):
    """PEM text could not be parsed into an RSA key."""

    pass


class KeyEncodeError(SerializationError):
    """RSA key could not be encoded as PEM."""

    pass


class StorageError(EnvelopeError):
    """Storage backend error (database, in-memory, etc.)."""

    pass


class NotFoundError(EnvelopeError):
    """Requested item does not exist in storage."""

    pass


class BlobNotFoundError(NotFoundError):
    """No blob stored under the content ID."""

    pass


class PatientNotFoundError(NotFoundError):
    """No patient stored under the ID."""

    pass


class RecordNotFoundError(NotFoundError):
    """No health record stored under the ID."""

    pass


class ConfigError(EnvelopeError):
    """Configuration error."""

    pass
