"""
Asymmetric layer of the record envelope: RSA-2048 key wrapping.

This module provides:
- RsaKeyWrap: key pair generation, PKCS#1 v1.5 wrap/unwrap of per-record keys
- PEM import/export of RSA public and private keys

RSA randomness (key generation, padding) comes from OpenSSL via the
cryptography package.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .crypto import AES_256_KEY_SIZE, SecureKey
from .errors import (
    KeyDecodeError,
    KeyEncodeError,
    KeyGenerationError,
    UnwrapError,
    WrapError,
)

logger = logging.getLogger(__name__)

RSA_KEY_SIZE: int = 2048
RSA_PUBLIC_EXPONENT: int = 65537

# One message for every unwrap failure so callers (and attackers) cannot tell
# a padding error from a wrong key.
_UNWRAP_FAILED = "Key unwrap failed"


class RsaKeyWrap:
    """
    RSA key wrapping for per-record symmetric keys.

    All methods are static; the class only groups the operations.
    """

    @staticmethod
    def generate_key_pair() -> Tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]:
        """
        Generate a fresh 2048-bit RSA key pair.

        Returns:
            (private_key, public_key)

        Raises:
            KeyGenerationError: If the backend fails to produce a key
        """
        try:
            private_key = rsa.generate_private_key(
                public_exponent=RSA_PUBLIC_EXPONENT,
                key_size=RSA_KEY_SIZE,
            )
        except (ValueError, UnsupportedAlgorithm) as e:
            raise KeyGenerationError(f"Failed to generate RSA key pair: {e}") from e

        logger.debug("Generated %d-bit RSA key pair", RSA_KEY_SIZE)
        return private_key, private_key.public_key()

    @staticmethod
    def wrap(symmetric_key: SecureKey, public_key: rsa.RSAPublicKey) -> bytes:
        """
        Encrypt a symmetric key under an RSA public key (PKCS#1 v1.5).

        Args:
            symmetric_key: Key to wrap
            public_key: Recipient's RSA public key

        Returns:
            Wrapped key bytes (modulus-sized)

        Raises:
            WrapError: If the key is not RSA or the payload does not fit
        """
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise WrapError(
                f"Expected an RSA public key, got {type(public_key).__name__}"
            )
        try:
            return public_key.encrypt(symmetric_key.as_bytes(), padding.PKCS1v15())
        except ValueError as e:
            raise WrapError(f"Failed to wrap key: {e}") from e

    @staticmethod
    def unwrap(wrapped_key: bytes, private_key: rsa.RSAPrivateKey) -> SecureKey:
        """
        Recover a symmetric key with an RSA private key.

        A recovered key that is not 32 bytes is rejected the same way as a
        padding failure.

        Args:
            wrapped_key: Output of ``wrap``
            private_key: Recipient's RSA private key

        Returns:
            The unwrapped key

        Raises:
            UnwrapError: On padding failure, wrong key, or unexpected key length
        """
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise UnwrapError(_UNWRAP_FAILED)
        try:
            key_bytes = private_key.decrypt(wrapped_key, padding.PKCS1v15())
        except (ValueError, TypeError):
            raise UnwrapError(_UNWRAP_FAILED) from None
        if len(key_bytes) != AES_256_KEY_SIZE:
            raise UnwrapError(_UNWRAP_FAILED)
        return SecureKey(key_bytes)

    # =========================================================================
    # PEM codec
    # =========================================================================

    @staticmethod
    def export_public_pem(public_key: rsa.RSAPublicKey) -> str:
        """Encode a public key as PKCS#1 PEM ("RSA PUBLIC KEY")."""
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise KeyEncodeError(
                f"Expected an RSA public key, got {type(public_key).__name__}"
            )
        try:
            pem = public_key.public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.PKCS1,
            )
        except (ValueError, TypeError) as e:
            raise KeyEncodeError(f"Failed to export public key to PEM: {e}") from e
        return pem.decode("ascii")

    @staticmethod
    def import_public_pem(pem: str) -> rsa.RSAPublicKey:
        """
        Parse an RSA public key from PEM text.

        Accepts both PKCS#1 ("RSA PUBLIC KEY") and SubjectPublicKeyInfo
        ("PUBLIC KEY") encodings.

        Raises:
            KeyDecodeError: On malformed PEM or a non-RSA key
        """
        try:
            key = serialization.load_pem_public_key(_pem_bytes(pem))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise KeyDecodeError(f"Failed to import public key from PEM: {e}") from e
        if not isinstance(key, rsa.RSAPublicKey):
            raise KeyDecodeError(f"PEM holds a {type(key).__name__}, not an RSA key")
        return key

    @staticmethod
    def export_private_pem(
        private_key: rsa.RSAPrivateKey,
        password: Optional[bytes] = None,
    ) -> str:
        """
        Encode a private key as PEM.

        Without a password the key is written as unencrypted PKCS#1
        ("RSA PRIVATE KEY"). With a password it is written as encrypted
        PKCS#8 ("ENCRYPTED PRIVATE KEY").

        Raises:
            KeyEncodeError: On a non-RSA key, empty password, or encoder failure
        """
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KeyEncodeError(
                f"Expected an RSA private key, got {type(private_key).__name__}"
            )

        if password is None:
            key_format = serialization.PrivateFormat.TraditionalOpenSSL
            encryption: serialization.KeySerializationEncryption = (
                serialization.NoEncryption()
            )
        else:
            key_format = serialization.PrivateFormat.PKCS8
            try:
                encryption = serialization.BestAvailableEncryption(password)
            except ValueError as e:
                raise KeyEncodeError(f"Invalid PEM password: {e}") from e

        try:
            pem = private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=key_format,
                encryption_algorithm=encryption,
            )
        except (ValueError, TypeError) as e:
            raise KeyEncodeError(f"Failed to export private key to PEM: {e}") from e
        return pem.decode("ascii")

    @staticmethod
    def import_private_pem(
        pem: str,
        password: Optional[bytes] = None,
    ) -> rsa.RSAPrivateKey:
        """
        Parse an RSA private key from PEM text.

        Raises:
            KeyDecodeError: On malformed PEM, wrong or missing password,
                or a non-RSA key
        """
        try:
            key = serialization.load_pem_private_key(_pem_bytes(pem), password=password)
        except (ValueError, TypeError, UnsupportedAlgorithm):
            # Parser messages may echo key fragments; keep them out.
            raise KeyDecodeError("Failed to import private key from PEM") from None
        if not isinstance(key, rsa.RSAPrivateKey):
            raise KeyDecodeError(f"PEM holds a {type(key).__name__}, not an RSA key")
        return key


def _pem_bytes(pem: str) -> bytes:
    if not isinstance(pem, str):
        raise KeyDecodeError(f"PEM must be str, got {type(pem).__name__}")
    try:
        return pem.encode("ascii")
    except UnicodeEncodeError as e:
        raise KeyDecodeError("PEM text contains non-ASCII characters") from e
