"""
Record envelope: per-record AES-256-GCM key wrapped under the recipient's RSA key.

This module provides:
- SealedRecord: ciphertext plus the base64 wrapped key and nonce needed to open it
- RecordEnvelope: seal/open orchestration over SymmetricCipher and RsaKeyWrap

Flow:
- seal: fresh key -> encrypt payload -> wrap key -> base64 wrapped key and nonce
- open: decode base64 -> unwrap key -> decrypt payload

The ciphertext goes to the blob store; the wrapped key and nonce go to the
record metadata. Losing any of the three makes the record unrecoverable.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from .crypto import SymmetricCipher
from .encoding import b64decode, b64encode
from .errors import EnvelopeError, SerializationError
from .keywrap import RsaKeyWrap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SealedRecord:
    """Artifacts of one sealed record."""

    ciphertext: bytes  # AES-GCM ciphertext + tag, stored in the blob store
    wrapped_key: str  # base64 RSA-wrapped record key
    nonce: str  # base64 12-byte nonce

    def metadata(self) -> Dict[str, str]:
        """Text fields stored alongside the blob's content ID."""
        return {"wrapped_key": self.wrapped_key, "nonce": self.nonce}

    def to_json(self) -> str:
        """Serialize the sealed record (ciphertext as base64) to JSON."""
        return json.dumps(
            {
                "ciphertext": b64encode(self.ciphertext),
                "wrapped_key": self.wrapped_key,
                "nonce": self.nonce,
            }
        )

    @classmethod
    def from_json(cls, json_str: str) -> SealedRecord:
        """Deserialize a sealed record from JSON."""
        try:
            data = json.loads(json_str)
            ciphertext_b64 = data["ciphertext"]
            wrapped_key = data["wrapped_key"]
            nonce = data["nonce"]
        except (ValueError, KeyError, TypeError) as e:
            raise SerializationError(f"Failed to deserialize sealed record: {e}") from e

        if not isinstance(wrapped_key, str) or not isinstance(nonce, str):
            raise SerializationError("wrapped_key and nonce must be strings")

        return cls(
            ciphertext=b64decode(ciphertext_b64, "ciphertext"),
            wrapped_key=wrapped_key,
            nonce=nonce,
        )


class RecordEnvelope:
    """
    Envelope encryption for a single recipient.

    Holds no per-record state; every call draws its own key and nonce.
    """

    def __init__(
        self,
        cipher: Optional[SymmetricCipher] = None,
        key_wrap: Optional[RsaKeyWrap] = None,
    ) -> None:
        """
        Args:
            cipher: Symmetric cipher (defaults to one backed by the OS CSPRNG)
            key_wrap: RSA key wrapper
        """
        self._cipher = cipher or SymmetricCipher()
        self._key_wrap = key_wrap or RsaKeyWrap()

    def seal(
        self,
        plaintext: bytes,
        recipient_public_key: rsa.RSAPublicKey,
    ) -> SealedRecord:
        """
        Encrypt a payload for the holder of the matching private key.

        Args:
            plaintext: Payload to protect (may be empty)
            recipient_public_key: Recipient's RSA public key

        Returns:
            SealedRecord with ciphertext, base64 wrapped key and base64 nonce

        Raises:
            KeyGenerationError: If the record key cannot be generated
            CryptoError: If encryption fails
            WrapError: If the record key cannot be wrapped
        """
        try:
            with self._cipher.generate_key() as key:
                encrypted = self._cipher.encrypt(plaintext, key)
                wrapped = self._key_wrap.wrap(key, recipient_public_key)
        except EnvelopeError as e:
            logger.warning("Seal failed: %s", type(e).__name__)
            raise

        logger.debug(
            "Sealed record: %d plaintext bytes, %d ciphertext bytes",
            len(plaintext),
            len(encrypted.ciphertext),
        )
        return SealedRecord(
            ciphertext=encrypted.ciphertext,
            wrapped_key=b64encode(wrapped),
            nonce=b64encode(encrypted.nonce),
        )

    def seal_for_pem(self, plaintext: bytes, public_key_pem: str) -> SealedRecord:
        """Seal for a recipient whose public key is given as PEM text."""
        return self.seal(plaintext, self._key_wrap.import_public_pem(public_key_pem))

    def open(
        self,
        ciphertext: bytes,
        wrapped_key: str,
        nonce: str,
        recipient_private_key: rsa.RSAPrivateKey,
    ) -> bytes:
        """
        Recover a payload sealed for this private key's public half.

        Args:
            ciphertext: Ciphertext from the blob store
            wrapped_key: base64 wrapped record key
            nonce: base64 nonce
            recipient_private_key: Recipient's RSA private key

        Returns:
            Original plaintext

        Raises:
            Base64DecodeError: If wrapped_key or nonce is not valid base64
            UnwrapError: If the record key cannot be unwrapped (e.g. wrong key)
            InvalidNonceSizeError: If the nonce is not 12 bytes
            AuthenticationError: If the ciphertext fails authentication
        """
        try:
            wrapped_bytes = b64decode(wrapped_key, "wrapped_key")
            nonce_bytes = b64decode(nonce, "nonce")
            with self._key_wrap.unwrap(wrapped_bytes, recipient_private_key) as key:
                plaintext = self._cipher.decrypt(ciphertext, key, nonce_bytes)
        except EnvelopeError as e:
            logger.warning("Open failed: %s", type(e).__name__)
            raise

        logger.debug("Opened record: %d plaintext bytes", len(plaintext))
        return plaintext

    def open_record(
        self,
        sealed: SealedRecord,
        recipient_private_key: rsa.RSAPrivateKey,
    ) -> bytes:
        """Open a SealedRecord."""
        return self.open(
            sealed.ciphertext,
            sealed.wrapped_key,
            sealed.nonce,
            recipient_private_key,
        )
