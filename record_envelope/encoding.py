"""Standard base64 (RFC 4648, padded) for wrapped keys and nonces stored as text."""

from __future__ import annotations

import base64
import binascii

from .errors import Base64DecodeError


def b64encode(data: bytes) -> str:
    """Encode bytes as padded standard base64 text."""
    return base64.standard_b64encode(data).decode("ascii")


def b64decode(encoded: str, field: str = "value") -> bytes:
    """
    Decode padded standard base64 text.

    Args:
        encoded: Base64 text
        field: Name of the field being decoded, used in the error message

    Raises:
        Base64DecodeError: On characters outside the alphabet or bad padding
    """
    if not isinstance(encoded, str):
        raise Base64DecodeError(f"Base64 decode error in {field}: expected str")
    try:
        return base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise Base64DecodeError(f"Base64 decode error in {field}: {e}") from e
