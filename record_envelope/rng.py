"""
Secure randomness as an injectable capability.

Components that draw keys or nonces take a RandomSource at construction and
default to the operating system CSPRNG. Tests can pass their own source to
exercise failure paths deterministically.
"""

from __future__ import annotations

import secrets
from abc import ABC, abstractmethod


class RandomSource(ABC):
    """Source of cryptographically secure random bytes."""

    @abstractmethod
    def token_bytes(self, length: int) -> bytes:
        """Return `length` random bytes."""
        ...


class SystemRandomSource(RandomSource):
    """
    OS-level CSPRNG (``secrets``/``os.urandom``).

    Safe to share between threads; holds no state of its own.
    """

    def token_bytes(self, length: int) -> bytes:
        return secrets.token_bytes(length)

    def __repr__(self) -> str:
        return "SystemRandomSource()"


_SYSTEM_RANDOM = SystemRandomSource()


def default_random_source() -> RandomSource:
    """Return the shared OS random source."""
    return _SYSTEM_RANDOM
