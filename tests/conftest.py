"""
Pytest configuration and fixtures for record envelope tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import AsyncGenerator, List, Tuple

import asyncpg
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from dotenv import load_dotenv

from record_envelope import (
    InMemoryBlobStore,
    InMemoryRecordStore,
    PostgresBlobStore,
    PostgresRecordStore,
    RandomSource,
    RsaKeyWrap,
    ensure_schema,
)

KeyPair = Tuple[rsa.RSAPrivateKey, rsa.RSAPublicKey]


class ScriptedRandomSource(RandomSource):
    """Returns queued byte strings in order, then fails."""

    def __init__(self, outputs: List[bytes]) -> None:
        self.outputs = list(outputs)
        self.requests: List[int] = []

    def token_bytes(self, length: int) -> bytes:
        self.requests.append(length)
        if not self.outputs:
            raise RuntimeError("random source exhausted")
        return self.outputs.pop(0)


@pytest.fixture
def scripted_random() -> type[ScriptedRandomSource]:
    """Factory for random sources with predetermined output."""
    return ScriptedRandomSource


@pytest.fixture(scope="session")
def key_pair() -> KeyPair:
    """RSA key pair shared across tests (generation is slow)."""
    return RsaKeyWrap.generate_key_pair()


@pytest.fixture(scope="session")
def other_key_pair() -> KeyPair:
    """Second, unrelated RSA key pair."""
    return RsaKeyWrap.generate_key_pair()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    """Create an in-memory blob store for testing."""
    return InMemoryBlobStore()


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    """Create an in-memory record store for testing."""
    return InMemoryRecordStore()


@pytest.fixture
async def pg_pool() -> AsyncGenerator[asyncpg.Pool, None]:
    """Create a PostgreSQL connection pool for testing."""
    # Load environment from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(env_path)

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set, skipping PostgreSQL tests")

    pool = await asyncpg.create_pool(database_url)
    if pool is None:
        pytest.skip("Failed to create PostgreSQL connection pool")

    await ensure_schema(pool)
    await pool.execute("TRUNCATE TABLE health_records, patients, blobs")

    yield pool

    await pool.close()


@pytest.fixture
async def postgres_record_store(pg_pool: asyncpg.Pool) -> PostgresRecordStore:
    """Create a PostgreSQL record store for testing."""
    return PostgresRecordStore(pg_pool)


@pytest.fixture
async def postgres_blob_store(pg_pool: asyncpg.Pool) -> PostgresBlobStore:
    """Create a PostgreSQL blob store for testing."""
    return PostgresBlobStore(pg_pool)
