"""
PostgreSQL-backed collaborators.

This module provides:
- PostgresBlobStore: content-addressed ciphertext store (``blobs`` table)
- PostgresRecordStore: patient profiles and record metadata
  (``patients`` and ``health_records`` tables)
- create_pool: asyncpg pool from Settings

Architecture:
- **blobs**: ciphertext only, keyed by SHA-256 content ID
- **patients**: public key PEM per patient (private keys are never stored)
- **health_records**: content ID + base64 wrapped key + base64 nonce
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

import asyncpg

from .config import Settings
from .errors import BlobNotFoundError, ConfigError, StorageError
from .storage import (
    BlobStore,
    HealthRecordMetadata,
    PatientProfile,
    RecordStore,
    content_id_for,
)

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS blobs (
    content_id  TEXT PRIMARY KEY,
    data        BYTEA NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS patients (
    patient_id      UUID PRIMARY KEY,
    name            TEXT NOT NULL,
    date_of_birth   DATE,
    public_key_pem  TEXT NOT NULL,
    created_at      TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS health_records (
    record_id    UUID PRIMARY KEY,
    patient_id   UUID NOT NULL REFERENCES patients (patient_id),
    content_id   TEXT NOT NULL,
    wrapped_key  TEXT NOT NULL,
    nonce        TEXT NOT NULL,
    record_type  TEXT NOT NULL,
    title        TEXT NOT NULL,
    created_at   TIMESTAMPTZ NOT NULL,
    updated_at   TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS health_records_patient_idx
    ON health_records (patient_id, created_at);
"""


async def create_pool(settings: Settings) -> asyncpg.Pool:
    """
    Create an asyncpg pool from settings.

    Raises:
        ConfigError: If DATABASE_URL is not configured
        StorageError: If the pool cannot be created
    """
    if not settings.database_url:
        raise ConfigError("DATABASE_URL must be set in environment or .env file")
    try:
        pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
    except (OSError, asyncpg.PostgresError) as e:
        raise StorageError(f"Failed to create connection pool: {e}") from e
    if pool is None:
        raise StorageError("Failed to create connection pool")
    return pool


async def ensure_schema(pool: asyncpg.Pool) -> None:
    """Create tables if they do not exist."""
    try:
        await pool.execute(SCHEMA_SQL)
    except asyncpg.PostgresError as e:
        raise StorageError(f"Failed to create schema: {e}") from e


# =============================================================================
# Blob Store
# =============================================================================


class PostgresBlobStore(BlobStore):
    """Content-addressed ciphertext storage in a ``blobs`` table."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        """
        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool."""
        return self._pool

    async def put(self, data: bytes) -> str:
        content_id = content_id_for(data)
        query = """
            INSERT INTO blobs (content_id, data)
            VALUES ($1, $2)
            ON CONFLICT (content_id) DO NOTHING
        """
        try:
            await self._pool.execute(query, content_id, data)
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to store blob: {e}") from e
        return content_id

    async def get(self, content_id: str) -> bytes:
        query = "SELECT data FROM blobs WHERE content_id = $1"
        try:
            row = await self._pool.fetchrow(query, content_id)
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to get blob: {e}") from e
        if row is None:
            raise BlobNotFoundError(content_id)
        return bytes(row["data"])


# =============================================================================
# Record Store
# =============================================================================


class PostgresRecordStore(RecordStore):
    """
    PostgreSQL storage for patient profiles and sealed record metadata.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        """
        Args:
            pool: asyncpg connection pool
        """
        self._pool = pool

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool."""
        return self._pool

    async def store_patient(self, patient: PatientProfile) -> None:
        query = """
            INSERT INTO patients (patient_id, name, date_of_birth, public_key_pem, created_at)
            VALUES ($1, $2, $3, $4, $5)
        """
        try:
            await self._pool.execute(
                query,
                patient.patient_id,
                patient.name,
                patient.date_of_birth,
                patient.public_key_pem,
                patient.created_at,
            )
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to store patient: {e}") from e

    async def get_patient(self, patient_id: UUID) -> Optional[PatientProfile]:
        query = """
            SELECT patient_id, name, date_of_birth, public_key_pem, created_at
            FROM patients
            WHERE patient_id = $1
        """
        try:
            row = await self._pool.fetchrow(query, patient_id)
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to get patient: {e}") from e
        if row is None:
            return None
        return PatientProfile(
            patient_id=row["patient_id"],
            name=row["name"],
            public_key_pem=row["public_key_pem"],
            date_of_birth=row["date_of_birth"],
            created_at=row["created_at"],
        )

    async def store_record(self, record: HealthRecordMetadata) -> None:
        query = """
            INSERT INTO health_records (
                record_id, patient_id, content_id, wrapped_key, nonce,
                record_type, title, created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
        """
        try:
            await self._pool.execute(
                query,
                record.record_id,
                record.patient_id,
                record.content_id,
                record.wrapped_key,
                record.nonce,
                record.record_type,
                record.title,
                record.created_at,
                record.updated_at,
            )
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to store health record: {e}") from e

    async def get_record(self, record_id: UUID) -> Optional[HealthRecordMetadata]:
        query = """
            SELECT record_id, patient_id, content_id, wrapped_key, nonce,
                   record_type, title, created_at, updated_at
            FROM health_records
            WHERE record_id = $1
        """
        try:
            row = await self._pool.fetchrow(query, record_id)
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to get health record: {e}") from e
        if row is None:
            return None
        return self._row_to_record(row)

    async def list_records_for_patient(
        self, patient_id: UUID
    ) -> List[HealthRecordMetadata]:
        query = """
            SELECT record_id, patient_id, content_id, wrapped_key, nonce,
                   record_type, title, created_at, updated_at
            FROM health_records
            WHERE patient_id = $1
            ORDER BY created_at
        """
        try:
            rows = await self._pool.fetch(query, patient_id)
        except asyncpg.PostgresError as e:
            raise StorageError(f"Failed to list health records: {e}") from e
        return [self._row_to_record(row) for row in rows]

    @staticmethod
    def _row_to_record(row: asyncpg.Record) -> HealthRecordMetadata:
        """Convert database row to HealthRecordMetadata."""
        return HealthRecordMetadata(
            record_id=row["record_id"],
            patient_id=row["patient_id"],
            content_id=row["content_id"],
            wrapped_key=row["wrapped_key"],
            nonce=row["nonce"],
            record_type=row["record_type"],
            title=row["title"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
