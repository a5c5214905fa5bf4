"""
Storage collaborators for sealed health records.

This module provides:
- BlobStore: Abstract content-addressed store for ciphertext blobs
- RecordStore: Abstract store for patient profiles and record metadata
- InMemoryBlobStore / InMemoryRecordStore: implementations for testing
- Supporting data structures: PatientProfile, HealthRecordMetadata

Neither store ever sees plaintext or unwrapped keys.
"""

from __future__ import annotations

import asyncio
import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from .errors import BlobNotFoundError


def content_id_for(data: bytes) -> str:
    """Content ID of a blob: hex SHA-256 of its bytes."""
    return hashlib.sha256(data).hexdigest()


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PatientProfile:
    """Patient identity with the public key records are sealed to."""

    patient_id: UUID
    name: str
    public_key_pem: str
    date_of_birth: Optional[date] = None
    created_at: datetime = field(default_factory=_now)


@dataclass
class HealthRecordMetadata:
    """Pointer to a sealed record's blob plus what is needed to open it."""

    record_id: UUID
    patient_id: UUID
    content_id: str
    wrapped_key: str  # base64
    nonce: str  # base64
    record_type: str
    title: str
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)


class BlobStore(ABC):
    """Opaque put/get service for ciphertext."""

    @abstractmethod
    async def put(self, data: bytes) -> str:
        """Store a blob and return its content ID."""
        ...

    @abstractmethod
    async def get(self, content_id: str) -> bytes:
        """Get a blob by content ID (raises BlobNotFoundError)."""
        ...


class RecordStore(ABC):
    """
    Abstract store for patients and health record metadata.

    All methods are async to support both in-memory and database backends.
    """

    @abstractmethod
    async def store_patient(self, patient: PatientProfile) -> None:
        """Store a patient profile."""
        ...

    @abstractmethod
    async def get_patient(self, patient_id: UUID) -> Optional[PatientProfile]:
        """Get a patient by ID."""
        ...

    @abstractmethod
    async def store_record(self, record: HealthRecordMetadata) -> None:
        """Store health record metadata."""
        ...

    @abstractmethod
    async def get_record(self, record_id: UUID) -> Optional[HealthRecordMetadata]:
        """Get health record metadata by ID."""
        ...

    @abstractmethod
    async def list_records_for_patient(
        self, patient_id: UUID
    ) -> List[HealthRecordMetadata]:
        """List a patient's records, oldest first."""
        ...


class InMemoryBlobStore(BlobStore):
    """
    Content-addressed in-memory blob store.

    Uses asyncio.Lock for safe concurrent access.
    """

    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def put(self, data: bytes) -> str:
        content_id = content_id_for(data)
        async with self._lock:
            self._blobs[content_id] = bytes(data)
        return content_id

    async def get(self, content_id: str) -> bytes:
        async with self._lock:
            data = self._blobs.get(content_id)
        if data is None:
            raise BlobNotFoundError(content_id)
        return data

    def __len__(self) -> int:
        return len(self._blobs)


class InMemoryRecordStore(RecordStore):
    """
    In-memory record store for testing.

    Uses asyncio.Lock for safe concurrent access.
    """

    def __init__(self) -> None:
        self._patients: Dict[UUID, PatientProfile] = {}
        self._records: Dict[UUID, HealthRecordMetadata] = {}
        self._lock = asyncio.Lock()

    async def store_patient(self, patient: PatientProfile) -> None:
        async with self._lock:
            self._patients[patient.patient_id] = patient

    async def get_patient(self, patient_id: UUID) -> Optional[PatientProfile]:
        async with self._lock:
            return self._patients.get(patient_id)

    async def store_record(self, record: HealthRecordMetadata) -> None:
        async with self._lock:
            self._records[record.record_id] = record

    async def get_record(self, record_id: UUID) -> Optional[HealthRecordMetadata]:
        async with self._lock:
            return self._records.get(record_id)

    async def list_records_for_patient(
        self, patient_id: UUID
    ) -> List[HealthRecordMetadata]:
        async with self._lock:
            records = [r for r in self._records.values() if r.patient_id == patient_id]
        return sorted(records, key=lambda r: r.created_at)
