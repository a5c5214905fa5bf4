"""
Health record service: patients, sealed records, blob and metadata storage.

Each patient gets an RSA key pair at registration. The public key is stored
on the profile; the private key PEM is handed back to the caller once and is
never stored. Reading a record requires the caller to supply that private key.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional, Union
from uuid import UUID, uuid4

from cryptography.hazmat.primitives.asymmetric import rsa

from .envelope import RecordEnvelope
from .errors import PatientNotFoundError, RecordNotFoundError, SerializationError
from .keywrap import RsaKeyWrap
from .storage import BlobStore, HealthRecordMetadata, PatientProfile, RecordStore

logger = logging.getLogger(__name__)

PrivateKeyInput = Union[rsa.RSAPrivateKey, str]


@dataclass
class NewPatient:
    """Result of create_patient."""

    profile: PatientProfile
    private_key_pem: str = field(repr=False)


@dataclass
class DecryptedRecord:
    """Health record metadata with its opened content."""

    metadata: HealthRecordMetadata
    content: bytes = field(repr=False)

    @property
    def text(self) -> str:
        """
        Content decoded as UTF-8.

        Raises:
            SerializationError: If the content is not valid UTF-8
        """
        try:
            return self.content.decode("utf-8")
        except UnicodeDecodeError:
            raise SerializationError("Record content is not valid UTF-8") from None


class HealthRecordService:
    """
    Patient and health record workflow over pluggable storage.
    """

    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        envelope: Optional[RecordEnvelope] = None,
    ) -> None:
        """
        Args:
            records: Patient and record metadata store
            blobs: Ciphertext blob store
            envelope: Record envelope (default: OS randomness)
        """
        self._records = records
        self._blobs = blobs
        self._envelope = envelope or RecordEnvelope()

    async def create_patient(
        self,
        name: str,
        date_of_birth: Optional[date] = None,
    ) -> NewPatient:
        """
        Register a patient and generate their key pair.

        Returns:
            NewPatient with the stored profile and the private key PEM
        """
        # RSA key generation takes tens of milliseconds; keep it off the event loop.
        private_key, public_key = await asyncio.to_thread(RsaKeyWrap.generate_key_pair)

        profile = PatientProfile(
            patient_id=uuid4(),
            name=name,
            public_key_pem=RsaKeyWrap.export_public_pem(public_key),
            date_of_birth=date_of_birth,
        )
        await self._records.store_patient(profile)

        logger.info("Created patient %s", profile.patient_id)
        return NewPatient(
            profile=profile,
            private_key_pem=RsaKeyWrap.export_private_pem(private_key),
        )

    async def get_patient(self, patient_id: UUID) -> PatientProfile:
        """
        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        patient = await self._records.get_patient(patient_id)
        if patient is None:
            raise PatientNotFoundError(f"Patient {patient_id}")
        return patient

    async def add_record(
        self,
        patient_id: UUID,
        content: Union[bytes, str],
        record_type: str,
        title: str,
    ) -> HealthRecordMetadata:
        """
        Seal content to the patient's public key and store it.

        Crypto flow:
        1. Load the patient's public key PEM
        2. Seal content (fresh AES key + nonce, key wrapped under RSA)
        3. Put ciphertext in the blob store -> content ID
        4. Persist (content ID, wrapped key, nonce) as record metadata

        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        patient = await self.get_patient(patient_id)
        payload = content.encode("utf-8") if isinstance(content, str) else content

        sealed = self._envelope.seal_for_pem(payload, patient.public_key_pem)
        content_id = await self._blobs.put(sealed.ciphertext)

        now = datetime.now(timezone.utc)
        record = HealthRecordMetadata(
            record_id=uuid4(),
            patient_id=patient_id,
            content_id=content_id,
            wrapped_key=sealed.wrapped_key,
            nonce=sealed.nonce,
            record_type=record_type,
            title=title,
            created_at=now,
            updated_at=now,
        )
        await self._records.store_record(record)

        logger.info("Stored record %s for patient %s", record.record_id, patient_id)
        return record

    async def read_record(
        self,
        record_id: UUID,
        private_key: PrivateKeyInput,
    ) -> DecryptedRecord:
        """
        Fetch and open one record.

        Args:
            record_id: Record UUID
            private_key: Patient's private key, as a key object or PEM text

        Raises:
            RecordNotFoundError: If the record does not exist
            UnwrapError: If the private key does not match the record
            AuthenticationError: If a mismatched key unwraps to 32 bytes
        """
        record = await self._records.get_record(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record {record_id}")
        return await self._open(record, _load_private_key(private_key))

    async def read_records_for_patient(
        self,
        patient_id: UUID,
        private_key: PrivateKeyInput,
    ) -> List[DecryptedRecord]:
        """
        Fetch and open all of a patient's records, oldest first.

        Raises:
            PatientNotFoundError: If the patient does not exist
        """
        await self.get_patient(patient_id)
        key = _load_private_key(private_key)
        records = await self._records.list_records_for_patient(patient_id)
        return [await self._open(record, key) for record in records]

    async def _open(
        self,
        record: HealthRecordMetadata,
        private_key: rsa.RSAPrivateKey,
    ) -> DecryptedRecord:
        ciphertext = await self._blobs.get(record.content_id)
        content = self._envelope.open(
            ciphertext, record.wrapped_key, record.nonce, private_key
        )
        return DecryptedRecord(metadata=record, content=content)


def _load_private_key(private_key: PrivateKeyInput) -> rsa.RSAPrivateKey:
    if isinstance(private_key, str):
        return RsaKeyWrap.import_private_pem(private_key)
    return private_key
