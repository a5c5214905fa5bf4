"""
Record Envelope

Envelope encryption for sensitive records: each record is encrypted with a
fresh AES-256-GCM key, and that key is wrapped under the recipient's
RSA-2048 public key. The storage layer only ever sees ciphertext, the
base64 wrapped key and the base64 nonce.

Quick Start
-----------
```python
from record_envelope import RecordEnvelope, RsaKeyWrap

private_key, public_key = RsaKeyWrap.generate_key_pair()
envelope = RecordEnvelope()

sealed = envelope.seal(b"blood type: O+", public_key)
# sealed.ciphertext -> blob store
# sealed.wrapped_key, sealed.nonce -> record metadata

plaintext = envelope.open(
    sealed.ciphertext, sealed.wrapped_key, sealed.nonce, private_key
)
```

Key Features
------------
- **AES-256-GCM**: Authenticated encryption with a fresh key and nonce per record
- **RSA-2048 key wrap**: PKCS#1 v1.5, with PEM import/export
- **Injectable randomness**: OS CSPRNG by default, replaceable for tests
- **Storage collaborators**: In-memory and PostgreSQL blob/metadata stores
- **Memory Security**: Best-effort key zeroization
"""

__version__ = "0.1.0"

# =============================================================================
# Crypto Exports
# =============================================================================

from .crypto import (
    AES_256_KEY_SIZE,
    NONCE_SIZE,
    TAG_SIZE,
    EncryptedData,
    SecureKey,
    SymmetricCipher,
)
from .encoding import b64decode, b64encode
from .envelope import RecordEnvelope, SealedRecord
from .keywrap import RSA_KEY_SIZE, RsaKeyWrap
from .rng import RandomSource, SystemRandomSource, default_random_source

# =============================================================================
# Error Exports
# =============================================================================

from .errors import (
    AuthenticationError,
    Base64DecodeError,
    BlobNotFoundError,
    ConfigError,
    CryptoError,
    EnvelopeError,
    InvalidKeySizeError,
    InvalidNonceSizeError,
    KeyDecodeError,
    KeyEncodeError,
    KeyGenerationError,
    NotFoundError,
    PatientNotFoundError,
    RecordNotFoundError,
    SerializationError,
    StorageError,
    UnwrapError,
    WrapError,
)

# =============================================================================
# Storage and Service Exports
# =============================================================================

from .config import Settings, configure_logging, load_settings
from .service import DecryptedRecord, HealthRecordService, NewPatient
from .storage import (
    BlobStore,
    HealthRecordMetadata,
    InMemoryBlobStore,
    InMemoryRecordStore,
    PatientProfile,
    RecordStore,
)

# =============================================================================
# PostgreSQL Exports
# =============================================================================

from .postgres import (
    PostgresBlobStore,
    PostgresRecordStore,
    create_pool,
    ensure_schema,
)

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Version
    "__version__",
    # Crypto
    "AES_256_KEY_SIZE",
    "NONCE_SIZE",
    "TAG_SIZE",
    "RSA_KEY_SIZE",
    "EncryptedData",
    "SecureKey",
    "SymmetricCipher",
    "RsaKeyWrap",
    "RecordEnvelope",
    "SealedRecord",
    "b64encode",
    "b64decode",
    "RandomSource",
    "SystemRandomSource",
    "default_random_source",
    # Errors
    "EnvelopeError",
    "CryptoError",
    "InvalidKeySizeError",
    "InvalidNonceSizeError",
    "AuthenticationError",
    "KeyGenerationError",
    "WrapError",
    "UnwrapError",
    "SerializationError",
    "Base64DecodeError",
    "KeyDecodeError",
    "KeyEncodeError",
    "StorageError",
    "NotFoundError",
    "BlobNotFoundError",
    "PatientNotFoundError",
    "RecordNotFoundError",
    "ConfigError",
    # Config
    "Settings",
    "load_settings",
    "configure_logging",
    # Storage and service
    "BlobStore",
    "RecordStore",
    "InMemoryBlobStore",
    "InMemoryRecordStore",
    "PatientProfile",
    "HealthRecordMetadata",
    "HealthRecordService",
    "NewPatient",
    "DecryptedRecord",
    # PostgreSQL
    "PostgresBlobStore",
    "PostgresRecordStore",
    "create_pool",
    "ensure_schema",
]
