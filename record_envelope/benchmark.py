"""
Record Envelope Benchmark CLI.

Usage:
    record-envelope-benchmark [RECORDS]

Or run directly:
    python -m record_envelope.benchmark

PostgreSQL round trip (optional):
    Set DATABASE_URL in the environment or a .env file
"""

from __future__ import annotations

import asyncio
import sys
import time

from record_envelope.config import configure_logging, load_settings
from record_envelope.envelope import RecordEnvelope
from record_envelope.errors import AuthenticationError, EnvelopeError, UnwrapError
from record_envelope.keywrap import RsaKeyWrap
from record_envelope.postgres import (
    PostgresBlobStore,
    PostgresRecordStore,
    create_pool,
    ensure_schema,
)
from record_envelope.service import HealthRecordService

DEFAULT_RECORDS = 250
PAYLOAD = b"blood type: O+; allergies: penicillin; last visit: routine checkup"


def _rate(count: int, seconds: float) -> str:
    return f"{count / seconds:.2f}" if seconds > 0 else "inf"


def _banner(title: str) -> None:
    print("+" + "-" * 68 + "+")
    print(f"|  {title}".ljust(69) + "|")
    print("+" + "-" * 68 + "+")


async def run_benchmark(record_count: int) -> None:
    """Run the record envelope benchmark."""
    print("=== Record Envelope Benchmark ===\n")

    settings = load_settings()
    configure_logging(settings)
    envelope = RecordEnvelope()

    # ========================================================================
    # Demo 1: Key pair generation
    # ========================================================================
    _banner("Demo 1: RSA-2048 Key Pair Generation")

    keygen_start = time.perf_counter()
    private_key, public_key = RsaKeyWrap.generate_key_pair()
    keygen_time = time.perf_counter() - keygen_start
    other_private_key, _ = RsaKeyWrap.generate_key_pair()

    print(f"[PERF] Key pair: {keygen_time * 1000:.3f}ms\n")

    # ========================================================================
    # Demo 2: Seal
    # ========================================================================
    _banner(f"Demo 2: Seal {record_count} Records")

    seal_start = time.perf_counter()
    sealed = [envelope.seal(PAYLOAD, public_key) for _ in range(record_count)]
    seal_time = time.perf_counter() - seal_start

    print(f"[OK] Sealed {record_count} records")
    print(f"[PERF] Time: {seal_time * 1000:.3f}ms | Rate: {_rate(record_count, seal_time)} ops/sec\n")

    # ========================================================================
    # Demo 3: Open
    # ========================================================================
    _banner(f"Demo 3: Open {record_count} Records")

    open_start = time.perf_counter()
    for record in sealed:
        if envelope.open_record(record, private_key) != PAYLOAD:
            print("[ERROR] Opened payload does not match")
            sys.exit(1)
    open_time = time.perf_counter() - open_start

    print(f"[OK] Opened {record_count} records")
    print(f"[PERF] Time: {open_time * 1000:.3f}ms | Rate: {_rate(record_count, open_time)} ops/sec\n")

    # ========================================================================
    # Demo 4: Wrong key rejection
    # ========================================================================
    _banner("Demo 4: Wrong Private Key Rejection")

    try:
        envelope.open_record(sealed[0], other_private_key)
        print("[ERROR] Record opened with an unrelated private key")
        sys.exit(1)
    except (UnwrapError, AuthenticationError) as e:
        print(f"[OK] Unrelated private key rejected ({type(e).__name__})\n")

    # ========================================================================
    # Demo 5: PostgreSQL round trip (optional)
    # ========================================================================
    _banner("Demo 5: PostgreSQL Service Round Trip")

    if not settings.database_url:
        print("[SKIP] DATABASE_URL not set\n")
    else:
        pool = await create_pool(settings)
        try:
            await ensure_schema(pool)
            service = HealthRecordService(
                PostgresRecordStore(pool), PostgresBlobStore(pool), envelope
            )
            pg_start = time.perf_counter()
            patient = await service.create_patient("Benchmark Patient")
            record = await service.add_record(
                patient.profile.patient_id, PAYLOAD, "lab", "Blood panel"
            )
            opened = await service.read_record(record.record_id, patient.private_key_pem)
            pg_time = time.perf_counter() - pg_start
            status = "OK" if opened.content == PAYLOAD else "ERROR"
            print(f"[{status}] Patient + record stored and reopened")
            print(f"[PERF] Round trip: {pg_time * 1000:.3f}ms\n")
        finally:
            await pool.close()

    # ========================================================================
    # Summary
    # ========================================================================
    print("=" * 70)
    print("                    BENCHMARK SUMMARY")
    print("=" * 70 + "\n")
    print(f"  - Records: {record_count}")
    print(f"  - Payload: {len(PAYLOAD)} bytes")
    print(f"  - Seal:    {_rate(record_count, seal_time)} ops/sec")
    print(f"  - Open:    {_rate(record_count, open_time)} ops/sec")
    print("  - Crypto:  AES-256-GCM payload, RSA-2048 PKCS#1 v1.5 key wrap\n")


def main() -> None:
    """CLI entry point for record-envelope-benchmark command."""
    record_count = DEFAULT_RECORDS
    if len(sys.argv) > 1:
        try:
            record_count = int(sys.argv[1])
        except ValueError:
            print(f"ERROR: RECORDS must be an integer, got {sys.argv[1]!r}")
            sys.exit(2)
        if record_count < 1:
            print("ERROR: RECORDS must be at least 1")
            sys.exit(2)

    try:
        asyncio.run(run_benchmark(record_count))
    except EnvelopeError as e:
        print(f"ERROR: {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
