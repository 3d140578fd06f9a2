#!/usr/bin/env python3
"""
Signing Benchmark
=================

Benchmark the cost of signing and verifying values.

Keys are derived on every call, so sign and unsign cost is dominated by one
key derivation plus one HMAC. Verifying against a rotated key ring costs one
derivation per secret tried.

Measures:
  - Raw sign / unsign micro-cost per digest
  - Cost of verifying with older secrets in a key ring
  - Timestamped signing overhead
  - Payload size impact
"""

import logging
import time

from tokenseal import KeyRing, Serializer, Signer, TimestampSigner
from tokenseal.key_derivation import DerivationMethod

# Suppress failure warnings from rejected values during benchmarks
logging.getLogger("tokenseal").setLevel(logging.ERROR)


# ── Helpers ──────────────────────────────────────────────────────────────────


def time_op(func, iterations: int = 100) -> float:
    """Return average μs per call."""
    for _ in range(min(5, iterations)):
        func()
    start = time.perf_counter()
    for _ in range(iterations):
        func()
    return ((time.perf_counter() - start) / iterations) * 1_000_000


# ── Benchmarks ───────────────────────────────────────────────────────────────


def benchmark_raw_sign_unsign():
    """Micro-benchmark of sign and unsign for each digest and derivation."""
    print("\n🔐 Raw sign / unsign Micro-Benchmark")
    print("-" * 60)

    payload = b'{"user_id":42,"roles":["admin","editor"]}'

    print(f"  {'Digest':>8} {'Derivation':>14} {'Sign μs':>10} {'Unsign μs':>10} {'Length':>8}")
    print("  " + "-" * 54)

    for digest in ["sha1", "sha256", "sha512"]:
        for method in DerivationMethod:
            signer = Signer("benchmark-secret", digest=digest, key_derivation=method)
            signed = signer.sign(payload)

            sign_t = time_op(lambda: signer.sign(payload), iterations=5000)
            unsign_t = time_op(lambda: signer.unsign(signed), iterations=5000)

            print(
                f"  {digest:>8} {method.value:>14} {sign_t:10.2f} {unsign_t:10.2f} {len(signed):8}"
            )


def benchmark_key_rotation():
    """Measure how the position of the matching secret affects unsign."""
    print("\n🔄 Key Ring Position Impact")
    print("-" * 60)

    ring = KeyRing([f"secret-{i}" for i in range(8)])
    signer = Signer(ring)
    payload = b"rotation"

    print(f"  {'Position':>8} {'Unsign μs':>10}")
    print("  " + "-" * 20)

    for position in [0, 1, 3, 7]:
        signed = Signer(ring[position].reveal()).sign(payload)
        unsign_t = time_op(lambda: signer.unsign(signed), iterations=3000)
        print(f"  {position:>8} {unsign_t:10.2f}")

    rejected = Signer("unknown").sign(payload)
    reject_t = time_op(lambda: signer.validate(rejected), iterations=3000)
    print(f"  {'reject':>8} {reject_t:10.2f}")


def benchmark_timestamp_overhead():
    """Compare plain and timestamped signing."""
    print("\n⏱️  Timestamp Overhead")
    print("-" * 60)

    signer = Signer("benchmark-secret")
    timed = TimestampSigner(signer)
    payload = b"timestamped"

    plain_signed = signer.sign(payload)
    timed_signed = timed.sign(payload)

    rows = [
        ("Signer.sign", time_op(lambda: signer.sign(payload), iterations=5000)),
        ("Signer.unsign", time_op(lambda: signer.unsign(plain_signed), iterations=5000)),
        ("TimestampSigner.sign", time_op(lambda: timed.sign(payload), iterations=5000)),
        (
            "TimestampSigner.unsign",
            time_op(lambda: timed.unsign(timed_signed, max_age=60), iterations=5000),
        ),
    ]
    for label, t in rows:
        print(f"  {label:24} {t:8.2f} μs")


def benchmark_payload_size():
    """Measure signing cost as payloads grow."""
    print("\n📊 Payload Size Impact")
    print("-" * 60)

    serializer = Serializer(Signer("benchmark-secret"))

    print(f"  {'Items':>8} {'Dumps μs':>10} {'Loads μs':>10} {'Token len':>10}")
    print("  " + "-" * 42)

    for size in [1, 10, 100, 1000]:
        obj = {f"key_{i}": i for i in range(size)}
        token = serializer.dumps(obj)

        dumps_t = time_op(lambda: serializer.dumps(obj), iterations=1000)
        loads_t = time_op(lambda: serializer.loads(token), iterations=1000)

        print(f"  {size:>8} {dumps_t:10.2f} {loads_t:10.2f} {len(token):10}")


# ── Main ─────────────────────────────────────────────────────────────────────


def main():
    print("🔐 Signing Benchmark")
    print("=" * 60)
    print("Benchmarking sign/unsign cost")
    print()

    try:
        benchmark_raw_sign_unsign()
        benchmark_key_rotation()
        benchmark_timestamp_overhead()
        benchmark_payload_size()

        print()
        print()
        print("🎯 Interpretation Guide")
        print("=" * 60)
        print("• Sign and unsign each derive one key and compute one HMAC")
        print("• Unsign cost grows linearly with the position of the matching secret")
        print("• Timestamped values add one integer segment, overhead should be small")
        print()
        print("⚠️  Regressions to watch for:")
        print("• Unsign much slower than sign for position 0")
        print("• Rejecting a value faster than verifying the last secret (early exit)")
        print()
        print("✅ Benchmark complete!")

    except KeyboardInterrupt:
        print("\n⚠️  Benchmark interrupted by user")
    except Exception as e:
        print(f"\n❌ Benchmark failed: {e}")
        import traceback

        traceback.print_exc()


if __name__ == "__main__":
    main()
