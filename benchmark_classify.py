#!/usr/bin/env python3
"""
Benchmark script for change classification.

Measures:
- Digest computation for 10KB / 100KB / 1MB / 10MB content
- classify_change() on a matching file (full hash comparison)
- classify_change() on a paused file (fast path, no hashing)
"""

import asyncio
import time


def _time_ms(fn, repeat: int) -> float:
    start = time.perf_counter()
    for _ in range(repeat):
        fn()
    return (time.perf_counter() - start) * 1000 / repeat


async def benchmark_classify():
    from writeguard import ChangeTracker, compute_content_hash

    tracker = ChangeTracker(pause_duration=0)
    results = []

    for label, size in [("10KB", 10_240), ("100KB", 102_400), ("1MB", 1_048_576), ("10MB", 10_485_760)]:
        content = "x" * size
        path = f"/bench/{label}.tsx"
        repeat = 200 if size <= 102_400 else 20

        hash_ms = _time_ms(lambda: compute_content_hash(content), repeat)

        tracker.register_upcoming_write(path, content)
        paused_ms = _time_ms(lambda: tracker.classify_change(path, content), repeat)

        await tracker.confirm_write_complete(path)
        match_ms = _time_ms(lambda: tracker.classify_change(path, content), repeat)

        print(f"{label}: hash {hash_ms:.3f} ms, classify {match_ms:.3f} ms, paused {paused_ms:.4f} ms")
        results.append((label, hash_ms, match_ms, paused_ms))

    tracker.clear()

    # Summary
    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"{'size':>6}  {'hash ms':>10}  {'classify ms':>12}  {'paused ms':>10}")
    for label, hash_ms, match_ms, paused_ms in results:
        print(f"{label:>6}  {hash_ms:>10.3f}  {match_ms:>12.3f}  {paused_ms:>10.4f}")


if __name__ == "__main__":
    asyncio.run(benchmark_classify())
