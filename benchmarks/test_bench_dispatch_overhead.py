"""
Benchmark: Dispatch Overhead

Measures the overhead the balancer adds around each operation: queueing,
selection, cooldown bookkeeping and settling the caller's future. Rule
windows are set to a microsecond so rate limiting never dominates.

Usage:
    uv run pytest benchmarks/test_bench_dispatch_overhead.py -v --no-cov
"""

import asyncio
import time

import pytest

from request_balancer import Balancer


class TestDispatchOverhead:
    """Benchmark dispatch overhead for sequential and burst submissions."""

    @pytest.mark.asyncio
    async def test_sequential_request_overhead(self, benchmark_config, instant_operation):
        """Measure round-trip overhead of one request at a time."""
        async with Balancer(benchmark_config) as balancer:
            # Warmup
            for _ in range(10):
                await balancer.request(instant_operation)

            iterations = 500
            start = time.perf_counter()
            for _ in range(iterations):
                await balancer.request(instant_operation)
            elapsed = time.perf_counter() - start

        avg_ms = (elapsed / iterations) * 1000
        print("\n--- Sequential Request Overhead ---")
        print(f"Iterations: {iterations}")
        print(f"Total time: {elapsed:.4f}s")
        print(f"Average latency: {avg_ms:.3f}ms per request")
        print(f"Throughput: {iterations / elapsed:.1f} ops/sec")

        assert avg_ms < 5, f"Overhead too high: {avg_ms:.3f}ms"

    @pytest.mark.asyncio
    async def test_burst_across_partitions(self, benchmark_config, instant_operation):
        """Measure throughput when a burst spreads over many partitions."""
        burst = 2000
        partitions = 100

        async with Balancer(benchmark_config) as balancer:
            start = time.perf_counter()
            futures = [
                balancer.submit(
                    instant_operation,
                    key=f"partition-{i % partitions}",
                    rule="urgent" if i % 10 == 0 else "common",
                )
                for i in range(burst)
            ]
            await asyncio.gather(*futures)
            elapsed = time.perf_counter() - start

        print("\n--- Burst Across Partitions ---")
        print(f"Burst size: {burst} over {partitions} partitions")
        print(f"Total time: {elapsed:.4f}s")
        print(f"Throughput: {burst / elapsed:.1f} ops/sec")

        assert elapsed < 10, f"Burst took too long: {elapsed:.2f}s"
