"""
Shared fixtures for benchmark tests.
"""

import pytest

from request_balancer import BalancerConfig, Rule


@pytest.fixture
def benchmark_config():
    """Configuration whose windows are short enough to measure pure overhead."""
    return BalancerConfig(
        rules={
            "common": Rule(rate=1_000_000, limit=1, priority=3),
            "urgent": Rule(rate=1_000_000, limit=1, priority=1),
        },
        metrics_enabled=False,
    )


@pytest.fixture
def instant_operation():
    """Operation that returns immediately, so measured time is pure overhead."""

    async def operation(retry):
        return {"result": "instant"}

    return operation
