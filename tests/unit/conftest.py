"""
Shared fixtures for the unit test suite.
"""

import pytest

from request_balancer.scheduler.config import BalancerConfig
from request_balancer.scheduler.state import (
    CooldownTracker,
    PartitionStore,
    RuleRegistry,
)
from request_balancer.types.rule import Rule

# ============================================================================
# Clock Fixtures
# ============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock starting at t=1000s."""
    return FakeClock()


# ============================================================================
# State Fixtures
# ============================================================================


@pytest.fixture
def rules() -> dict[str, Rule]:
    """Rules with distinct priorities and windows."""
    return {
        "common": Rule(rate=30, limit=1, priority=3),
        "urgent": Rule(rate=10, limit=1, priority=1),
        "slow": Rule(rate=1, limit=2, priority=5),
    }


@pytest.fixture
def registry(rules) -> RuleRegistry:
    """Registry over the ``rules`` fixture with ``common`` as default."""
    return RuleRegistry(rules, "common")


@pytest.fixture
def store(registry, fake_clock) -> PartitionStore:
    """Empty partition store driven by the fake clock."""
    return PartitionStore(registry, fake_clock)


@pytest.fixture
def cooldowns(fake_clock) -> CooldownTracker:
    """Cooldown tracker with overheat bookkeeping enabled (10/s)."""
    return CooldownTracker(
        Rule(rate=10, limit=1, priority=1), fake_clock, ignore_overheat=False
    )


@pytest.fixture
def fast_config() -> BalancerConfig:
    """Configuration with short windows suitable for real-time tests."""
    return BalancerConfig(
        rules={
            "common": Rule(rate=100, limit=1, priority=3),
            "fast": Rule(rate=200, limit=1, priority=2),
            "slow": Rule(rate=20, limit=1, priority=4),
            "urgent": Rule(rate=100, limit=1, priority=1),
        },
        retry_time=0.05,
    )
