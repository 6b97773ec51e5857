"""
Unit tests for priority selection.

Covers the single-pass scan and the suspending selection loop:
- scan_partitions: eligibility, priority ordering, tie-breaks, deadlines
- PrioritySelector.select_next: cooldown waits, overheat waits, drain,
  bounded re-poll backoff
"""

from unittest.mock import MagicMock, Mock

import pytest

from request_balancer.scheduler.state import CooldownTracker
from request_balancer.strategies.selection import PrioritySelector, scan_partitions
from request_balancer.types.partition import Partition, WorkItem
from request_balancer.types.rule import Rule

# ============================================================================
# Helpers
# ============================================================================


def make_partition(
    key: str,
    priority: int = 3,
    items: int = 1,
    cooldown_until: float = 0.0,
) -> Partition:
    partition = Partition(
        key=key,
        rule=Rule(rate=10, limit=1, priority=priority),
        rule_name=f"rule-{key}",
        cooldown_until=cooldown_until,
    )
    for _ in range(items):
        partition.items.append(WorkItem(operation=Mock(), callback=Mock()))
    return partition


class SleepRecorder:
    """Stand-in for the balancer's sleep that advances the fake clock."""

    def __init__(self, clock) -> None:
        self.clock = clock
        self.deadlines: list[float] = []

    async def __call__(self, deadline: float) -> None:
        self.deadlines.append(deadline)
        if deadline > self.clock.now:
            self.clock.now = deadline


# ============================================================================
# scan_partitions Tests
# ============================================================================


class TestScanPartitions:
    """Tests for the single selection pass."""

    def test_empty_input(self):
        selection = scan_partitions([], now=10.0)
        assert selection.partition is None
        assert selection.next_eligible_at is None

    def test_lowest_priority_number_wins(self):
        low = make_partition("low", priority=5)
        high = make_partition("high", priority=1)
        mid = make_partition("mid", priority=3)

        selection = scan_partitions([low, high, mid], now=10.0)

        assert selection.partition is high

    def test_ties_resolve_to_first_in_order(self):
        first = make_partition("first", priority=2)
        second = make_partition("second", priority=2)

        assert scan_partitions([first, second], now=10.0).partition is first
        assert scan_partitions([second, first], now=10.0).partition is second

    def test_empty_partitions_are_skipped(self):
        empty = make_partition("empty", priority=0, items=0)
        busy = make_partition("busy", priority=9)

        assert scan_partitions([empty, busy], now=10.0).partition is busy

    def test_cooling_partitions_are_skipped(self):
        cooling = make_partition("cooling", priority=0, cooldown_until=11.0)
        ready = make_partition("ready", priority=9)

        selection = scan_partitions([cooling, ready], now=10.0)

        assert selection.partition is ready
        assert selection.next_eligible_at == 11.0

    def test_cooldown_equal_to_now_is_eligible(self):
        partition = make_partition("p", cooldown_until=10.0)
        assert scan_partitions([partition], now=10.0).partition is partition

    def test_soonest_deadline_reported(self):
        later = make_partition("later", cooldown_until=12.0)
        sooner = make_partition("sooner", cooldown_until=10.5)

        selection = scan_partitions([later, sooner], now=10.0)

        assert selection.partition is None
        assert selection.next_eligible_at == 10.5

    def test_empty_cooling_partitions_do_not_report_deadline(self):
        empty = make_partition("empty", items=0, cooldown_until=12.0)
        assert scan_partitions([empty], now=10.0).next_eligible_at is None


# ============================================================================
# PrioritySelector Tests
# ============================================================================


@pytest.fixture
def sleeper(fake_clock) -> SleepRecorder:
    return SleepRecorder(fake_clock)


@pytest.fixture
def quiet_cooldowns(fake_clock) -> CooldownTracker:
    return CooldownTracker(Rule(rate=10, limit=1), fake_clock, ignore_overheat=True)


def make_selector(store, cooldowns, clock, sleeper, **kwargs) -> PrioritySelector:
    return PrioritySelector(store, cooldowns, clock, sleeper, **kwargs)


class TestPrioritySelector:
    """Tests for the suspending selection loop."""

    @pytest.mark.asyncio
    async def test_returns_none_when_nothing_pending(
        self, store, quiet_cooldowns, fake_clock, sleeper
    ):
        selector = make_selector(store, quiet_cooldowns, fake_clock, sleeper)

        assert await selector.select_next() is None
        assert sleeper.deadlines == []

    @pytest.mark.asyncio
    async def test_returns_eligible_partition_immediately(
        self, store, quiet_cooldowns, fake_clock, sleeper
    ):
        partition = store.enqueue("users", "urgent", WorkItem(Mock(), Mock()))
        selector = make_selector(store, quiet_cooldowns, fake_clock, sleeper)

        assert await selector.select_next() is partition
        assert sleeper.deadlines == []

    @pytest.mark.asyncio
    async def test_waits_for_soonest_cooldown(
        self, store, quiet_cooldowns, fake_clock, sleeper
    ):
        partition = store.enqueue("users", "urgent", WorkItem(Mock(), Mock()))
        partition.cooldown_until = fake_clock.now + 0.5
        waits = Mock()
        selector = make_selector(
            store, quiet_cooldowns, fake_clock, sleeper, on_wait=waits
        )

        selected = await selector.select_next()

        assert selected is partition
        assert sleeper.deadlines == [pytest.approx(1000.5)]
        waits.assert_called_once_with("cooldown")

    @pytest.mark.asyncio
    async def test_waits_for_overheat(self, store, cooldowns, fake_clock, sleeper):
        dispatched = store.enqueue("a", "common", WorkItem(Mock(), Mock()))
        waiting = store.enqueue("b", "common", WorkItem(Mock(), Mock()))
        cooldowns.mark_dispatched(dispatched)
        store.pop(dispatched)
        waits = Mock()
        selector = make_selector(store, cooldowns, fake_clock, sleeper, on_wait=waits)

        selected = await selector.select_next()

        assert selected is waiting
        assert sleeper.deadlines == [pytest.approx(1000.1)]
        waits.assert_called_once_with("overheat")

    @pytest.mark.asyncio
    async def test_purges_idle_partitions(
        self, store, quiet_cooldowns, fake_clock, sleeper
    ):
        idle = store.get_or_create("idle", "common")
        idle.cooldown_until = fake_clock.now - 1
        selector = make_selector(store, quiet_cooldowns, fake_clock, sleeper)

        assert await selector.select_next() is None
        assert "idle" not in store

    @pytest.mark.asyncio
    async def test_bounded_backoff_when_nothing_qualifies(
        self, quiet_cooldowns, fake_clock, sleeper
    ):
        store = MagicMock()
        store.__iter__.return_value = iter([])
        store.purge_idle = Mock(return_value=0)
        store.total_pending = Mock(side_effect=[1, 1, 1, 1, 1, 0])
        selector = make_selector(
            store,
            quiet_cooldowns,
            fake_clock,
            sleeper,
            initial_backoff=0.1,
            max_backoff=0.3,
        )

        assert await selector.select_next() is None

        delays = [
            later - earlier
            for earlier, later in zip([1000.0, *sleeper.deadlines], sleeper.deadlines)
        ]
        assert delays == [
            pytest.approx(0.1),
            pytest.approx(0.2),
            pytest.approx(0.3),
            pytest.approx(0.3),
            pytest.approx(0.3),
        ]
