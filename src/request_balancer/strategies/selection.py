# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Priority selection for the dispatch loop.

The selector decides which partition dispatches next. A partition qualifies
when it holds work and its cooldown has elapsed; among qualifying partitions
the lowest rule priority wins, and equal priorities resolve to the first
partition in store order.

When nothing qualifies, the selector suspends until the soonest cooldown
deadline (or until the global overheat window clears) and scans again. The
suspension is an awaited sleep inside a loop, so long chains of waits never
grow the call stack.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ..types.partition import Partition, Selection

if TYPE_CHECKING:
    from ..scheduler.state.cooldown import CooldownTracker
    from ..scheduler.state.store import PartitionStore

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_BACKOFF = 0.01
DEFAULT_MAX_BACKOFF = 0.5


def scan_partitions(partitions: list[Partition], now: float) -> Selection:
    """
    Single pass over ``partitions`` at time ``now``.

    Tracks the lowest-priority-number partition that is both non-empty and
    eligible, and the soonest future cooldown deadline among non-empty
    partitions. Empty partitions never hold the loop open.
    """
    selected: Partition | None = None
    next_eligible_at: float | None = None

    for partition in partitions:
        if partition.is_cool(now):
            if partition.items and (
                selected is None or partition.rule.priority < selected.rule.priority
            ):
                selected = partition
        elif partition.items and (
            next_eligible_at is None or partition.cooldown_until < next_eligible_at
        ):
            next_eligible_at = partition.cooldown_until

    return Selection(partition=selected, next_eligible_at=next_eligible_at)


class PrioritySelector:
    """
    Picks the most eligible partition, waiting for one if necessary.

    ``sleep_until`` suspends the caller until a monotonic deadline. It may
    return early (for example when new work is submitted); the selector
    always rescans after waking.
    """

    def __init__(
        self,
        store: "PartitionStore",
        cooldowns: "CooldownTracker",
        clock: Callable[[], float],
        sleep_until: Callable[[float], Awaitable[None]],
        initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        on_wait: Callable[[str], None] | None = None,
    ) -> None:
        self._store = store
        self._cooldowns = cooldowns
        self._clock = clock
        self._sleep_until = sleep_until
        self._initial_backoff = initial_backoff
        self._max_backoff = max_backoff
        self._on_wait = on_wait

    def scan(self, now: float) -> Selection:
        return scan_partitions(list(self._store), now)

    async def select_next(self) -> Partition | None:
        """
        Return the next partition to dispatch from.

        Returns:
            The selected partition, or None once no work is pending anywhere
        """
        backoff = self._initial_backoff

        while True:
            now = self._clock()
            self._store.purge_idle(now)
            selection = self.scan(now)

            if selection.partition is None and selection.next_eligible_at is not None:
                logger.debug(
                    f"Waiting {selection.next_eligible_at - now:.3f}s for partition cooldown"
                )
                self._notify("cooldown")
                await self._sleep_until(selection.next_eligible_at)
                continue

            if self._cooldowns.is_overheated(now):
                logger.debug(
                    f"Overall balancer overheated, waiting "
                    f"{self._cooldowns.overheat_until - now:.3f}s"
                )
                self._notify("overheat")
                await self._sleep_until(self._cooldowns.overheat_until)
                continue

            if selection.partition is not None:
                partition = selection.partition
                logger.debug(
                    f"Selected partition {partition.partition_id} "
                    f"(priority={partition.rule.priority})"
                )
                return partition

            if self._store.total_pending() == 0:
                logger.debug("No pending work left, stopping dispatch loop")
                return None

            # Work is pending yet nothing is eligible or cooling.
            logger.warning(
                f"Pending work with no eligible partition, re-polling in {backoff:.3f}s"
            )
            await self._sleep_until(now + backoff)
            backoff = min(backoff * 2, self._max_backoff)

    def _notify(self, reason: str) -> None:
        if self._on_wait is not None:
            self._on_wait(reason)


__all__ = [
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_BACKOFF",
    "PrioritySelector",
    "scan_partitions",
]
