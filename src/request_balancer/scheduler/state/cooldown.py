# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Cooldown bookkeeping.

Tracks when each partition, and the balancer as a whole, becomes eligible
for dispatch again. All timestamps are monotonic seconds.
"""

import logging
from collections.abc import Callable

from ...types.partition import Partition
from ...types.rule import Rule

logger = logging.getLogger(__name__)


class CooldownTracker:
    """
    Per-partition cooldowns plus the global overheat window.

    With ``ignore_overheat`` set, the global window is never advanced and
    never reported as active.
    """

    def __init__(
        self,
        overall: Rule,
        clock: Callable[[], float],
        ignore_overheat: bool = True,
    ) -> None:
        self._overall = overall
        self._clock = clock
        self._ignore_overheat = ignore_overheat
        self._overheat_until = 0.0

    @property
    def ignore_overheat(self) -> bool:
        return self._ignore_overheat

    @property
    def overheat_until(self) -> float:
        return self._overheat_until

    def mark_dispatched(self, partition: Partition, now: float | None = None) -> float:
        """
        Record a dispatch from ``partition``.

        Returns:
            The partition's new cooldown deadline
        """
        if now is None:
            now = self._clock()

        partition.cooldown_until = now + partition.rule.window
        logger.debug(
            f"Cooling partition {partition.partition_id} for {partition.rule.window:.3f}s"
        )

        if not self._ignore_overheat:
            self._overheat_until = now + self._overall.window
            logger.debug(f"Heating overall balancer for {self._overall.window:.3f}s")

        return partition.cooldown_until

    def is_overheated(self, now: float | None = None) -> bool:
        """Whether the global overheat window is active at ``now``."""
        if self._ignore_overheat:
            return False
        if now is None:
            now = self._clock()
        return self._overheat_until > now

    def reset(self) -> None:
        self._overheat_until = 0.0


__all__ = ["CooldownTracker"]
