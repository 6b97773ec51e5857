# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Partition store.

Keyed collection of independent FIFO partitions. Partitions are created
lazily on the first unseen key and bound to a rule at that moment.
"""

import logging
from collections.abc import Callable, Iterator

from ...exceptions import SchedulerInvariantError
from ...types.partition import Partition, WorkItem
from .registry import RuleRegistry

logger = logging.getLogger(__name__)


class PartitionStore:
    """
    Partitions keyed by caller-supplied key, in creation order.

    Iteration order is insertion order of the underlying dict, which makes
    priority tie-breaks deterministic.
    """

    def __init__(self, registry: RuleRegistry, clock: Callable[[], float]) -> None:
        self._registry = registry
        self._clock = clock
        self._partitions: dict[str, Partition] = {}

    def __len__(self) -> int:
        return len(self._partitions)

    def __contains__(self, key: object) -> bool:
        return key in self._partitions

    def __iter__(self) -> Iterator[Partition]:
        return iter(list(self._partitions.values()))

    def get(self, key: str) -> Partition | None:
        return self._partitions.get(key)

    def keys(self) -> list[str]:
        return list(self._partitions)

    def get_or_create(self, key: str, rule_name: str) -> Partition:
        """
        Return the partition for ``key``, creating it if absent.

        A new partition is immediately eligible and bound to the rule
        resolved from ``rule_name``. An existing partition keeps its
        original binding.
        """
        partition = self._partitions.get(key)
        if partition is not None:
            return partition

        partition = Partition(
            key=key,
            rule=self._registry.resolve(rule_name),
            rule_name=rule_name,
            cooldown_until=self._clock(),
        )
        self._partitions[key] = partition
        logger.debug(
            f"Created partition {partition.partition_id} key={key!r} rule={rule_name!r}"
        )
        return partition

    def enqueue(self, key: str, rule_name: str, item: WorkItem) -> Partition:
        """Append ``item`` to the tail of the partition for ``key``."""
        partition = self.get_or_create(key, rule_name)
        partition.items.append(item)
        logger.debug(
            f"Enqueued item {item.item_id} in partition {partition.partition_id} "
            f"(depth={len(partition)})"
        )
        return partition

    def pop(self, partition: Partition) -> WorkItem:
        """Remove and return the head item of ``partition``."""
        if not partition.items:
            raise SchedulerInvariantError(
                f"Cannot dispatch from empty partition {partition.partition_id}",
                partition_key=partition.key,
            )
        return partition.items.popleft()

    def remove(self, key: str) -> None:
        """Delete the partition for ``key``. Only empty partitions may go."""
        partition = self._partitions.get(key)
        if partition is None:
            return
        if partition.items:
            raise SchedulerInvariantError(
                f"Cannot remove non-empty partition {partition.partition_id}",
                partition_key=key,
            )
        del self._partitions[key]
        logger.debug(f"Removed partition {partition.partition_id} key={key!r}")

    def purge_idle(self, now: float) -> int:
        """Remove partitions that are empty and no longer cooling."""
        idle = [
            key
            for key, partition in self._partitions.items()
            if partition.is_empty and partition.is_cool(now)
        ]
        for key in idle:
            self.remove(key)
        return len(idle)

    def total_pending(self) -> int:
        """Number of queued items across all partitions."""
        return sum(len(partition) for partition in self._partitions.values())

    def clear(self) -> int:
        """
        Drop every partition and pending item.

        Completion sinks of dropped items are not invoked.

        Returns:
            Number of items dropped
        """
        dropped = self.total_pending()
        self._partitions.clear()
        return dropped


__all__ = ["PartitionStore"]
