# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Priority-aware, rate-limited request balancer.

The balancer queues caller operations into per-key FIFO partitions and
starts them one at a time, honouring each partition's rule window, rule
priorities across partitions and an optional global throughput cap.

Dispatch loop:
    A single dispatch task per balancer is started by the first submission
    while idle. Each iteration asks the selector for the next partition
    (possibly suspending until a cooldown or the overheat window clears),
    marks it cooling, pops its head item and starts the item's operation as
    a separate task. The loop moves on without awaiting the operation, so
    slow operations overlap while rule windows still gate every start. The
    task exits as soon as no work is pending anywhere.

Concurrency:
    All state is owned by one event loop. The balancer is not thread-safe;
    call it from the loop that runs it.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from typing_extensions import Self

from ..exceptions import BalancerClosedError
from ..observability.collector import MetricsCollector
from ..observability.constants import (
    COOLDOWN_WAITS_TOTAL,
    DISPATCH_LOOPS_STARTED_TOTAL,
    IN_FLIGHT_ITEMS,
    ITEMS_COMPLETED_TOTAL,
    ITEMS_DISPATCHED_TOTAL,
    ITEMS_DROPPED_TOTAL,
    ITEMS_FAILED_TOTAL,
    ITEMS_RETRIED_TOTAL,
    ITEMS_SUBMITTED_TOTAL,
    OPERATION_DURATION_SECONDS,
    OVERHEAT_WAITS_TOTAL,
    PENDING_ITEMS,
)
from ..protocols.operation import CompletionCallback, Operation
from ..strategies.selection import PrioritySelector
from ..types.partition import Partition, WorkItem
from ..types.rule import Rule
from .config import BalancerConfig
from .state import CooldownTracker, PartitionStore, RuleRegistry

logger = logging.getLogger(__name__)


class Balancer:
    """
    Rate-limited scheduler for asynchronous operations.

    Example:
        >>> config = BalancerConfig(rules={"api": Rule(rate=5, limit=1, priority=1)})
        >>> async with Balancer(config) as balancer:
        ...     result = await balancer.request(fetch_user, key="user:42", rule="api")

    Each instance owns its own state; separate balancers never share
    partitions, cooldowns or metrics.
    """

    def __init__(
        self,
        config: BalancerConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the balancer.

        Args:
            config: Balancer configuration (defaults apply when omitted)
            clock: Monotonic time source in seconds
            metrics_collector: Collector to record into. One is created when
                ``config.metrics_enabled`` is set and none is given.
        """
        self.config = config if config is not None else BalancerConfig()
        self._clock = clock

        self._registry = RuleRegistry(self.config.copy_rules(), self.config.default.rule)
        self._store = PartitionStore(self._registry, clock)
        self._cooldowns = CooldownTracker(
            self.config.overall,
            clock,
            ignore_overheat=self.config.ignore_overall_overheat,
        )
        self._selector = PrioritySelector(
            self._store,
            self._cooldowns,
            clock,
            self._sleep_until,
            on_wait=self._record_wait,
        )

        self._loop_task: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()
        self._retry_tasks: dict[asyncio.Task[None], WorkItem] = {}
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

        if metrics_collector is not None:
            self.metrics_collector: MetricsCollector | None = metrics_collector
        elif self.config.metrics_enabled:
            self.metrics_collector = MetricsCollector()
        else:
            self.metrics_collector = None

        logger.debug(
            f"Balancer created with rules {self._registry.names()} "
            f"(default rule={self.config.default.rule!r}, key={self.config.default.key!r})"
        )

    # === Submission ===

    def submit(
        self,
        operation: Operation,
        key: str | None = None,
        rule: str | None = None,
    ) -> "asyncio.Future[Any]":
        """
        Queue ``operation`` and return a future for its outcome.

        Must be called from within the running event loop. The future is
        settled exactly once with the operation's value or error, unless
        the item is dropped by ``clear()``.

        Args:
            operation: Callable invoked as ``operation(retry)``
            key: Partition key (configured default when None)
            rule: Rule name (configured default when None). Unknown names
                become permanent aliases of the default rule.

        Raises:
            BalancerClosedError: If the balancer has been closed
            RuntimeError: If no event loop is running
        """
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

        def settle(error: BaseException | None, value: Any = None) -> None:
            if future.done():
                return
            if isinstance(error, asyncio.CancelledError):
                future.cancel()
            elif error is not None:
                future.set_exception(error)
            else:
                future.set_result(value)

        self.add(operation, settle, key, rule)
        return future

    async def request(
        self,
        operation: Operation,
        key: str | None = None,
        rule: str | None = None,
    ) -> Any:
        """Submit ``operation`` and wait for its result."""
        return await self.submit(operation, key, rule)

    def add(
        self,
        operation: Operation,
        callback: CompletionCallback,
        key: str | None = None,
        rule: str | None = None,
    ) -> WorkItem:
        """
        Callback-style submission.

        ``callback(error, value)`` is invoked exactly once when the item
        settles. Returns the queued work item.
        """
        asyncio.get_running_loop()  # raises RuntimeError outside a running loop
        if self._closed:
            raise BalancerClosedError()

        key = self.config.default.key if key is None else key
        rule = self.config.default.rule if rule is None else rule
        logger.debug(f"Adding request key={key!r} rule={rule!r}")

        item = WorkItem(operation=operation, callback=callback)
        self._submit_item(item, key, rule)
        return item

    def _submit_item(self, item: WorkItem, key: str, rule_name: str) -> None:
        partition = self._store.enqueue(key, rule_name, item)
        self._inc(ITEMS_SUBMITTED_TOTAL, partition.rule_name)
        self._set_pending_gauge()

        self._idle.clear()
        self._wakeup.set()
        if self._loop_task is None:
            self._start_loop()

    # === Introspection ===

    @property
    def pending_count(self) -> int:
        """Items queued but not yet dispatched. Executing items are excluded."""
        return self._store.total_pending()

    @property
    def is_overheated(self) -> bool:
        """True during an active global overheat window."""
        return self._cooldowns.is_overheated()

    @property
    def in_flight_count(self) -> int:
        """Operations started but not yet settled."""
        return len(self._in_flight)

    @property
    def is_pending(self) -> bool:
        """Whether the dispatch loop is active."""
        return self._loop_task is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def partitions(self) -> tuple[str, ...]:
        """Keys of the partitions currently held."""
        return tuple(self._store.keys())

    @property
    def rules(self) -> Mapping[str, Rule]:
        """
        Read-only view of this balancer's rules, aliases included.

        Each balancer owns a copy of its configuration's rules, so aliases
        and redefinitions never leak into other balancers sharing the config.
        """
        return self._registry.view()

    def get_partition(self, key: str) -> Partition | None:
        return self._store.get(key)

    def get_rule(self, name: str) -> Rule:
        """
        Resolve a rule by name.

        Like submission, an unknown name is registered as an alias of the
        default rule.
        """
        return self._registry.resolve(name)

    def define_rule(self, name: str, rule: Rule) -> Rule:
        """
        Define or redefine a rule.

        Redefinition updates the existing rule in place, so partitions
        already bound to it (and aliases of it) follow the new values.
        """
        return self._registry.define(name, rule)

    def get_metrics(self) -> dict[str, Any]:
        """Snapshot of balancer state, plus collector metrics when enabled."""
        metrics: dict[str, Any] = {
            "pending": self.pending_count,
            "in_flight": self.in_flight_count,
            "scheduled_retries": len(self._retry_tasks),
            "partitions": len(self._store),
            "rules": len(self._registry),
            "dispatch_loop_active": self.is_pending,
            "overheated": self.is_overheated,
        }
        if self.metrics_collector is not None:
            metrics["collector"] = self.metrics_collector.get_metrics()
        return metrics

    # === Reset and lifecycle ===

    def clear(self) -> None:
        """
        Drop every pending partition and item.

        Dropped items are never settled: futures returned for them stay
        pending forever. Operations already executing and retries already
        scheduled are unaffected.
        """
        dropped = self._store.clear()
        logger.debug(f"Cleared balancer, dropped {dropped} pending items")
        if self.metrics_collector is not None and dropped:
            self.metrics_collector.inc_counter(ITEMS_DROPPED_TOTAL, dropped)
        self._set_pending_gauge()
        self._wakeup.set()
        self._update_idle()

    async def join(self) -> None:
        """Wait until nothing is pending, executing or scheduled for retry."""
        while not self._idle.is_set():
            await self._idle.wait()

    async def aclose(self) -> None:
        """
        Close the balancer.

        Stops the dispatch loop and cancels scheduled retries. Items still
        queued, and items waiting for a retry, are settled with
        BalancerClosedError. Operations already executing are awaited, never
        cancelled, and settle normally.
        """
        if self._closed:
            return
        self._closed = True

        if self._loop_task is not None:
            task = self._loop_task
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        retry_items = list(self._retry_tasks.items())
        for task, _ in retry_items:
            task.cancel()
        if retry_items:
            await asyncio.gather(*(task for task, _ in retry_items), return_exceptions=True)

        stranded = [item for partition in self._store for item in partition.items]
        stranded.extend(item for _, item in retry_items)
        self._store.clear()
        for item in stranded:
            self._complete(item, BalancerClosedError(), None)

        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

        self._set_pending_gauge()
        self._update_idle()
        logger.info(f"{self.__class__.__name__} closed ({len(stranded)} items abandoned)")

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()

    # === Dispatch loop ===

    def _start_loop(self) -> None:
        logger.debug("Starting dispatch loop")
        self._inc(DISPATCH_LOOPS_STARTED_TOTAL)
        self._loop_task = asyncio.get_running_loop().create_task(self._dispatch_loop())

    async def _dispatch_loop(self) -> None:
        try:
            while True:
                partition = await self._selector.select_next()
                if partition is None:
                    break
                self._dispatch(partition)
                await asyncio.sleep(0)
        except asyncio.CancelledError:
            logger.debug("Dispatch loop cancelled")
            raise
        except Exception:
            # Queued items stay put; the next submission restarts the loop.
            logger.exception("Dispatch loop failed")
        finally:
            self._loop_task = None
            self._update_idle()

    def _dispatch(self, partition: Partition) -> None:
        now = self._clock()
        self._cooldowns.mark_dispatched(partition, now)
        item = self._store.pop(partition)
        item.attempts += 1

        logger.debug(
            f"Dispatching item {item.item_id} from partition {partition.partition_id} "
            f"(attempt {item.attempts})"
        )
        self._inc(ITEMS_DISPATCHED_TOTAL, partition.rule_name)
        self._set_pending_gauge()

        task = asyncio.get_running_loop().create_task(self._execute(partition, item))
        self._in_flight.add(task)
        task.add_done_callback(self._on_execution_done)
        self._set_gauge(IN_FLIGHT_ITEMS, len(self._in_flight))

    def _on_execution_done(self, task: "asyncio.Task[None]") -> None:
        self._in_flight.discard(task)
        self._set_gauge(IN_FLIGHT_ITEMS, len(self._in_flight))
        self._update_idle()

    async def _execute(self, partition: Partition, item: WorkItem) -> None:
        retry_requested = False
        retry_delay = self.config.retry_time

        def retry(delay: float | None = None) -> None:
            nonlocal retry_requested, retry_delay
            retry_requested = True
            retry_delay = self.config.retry_time if delay is None else delay

        rule_name = partition.rule_name
        started = self._clock()
        try:
            result = item.operation(retry)
            if inspect.isawaitable(result):
                result = await result
        except asyncio.CancelledError as error:
            logger.debug(f"Item {item.item_id} operation cancelled")
            self._complete(item, error, None)
            raise
        except Exception as error:
            logger.debug(f"Item {item.item_id} failed: {error!r}")
            self._inc(ITEMS_FAILED_TOTAL, rule_name)
            self._complete(item, error, None)
            return
        finally:
            self._observe_duration(rule_name, self._clock() - started)

        if retry_requested:
            if self._closed:
                logger.debug(f"Item {item.item_id} asked to retry after close, failing it")
                self._complete(item, BalancerClosedError(), None)
                return
            self._schedule_retry(partition, item, retry_delay)
            return

        logger.debug(f"Item {item.item_id} completed")
        self._inc(ITEMS_COMPLETED_TOTAL, rule_name)
        self._complete(item, None, result)

    def _complete(self, item: WorkItem, error: BaseException | None, value: Any) -> None:
        try:
            item.callback(error, value)
        except Exception:
            logger.exception(f"Completion callback for item {item.item_id} raised")

    # === Retries ===

    def _schedule_retry(self, partition: Partition, item: WorkItem, delay: float) -> None:
        logger.debug(
            f"Retrying item {item.item_id} of partition {partition.partition_id} in {delay}s"
        )
        self._inc(ITEMS_RETRIED_TOTAL, partition.rule_name)
        task = asyncio.get_running_loop().create_task(
            self._retry_later(item, partition.key, partition.rule_name, delay)
        )
        self._retry_tasks[task] = item
        task.add_done_callback(self._on_retry_done)
        self._idle.clear()

    async def _retry_later(self, item: WorkItem, key: str, rule_name: str, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._closed:
            self._complete(item, BalancerClosedError(), None)
            return
        self._submit_item(item, key, rule_name)

    def _on_retry_done(self, task: "asyncio.Task[None]") -> None:
        self._retry_tasks.pop(task, None)
        self._update_idle()

    # === Helpers ===

    async def _sleep_until(self, deadline: float) -> None:
        """Sleep until ``deadline`` or until new work is submitted."""
        self._wakeup.clear()
        delay = deadline - self._clock()
        if delay <= 0:
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def _update_idle(self) -> None:
        if self._store.total_pending() or self._in_flight or self._retry_tasks:
            self._idle.clear()
        else:
            self._idle.set()

    def _record_wait(self, reason: str) -> None:
        self._inc(OVERHEAT_WAITS_TOTAL if reason == "overheat" else COOLDOWN_WAITS_TOTAL)

    def _inc(self, name: str, rule_name: str | None = None) -> None:
        if self.metrics_collector is None:
            return
        labels = {"rule": rule_name} if rule_name is not None else None
        self.metrics_collector.inc_counter(name, labels=labels)

    def _set_gauge(self, name: str, value: float) -> None:
        if self.metrics_collector is not None:
            self.metrics_collector.set_gauge(name, value)

    def _set_pending_gauge(self) -> None:
        self._set_gauge(PENDING_ITEMS, self._store.total_pending())

    def _observe_duration(self, rule_name: str, duration: float) -> None:
        if self.metrics_collector is not None:
            self.metrics_collector.observe_histogram(
                OPERATION_DURATION_SECONDS, duration, labels={"rule": rule_name}
            )


# Factory function accepting either a config object or a plain mapping
def create_balancer(
    config: BalancerConfig | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> Balancer:
    """
    Create a Balancer from a config object or a plain mapping.

    Args:
        config: BalancerConfig, a mapping accepted by
            BalancerConfig.from_mapping, or None for defaults
        **kwargs: Additional arguments passed to the Balancer constructor

    Raises:
        ConfigurationError: If the mapping is invalid
    """
    if config is not None and not isinstance(config, BalancerConfig):
        config = BalancerConfig.from_mapping(config)
    return Balancer(config, **kwargs)


__all__ = ["Balancer", "create_balancer"]
