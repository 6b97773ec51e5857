# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocols for caller-supplied operations and their completion sinks."""

from collections.abc import Awaitable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class RetrySignal(Protocol):
    """
    Callable handed to every operation while it executes.

    Calling it asks the balancer to discard the operation's eventual return
    value and resubmit the work after ``delay`` seconds. Only ``None`` (or
    omitting the argument) selects the configured retry time; ``retry(0)``
    resubmits immediately. It does not interrupt the running operation.
    A failure raised by the operation always wins over a retry request.
    """

    def __call__(self, delay: float | None = None) -> None: ...


@runtime_checkable
class Operation(Protocol):
    """
    Unit of work submitted to the balancer.

    Usually an ``async def`` taking the retry signal. Plain callables that
    return an awaitable, or a value directly, are accepted as well.
    """

    def __call__(self, retry: RetrySignal) -> Awaitable[Any] | Any: ...


@runtime_checkable
class CompletionCallback(Protocol):
    """
    Completion sink for callback-style submission.

    Invoked exactly once per settled item, as ``callback(error, None)`` on
    failure or ``callback(None, value)`` on success.
    """

    def __call__(self, error: BaseException | None, value: Any = None) -> None: ...
