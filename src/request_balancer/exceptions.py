# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the request balancer library.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BalancerError, making it easy to catch
all balancer-related exceptions with a single except clause.

Failures raised by submitted operations are never wrapped: they reach the
submitter's future exactly as the operation raised them.
"""


class BalancerError(Exception):
    """Base exception for all request balancer errors.

    Example:
        try:
            balancer = Balancer(config)
        except BalancerError as e:
            logger.error(f"Balancer error: {e}")
    """

    pass


class ConfigurationError(BalancerError):
    """Raised when configuration is invalid.

    Common causes include:
    - Non-positive rule rate or limit
    - A default rule name that is not defined
    - A negative retry time
    - Unknown keys in a mapping passed to BalancerConfig.from_mapping

    Attributes:
        field: Name of the offending configuration field, if known.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class BalancerClosedError(BalancerError):
    """Raised when work is submitted to a balancer that has been closed.

    Example:
        await balancer.aclose()
        try:
            balancer.submit(operation)
        except BalancerClosedError:
            # Create a new balancer instead
            ...
    """

    def __init__(self, message: str = "Balancer is closed"):
        super().__init__(message)


class SchedulerInvariantError(BalancerError):
    """Raised when an internal scheduling invariant is violated.

    This is a programming error inside the library (for example, a dispatch
    from a partition that holds no work). It is never produced by correct use
    of the public API.

    Attributes:
        partition_key: Key of the partition involved, if any.
    """

    def __init__(self, message: str, partition_key: str | None = None):
        super().__init__(message)
        self.partition_key = partition_key
