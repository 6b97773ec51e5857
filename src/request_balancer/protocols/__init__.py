# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for balancer collaborators.

Available protocols:
- Operation: Interface for caller-supplied units of work
- RetrySignal: Interface of the retry callback passed to operations
- CompletionCallback: Interface for callback-style completion sinks
"""

from .operation import CompletionCallback, Operation, RetrySignal

__all__ = [
    "CompletionCallback",
    "Operation",
    "RetrySignal",
]
