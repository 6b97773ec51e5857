# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rule registry.

Holds the named rules of one balancer. Unknown names are not rejected:
the first lookup registers them as a permanent alias of the default rule.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from ...types.rule import Rule

logger = logging.getLogger(__name__)


class RuleRegistry:
    """
    Named rules plus a default.

    The registry mutates the rules mapping it is given, so aliases created
    by ``resolve`` and rules added by ``define`` are visible to whoever
    holds that mapping. Balancers hand it a private copy.
    """

    def __init__(self, rules: dict[str, Rule], default_name: str) -> None:
        if default_name not in rules:
            raise KeyError(default_name)
        self._rules = rules
        self._default_name = default_name

    @property
    def default_name(self) -> str:
        return self._default_name

    @property
    def default(self) -> Rule:
        return self._rules[self._default_name]

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def names(self) -> list[str]:
        return list(self._rules)

    def view(self) -> Mapping[str, Rule]:
        """Read-only live view of the registered names, aliases included."""
        return MappingProxyType(self._rules)

    def get(self, name: str) -> Rule | None:
        """Return the rule registered under ``name`` without aliasing."""
        return self._rules.get(name)

    def resolve(self, name: str) -> Rule:
        """
        Return the rule registered under ``name``.

        An unknown name is registered as an alias of the default rule (the
        same object, not a copy) and that rule is returned. The alias is
        permanent for the lifetime of the registry.
        """
        rule = self._rules.get(name)
        if rule is not None:
            return rule

        rule = self.default
        self._rules[name] = rule
        logger.debug(f"Registered unknown rule {name!r} as alias of {self._default_name!r}")
        return rule

    def define(self, name: str, rule: Rule) -> Rule:
        """
        Define or redefine a rule.

        Redefining updates the existing rule object in place, so partitions
        and aliases already bound to it pick up the new values immediately.

        Returns:
            The rule object now registered under ``name``
        """
        existing = self._rules.get(name)
        if existing is None:
            self._rules[name] = rule
            logger.debug(f"Defined rule {name!r}: {rule}")
            return rule

        existing.update_from(rule)
        logger.debug(f"Redefined rule {name!r}: {existing}")
        return existing


__all__ = ["RuleRegistry"]
