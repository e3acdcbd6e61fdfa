"""
Rule Set for apiguard.

A RuleSet is the validated, deduplicated and immutable collection of rules
for one analysis run. It is built once from configuration and then shared,
read-only, by every matcher in the run.

Design Principles:
    - Exact matching only: lookup is dict equality on (kind, path)
    - Fail at load time: duplicate keys are rejected by build()
    - Immutable: no add/remove after build()

There is no prefix matching: a rule for ``std::io`` does not match
``std::io::stdout``.
"""

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any

from apiguard.errors import DuplicateRuleError
from apiguard.schema import KIND_CATEGORIES, Rule, RuleKind, coerce_kind

logger = logging.getLogger(__name__)


class RuleSet:
    """
    Immutable index of rules keyed by (kind, path).

    Usage:
        rule_set = RuleSet.build(rules)
        rule = rule_set.lookup(RuleKind.MACRO, "std::print")
        if rule is not None:
            print(rule.reason)

    Attributes:
        rules: All rules, in the order they were given to build()
    """

    __slots__ = ("_rules", "_index")

    def __init__(self, rules: tuple[Rule, ...], index: dict[tuple[RuleKind, str], Rule]) -> None:
        """
        Store a prebuilt index. Use RuleSet.build() instead of calling this.

        Args:
            rules: Rules in input order
            index: Mapping from (kind, path) to rule
        """
        object.__setattr__(self, "_rules", rules)
        object.__setattr__(self, "_index", MappingProxyType(index))

    def __setattr__(self, name: str, value: Any) -> None:
        msg = "RuleSet is immutable"
        raise AttributeError(msg)

    def __delattr__(self, name: str) -> None:
        msg = "RuleSet is immutable"
        raise AttributeError(msg)

    @classmethod
    def build(cls, rules: Iterable[Rule]) -> "RuleSet":
        """
        Build a rule set from rules, rejecting duplicate (kind, path) keys.

        Args:
            rules: Rules to index

        Returns:
            A populated, immutable RuleSet

        Raises:
            DuplicateRuleError: If two rules share the same (kind, path)
        """
        ordered: list[Rule] = []
        index: dict[tuple[RuleKind, str], Rule] = {}
        for rule in rules:
            if rule.key in index:
                raise DuplicateRuleError(
                    category=KIND_CATEGORIES[rule.kind],
                    kind=rule.kind.value,
                    path=rule.path,
                )
            index[rule.key] = rule
            ordered.append(rule)

        logger.debug("Built rule set with %d rules", len(ordered))
        return cls(tuple(ordered), index)

    @classmethod
    def empty(cls) -> "RuleSet":
        """Return a rule set with no rules (every lookup misses)."""
        return cls((), {})

    @property
    def rules(self) -> tuple[Rule, ...]:
        """All rules in input order."""
        return self._rules

    def lookup(self, kind: RuleKind | str, path: str) -> Rule | None:
        """
        Find the rule for an exact (kind, path) pair.

        Matching is case-sensitive and exact. A kind that is not a RuleKind
        never matches.

        Args:
            kind: Kind of the referenced symbol
            path: Canonical path of the referenced symbol

        Returns:
            The matching rule, or None
        """
        known = coerce_kind(kind)
        if known is None:
            return None
        return self._index.get((known, path))

    def rules_of(self, kind: RuleKind) -> tuple[Rule, ...]:
        """Return the rules of one kind, in input order."""
        return tuple(rule for rule in self._rules if rule.kind == kind)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        kind, path = key
        return self.lookup(kind, path) is not None

    def __repr__(self) -> str:
        counts = ", ".join(f"{kind.value}={len(self.rules_of(kind))}" for kind in RuleKind)
        return f"RuleSet({counts})"
