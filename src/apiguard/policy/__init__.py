"""
Policy module for apiguard.

The policy is a denylist: a set of (kind, path) pairs that must not be
referenced anywhere in the analysed code, each paired with a reason.

Key concepts:
    - Rule: One denylist entry (see apiguard.schema)
    - RuleSet: Immutable, deduplicated index of rules for one run
    - Loader: Turns TOML/YAML/JSON config into a RuleSet

Only explicitly listed (kind, path) pairs are enforced. Listing
``std::println`` does not also deny ``std::print``.
"""

from apiguard.policy.loader import (
    find_config,
    load_policy,
    load_policy_from_string,
    resolve_config,
    rules_from_mapping,
)
from apiguard.policy.ruleset import RuleSet

__all__ = [
    "RuleSet",
    "find_config",
    "load_policy",
    "load_policy_from_string",
    "resolve_config",
    "rules_from_mapping",
]
