"""
apiguard - Disallowed-API policy engine.

apiguard checks resolved symbol usages against a denylist of macros,
methods and types, and reports every use of a disallowed symbol together
with the reason it is disallowed.

It provides:
- A clippy.toml-compatible denylist format (TOML, YAML or JSON)
- Exact (kind, path) matching over a stream of usage facts
- Deterministic, location-ordered reports and a CI-friendly exit status

Example usage:
    $ apiguard check facts.jsonl --config clippy.toml
    $ apiguard rules --config clippy.toml
"""

__version__ = "0.1.0"
__author__ = "apiguard Contributors"

from apiguard.engine import AnalysisResult, Analyzer, Matcher, analyze, exit_status
from apiguard.policy import RuleSet, load_policy, load_policy_from_string
from apiguard.schema import Location, RenderedViolation, Rule, RuleKind, UsageEvent, Violation

__all__ = [
    "__version__",
    "__author__",
    "AnalysisResult",
    "Analyzer",
    "Location",
    "Matcher",
    "RenderedViolation",
    "Rule",
    "RuleKind",
    "RuleSet",
    "UsageEvent",
    "Violation",
    "analyze",
    "exit_status",
    "load_policy",
    "load_policy_from_string",
]
