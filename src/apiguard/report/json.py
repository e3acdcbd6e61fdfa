"""
JSON report generator for apiguard.

Generates structured JSON output for CI tooling and diffing.

Design Principles:
    - Deterministic: no timestamps, keys in fixed order, so identical runs
      produce byte-identical reports
    - Consistent schema: Same structure across all runs
    - Human-readable keys: Use descriptive snake_case names
"""

import json
from typing import TYPE_CHECKING, Any

from apiguard.policy import RuleSet
from apiguard.schema import KIND_CATEGORIES, RuleKind

if TYPE_CHECKING:
    from apiguard.engine import AnalysisResult

REPORT_VERSION = "1.0"


def build_report_dict(result: "AnalysisResult", include_timing: bool = False) -> dict[str, Any]:
    """
    Build a report dictionary for an analysis run.

    Args:
        result: The analysis result to report on
        include_timing: Add duration_ms to the statistics (breaks byte-identical output)

    Returns:
        Dictionary with the full report
    """
    statistics: dict[str, Any] = {
        "rules_loaded": result.rules_loaded,
        "units_scanned": result.units_scanned,
        "events_seen": result.events_seen,
        "violations": len(result.violations),
        "by_kind": {
            kind.value: sum(1 for item in result.violations if item.kind == kind)
            for kind in RuleKind
        },
    }
    if include_timing:
        statistics["duration_ms"] = round(result.duration_ms, 3)

    return {
        "report_version": REPORT_VERSION,
        "success": result.success,
        "exit_code": result.exit_code,
        "statistics": statistics,
        "violations": [item.to_dict() for item in result.violations],
    }


def generate_json_report(
    result: "AnalysisResult",
    indent: int = 2,
    include_timing: bool = False,
) -> str:
    """
    Generate a JSON report for an analysis run.

    Args:
        result: The analysis result to report on
        indent: JSON indentation level (default: 2)
        include_timing: Add duration_ms to the statistics

    Returns:
        JSON string with the full report
    """
    report = build_report_dict(result, include_timing=include_timing)
    return json.dumps(report, indent=indent, ensure_ascii=False)


def rules_to_dict(rule_set: RuleSet) -> dict[str, list[dict[str, str]]]:
    """Serialize a rule set back into its config shape."""
    return {
        KIND_CATEGORIES[kind]: [
            {"path": rule.path, "reason": rule.reason} for rule in rule_set.rules_of(kind)
        ]
        for kind in RuleKind
    }
