"""
Reporting module for apiguard.

This module orders, renders and prints the violations found by a run.

Components:
    - ViolationReporter: Collects violations and renders them in location order
    - Console: Rich terminal output with a status header and a violation table
    - JSON: Deterministic structured output for CI tooling

Example:
    from apiguard.report import generate_console_report, generate_json_report

    generate_console_report(result)
    print(generate_json_report(result))
"""

from apiguard.report.console import generate_console_report, print_rules
from apiguard.report.json import build_report_dict, generate_json_report, rules_to_dict
from apiguard.report.reporter import ReporterState, ViolationReporter

__all__ = [
    "ReporterState",
    "ViolationReporter",
    "build_report_dict",
    "generate_console_report",
    "generate_json_report",
    "print_rules",
    "rules_to_dict",
]
