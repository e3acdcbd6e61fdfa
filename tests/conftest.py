"""
Pytest configuration and fixtures for apiguard tests.

This module provides shared fixtures used across unit and integration tests.
"""

import json
from pathlib import Path

import pytest

from apiguard.policy import RuleSet, load_policy_from_string


CLIPPY_TOML = """
disallowed-macros = [
    # Can also use an inline table with a `path` key.
    { path = "std::print", reason = "no IO allowed" },
    { path = "std::println", reason = "no IO allowed" },
    { path = "std::format", reason = "no string allocation allowed" },
    { path = "std::debug", reason = "debugging macros should not be present in any release" },
    # NOTE: unimplemented is fine because this can be for intentionally disabled methods
    { path = "std::todo", reason = "should never have TODO macros in releases" },
]
disallowed-methods = [
    { path = "std::io::stdout", reason = "no IO allowed" },
    { path = "std::io::stdin", reason = "no IO allowed" },
    { path = "std::io::stderr", reason = "no IO allowed" },
]
disallowed-types = [
    { path = "std::io::File", reason = "no IO allowed" },
    { path = "std::io::BufReader", reason = "need our own abstractions for reading/writing" },
    { path = "std::io::BufWriter", reason = "need our own abstractions for reading/writing" },
]
"""


def write_jsonl(path: Path, records: list[dict]) -> Path:
    """Write records as JSON Lines and return the path."""
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def clippy_toml() -> str:
    """Return the reference clippy.toml denylist."""
    return CLIPPY_TOML


@pytest.fixture
def rule_set(clippy_toml: str) -> RuleSet:
    """Rule set built from the reference denylist."""
    return load_policy_from_string(clippy_toml)


@pytest.fixture
def config_file(tmp_path: Path, clippy_toml: str) -> Path:
    """Write the reference denylist to clippy.toml in a temp dir."""
    path = tmp_path / "clippy.toml"
    path.write_text(clippy_toml, encoding="utf-8")
    return path


@pytest.fixture
def sample_records() -> list[dict]:
    """Usage records spanning two files, deliberately out of order."""
    return [
        {"kind": "macro", "path": "std::println", "file": "src/main.rs", "line": 10, "column": 5},
        {"kind": "type", "path": "std::io::File", "file": "src/io.rs", "line": 3, "column": 9},
        {"kind": "macro", "path": "std::assert", "file": "src/main.rs", "line": 2, "column": 1},
        {"kind": "method", "path": "std::io::stdout", "file": "src/main.rs", "line": 4, "column": 13},
        {"kind": "type", "path": "std::fs::File", "file": "src/io.rs", "line": 1, "column": 1},
    ]


@pytest.fixture
def facts_file(tmp_path: Path, sample_records: list[dict]) -> Path:
    """Write the sample usage records as JSON Lines."""
    return write_jsonl(tmp_path / "facts.jsonl", sample_records)


@pytest.fixture
def write_facts():
    """Return a helper that writes usage records as JSON Lines."""
    return write_jsonl
