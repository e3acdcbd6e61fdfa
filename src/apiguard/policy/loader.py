"""
Denylist configuration loader for apiguard.

Turns a config document into Rules and then into a RuleSet. The document
is a mapping of category keys to lists of entries:

    disallowed-macros = [
        { path = "std::print", reason = "no IO allowed" },
    ]
    disallowed-types = [
        { path = "std::io::File", reason = "no IO allowed" },
    ]

Supported formats:
    - TOML (.toml), the native clippy.toml format
    - YAML (.yaml, .yml)
    - JSON (.json)

Every error raised here is a ConfigError and is raised before any scanning
starts.
"""

import json
import logging
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from apiguard.errors import (
    ConfigNotFoundError,
    ConfigParseError,
    InvalidRuleError,
    UnknownRuleCategoryError,
)
from apiguard.policy.ruleset import RuleSet
from apiguard.schema import CATEGORY_KINDS, Rule, RuleEntry, clean_validation_message

logger = logging.getLogger(__name__)

# Searched in order, in the start directory and then each parent
CONFIG_FILENAMES = ("clippy.toml", ".clippy.toml", "apiguard.toml", "apiguard.yaml")

_FORMATS = {
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
}


def rules_from_mapping(data: Mapping[str, Any] | None, source: str = "<config>") -> list[Rule]:
    """
    Convert a decoded config document into rules, in document order.

    Args:
        data: Decoded config (None is treated as an empty document)
        source: Name of the config, used in error messages

    Returns:
        List of validated rules (not yet deduplicated)

    Raises:
        UnknownRuleCategoryError: If a key is not a known category
        InvalidRuleError: If an entry is malformed
        ConfigParseError: If the document or a category has the wrong shape
    """
    if data is None:
        return []
    if not isinstance(data, Mapping):
        raise ConfigParseError(
            source=source,
            underlying_error=f"top level must be a table, got {type(data).__name__}",
        )

    rules: list[Rule] = []
    for category, entries in data.items():
        kind = CATEGORY_KINDS.get(category)
        if kind is None:
            raise UnknownRuleCategoryError(
                category=str(category),
                known=tuple(CATEGORY_KINDS),
            )
        if not isinstance(entries, list):
            raise ConfigParseError(
                source=source,
                category=category,
                underlying_error=f"{category} must be a list of entries",
            )

        for raw in entries:
            entry = _parse_entry(raw, category)
            rules.append(Rule.create(kind, entry.path, entry.reason, category=category))

    return rules


def _parse_entry(raw: Any, category: str) -> RuleEntry:
    """Validate one raw entry of a category."""
    if isinstance(raw, str):
        # Bare path form; a reason is still mandatory
        raise InvalidRuleError(
            category=category,
            path=raw,
            detail="entry needs a reason; use { path = ..., reason = ... }",
        )
    if not isinstance(raw, Mapping):
        raise InvalidRuleError(
            category=category,
            path=repr(raw),
            detail="entry must be a table with 'path' and 'reason'",
        )
    try:
        return RuleEntry.model_validate(dict(raw))
    except ValidationError as e:
        path = raw.get("path")
        raise InvalidRuleError(
            category=category,
            path=path if isinstance(path, str) else None,
            detail="; ".join(_format_entry_error(err) for err in e.errors()),
        ) from e


def _format_entry_error(err: Any) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    msg = clean_validation_message(err["msg"])
    return f"{loc}: {msg}" if loc else msg


def build_rule_set(data: Mapping[str, Any] | None, source: str = "<config>") -> RuleSet:
    """Convert a decoded config document straight into a RuleSet."""
    rule_set = RuleSet.build(rules_from_mapping(data, source))
    logger.info("Loaded %d rules from %s", len(rule_set), source)
    return rule_set


def _decode(content: str, fmt: str, source: str) -> Any:
    """Decode config text in the given format."""
    try:
        if fmt == "toml":
            return tomllib.loads(content)
        if fmt == "yaml":
            return yaml.safe_load(content)
        if fmt == "json":
            return json.loads(content)
    except (tomllib.TOMLDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigParseError(source=source, underlying_error=str(e)) from e

    raise ConfigParseError(source=source, underlying_error=f"unsupported format: {fmt}")


def load_policy(path: Path | str) -> RuleSet:
    """
    Load a RuleSet from a config file.

    The format is chosen from the file suffix; unknown suffixes are read
    as TOML.

    Args:
        path: Path to the config file

    Returns:
        Validated RuleSet

    Raises:
        ConfigError: If the file cannot be read, decoded or validated
    """
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(source=str(path), underlying_error=str(e)) from e

    fmt = _FORMATS.get(path.suffix.lower(), "toml")
    data = _decode(content, fmt, str(path))
    return build_rule_set(data, str(path))


def load_policy_from_string(content: str, fmt: str = "toml") -> RuleSet:
    """Load a RuleSet from config text."""
    return build_rule_set(_decode(content, fmt, "<string>"), "<string>")


def find_config(start: Path | str) -> Path | None:
    """
    Search for a config file in start and its parents.

    Args:
        start: Directory to start searching from

    Returns:
        The first config file found, or None
    """
    start = Path(start).resolve()
    for directory in (start, *start.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                logger.debug("Found config %s", candidate)
                return candidate
    return None


def resolve_config(path: Path | str | None, start: Path | str = ".") -> Path:
    """
    Return the explicit config path, or the one found by find_config().

    Raises:
        ConfigNotFoundError: If no path is given and none is found
    """
    if path is not None:
        return Path(path)
    found = find_config(start)
    if found is None:
        raise ConfigNotFoundError(searched=str(Path(start).resolve()))
    return found
