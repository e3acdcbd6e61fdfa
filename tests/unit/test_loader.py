"""
Unit tests for the denylist config loader.

Tests cover:
- Category mapping (disallowed-macros/methods/types)
- TOML, YAML and JSON configs
- Config errors: unknown category, invalid rule, duplicate rule, parse errors
- Config file discovery
"""

from pathlib import Path

import pytest

from apiguard.errors import (
    ConfigNotFoundError,
    ConfigParseError,
    DuplicateRuleError,
    InvalidRuleError,
    UnknownRuleCategoryError,
)
from apiguard.policy import (
    find_config,
    load_policy,
    load_policy_from_string,
    resolve_config,
    rules_from_mapping,
)
from apiguard.policy.loader import build_rule_set
from apiguard.schema import RuleKind


class TestRulesFromMapping:
    """Tests for rules_from_mapping."""

    def test_categories_map_to_kinds(self) -> None:
        rules = rules_from_mapping({
            "disallowed-macros": [{"path": "std::print", "reason": "no IO allowed"}],
            "disallowed-methods": [{"path": "std::io::stdout", "reason": "no IO allowed"}],
            "disallowed-types": [{"path": "std::io::File", "reason": "no IO allowed"}],
        })
        assert [(r.kind, r.path) for r in rules] == [
            (RuleKind.MACRO, "std::print"),
            (RuleKind.METHOD, "std::io::stdout"),
            (RuleKind.TYPE, "std::io::File"),
        ]

    def test_none_is_empty(self) -> None:
        assert rules_from_mapping(None) == []

    def test_empty_category(self) -> None:
        assert rules_from_mapping({"disallowed-types": []}) == []

    def test_unknown_category(self) -> None:
        with pytest.raises(UnknownRuleCategoryError) as exc_info:
            rules_from_mapping({"disallowed-fields": []})
        assert exc_info.value.category == "disallowed-fields"
        assert "disallowed-macros" in exc_info.value.known

    def test_unknown_category_is_not_normalized(self) -> None:
        """Category keys are matched exactly."""
        with pytest.raises(UnknownRuleCategoryError):
            rules_from_mapping({"disallowed_macros": []})

    def test_bare_string_entry_needs_reason(self) -> None:
        with pytest.raises(InvalidRuleError) as exc_info:
            rules_from_mapping({"disallowed-macros": ["std::print"]})
        assert exc_info.value.path == "std::print"
        assert exc_info.value.category == "disallowed-macros"

    def test_missing_reason(self) -> None:
        with pytest.raises(InvalidRuleError) as exc_info:
            rules_from_mapping({"disallowed-types": [{"path": "std::io::File"}]})
        assert exc_info.value.path == "std::io::File"
        assert exc_info.value.category == "disallowed-types"

    def test_missing_path(self) -> None:
        with pytest.raises(InvalidRuleError) as exc_info:
            rules_from_mapping({"disallowed-types": [{"reason": "no IO allowed"}]})
        assert "path" in exc_info.value.detail

    def test_extra_entry_key(self) -> None:
        with pytest.raises(InvalidRuleError):
            rules_from_mapping({
                "disallowed-types": [
                    {"path": "std::io::File", "reason": "r", "replacement": "crate::File"},
                ],
            })

    def test_invalid_path_in_entry(self) -> None:
        with pytest.raises(InvalidRuleError) as exc_info:
            rules_from_mapping({"disallowed-methods": [{"path": "std io", "reason": "r"}]})
        assert exc_info.value.category == "disallowed-methods"

    def test_category_must_be_list(self) -> None:
        with pytest.raises(ConfigParseError):
            rules_from_mapping({"disallowed-macros": {"path": "std::print", "reason": "r"}})

    def test_top_level_must_be_mapping(self) -> None:
        with pytest.raises(ConfigParseError):
            rules_from_mapping(["std::print"])  # type: ignore[arg-type]


class TestLoadPolicy:
    """Tests for loading rule sets from text and files."""

    def test_reference_config(self, clippy_toml: str) -> None:
        rule_set = load_policy_from_string(clippy_toml)
        assert len(rule_set) == 11
        assert len(rule_set.rules_of(RuleKind.MACRO)) == 5
        assert len(rule_set.rules_of(RuleKind.METHOD)) == 3
        assert len(rule_set.rules_of(RuleKind.TYPE)) == 3
        rule = rule_set.lookup(RuleKind.TYPE, "std::io::BufWriter")
        assert rule is not None
        assert rule.reason == "need our own abstractions for reading/writing"

    def test_unimplemented_not_denied(self, clippy_toml: str) -> None:
        """Only listed macros are denied."""
        rule_set = load_policy_from_string(clippy_toml)
        assert rule_set.lookup(RuleKind.MACRO, "std::unimplemented") is None

    def test_duplicate_in_config(self) -> None:
        content = """
disallowed-types = [
    { path = "std::io::File", reason = "no IO allowed" },
    { path = "std::io::File", reason = "still no IO" },
]
"""
        with pytest.raises(DuplicateRuleError) as exc_info:
            load_policy_from_string(content)
        assert exc_info.value.kind == "type"
        assert exc_info.value.path == "std::io::File"
        assert exc_info.value.context["category"] == "disallowed-types"

    def test_yaml_config(self) -> None:
        content = """
disallowed-macros:
  - path: std::dbg
    reason: no debugging in releases
"""
        rule_set = load_policy_from_string(content, fmt="yaml")
        assert rule_set.lookup(RuleKind.MACRO, "std::dbg") is not None

    def test_json_config(self) -> None:
        content = '{"disallowed-methods": [{"path": "os.system", "reason": "no shell"}]}'
        rule_set = load_policy_from_string(content, fmt="json")
        assert rule_set.lookup(RuleKind.METHOD, "os.system") is not None

    def test_empty_toml(self) -> None:
        assert len(load_policy_from_string("")) == 0

    def test_invalid_toml(self) -> None:
        with pytest.raises(ConfigParseError):
            load_policy_from_string("disallowed-macros = [")

    def test_unsupported_format(self) -> None:
        with pytest.raises(ConfigParseError):
            load_policy_from_string("{}", fmt="ini")

    def test_load_from_file(self, config_file: Path) -> None:
        rule_set = load_policy(config_file)
        assert len(rule_set) == 11

    def test_load_yaml_file_by_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "denylist.yml"
        path.write_text('disallowed-types:\n  - {path: "std::io::File", reason: "no IO"}\n')
        assert load_policy(path).lookup(RuleKind.TYPE, "std::io::File") is not None

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigParseError):
            load_policy(tmp_path / "nope.toml")

    def test_invalid_utf8_file(self, tmp_path: Path) -> None:
        """Undecodable bytes are a config error, not a crash."""
        path = tmp_path / "clippy.toml"
        path.write_bytes(b'disallowed-macros = [{ path = "std::print", reason = "\xff" }]\n')
        with pytest.raises(ConfigParseError) as exc_info:
            load_policy(path)
        assert exc_info.value.source == str(path)
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_build_rule_set_from_mapping(self) -> None:
        rule_set = build_rule_set({"disallowed-macros": [{"path": "std::todo", "reason": "r"}]})
        assert (RuleKind.MACRO, "std::todo") in rule_set


class TestFindConfig:
    """Tests for config discovery."""

    def test_finds_in_start_dir(self, config_file: Path) -> None:
        assert find_config(config_file.parent) == config_file.resolve()

    def test_finds_in_parent(self, config_file: Path) -> None:
        nested = config_file.parent / "crates" / "core"
        nested.mkdir(parents=True)
        assert find_config(nested) == config_file.resolve()

    def test_dot_clippy_toml(self, tmp_path: Path) -> None:
        path = tmp_path / ".clippy.toml"
        path.write_text("")
        assert find_config(tmp_path) == path.resolve()

    def test_resolve_explicit_path(self, tmp_path: Path) -> None:
        explicit = tmp_path / "custom.toml"
        assert resolve_config(explicit, tmp_path) == explicit

    def test_resolve_searches(self, config_file: Path) -> None:
        assert resolve_config(None, config_file.parent) == config_file.resolve()

    def test_resolve_not_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("apiguard.policy.loader.find_config", lambda start: None)
        with pytest.raises(ConfigNotFoundError):
            resolve_config(None, tmp_path)
