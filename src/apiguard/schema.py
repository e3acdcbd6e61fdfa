"""
Schema definitions for apiguard.

This module defines the models shared by every stage of an analysis run:
- RuleKind/Rule: One denylist entry and its closed set of kinds
- RuleEntry: The raw shape of an entry in a config file
- Location/UsageEvent: Facts produced by the upstream language front-end
- Violation/RenderedViolation: What the engine reports

Design Decisions:
    - Rule, Location, UsageEvent and RenderedViolation are frozen Pydantic models
    - Violation is a plain frozen dataclass that references (never copies) its Rule
    - Paths are matched exactly, so they are stored exactly as given
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from apiguard.errors import InvalidRuleError


# =============================================================================
# Enums
# =============================================================================


class RuleKind(str, Enum):
    """
    The kind of symbol a rule targets.

    This is a closed set. Config categories and usage events are mapped
    onto it; anything that does not map is either a config error (for rules)
    or an automatic miss (for usage events).
    """

    MACRO = "macro"
    METHOD = "method"
    TYPE = "type"


# Config category key -> rule kind
CATEGORY_KINDS: dict[str, RuleKind] = {
    "disallowed-macros": RuleKind.MACRO,
    "disallowed-methods": RuleKind.METHOD,
    "disallowed-types": RuleKind.TYPE,
}

KIND_CATEGORIES: dict[RuleKind, str] = {kind: cat for cat, kind in CATEGORY_KINDS.items()}

_SEGMENT = r"[A-Za-z_][A-Za-z0-9_]*"
_COLON_PATH = re.compile(rf"^{_SEGMENT}(?:::{_SEGMENT})*$")
_DOTTED_PATH = re.compile(rf"^{_SEGMENT}(?:\.{_SEGMENT})*$")


def coerce_kind(value: Any) -> RuleKind | None:
    """Return the RuleKind for a kind or its string value, None if unknown."""
    if isinstance(value, RuleKind):
        return value
    try:
        return RuleKind(value)
    except ValueError:
        return None


def check_symbol_path(path: str) -> str | None:
    """
    Check that a string is a well-formed canonical symbol path.

    Accepted forms are ``a::b::c`` and ``a.b.c``. A path never mixes the two
    delimiters.

    Returns:
        None if the path is valid, otherwise a short description of the problem
    """
    if not path:
        return "path must not be empty"
    if any(ch.isspace() for ch in path):
        return "path must not contain whitespace"
    if _COLON_PATH.match(path) or _DOTTED_PATH.match(path):
        return None
    if "::" in path and "." in path:
        return "path must not mix '::' and '.' delimiters"
    return "path must be identifier segments joined by '::' or '.'"


# =============================================================================
# Rule Models
# =============================================================================


class Rule(BaseModel):
    """
    A single denylist entry.

    Attributes:
        kind: What sort of symbol the rule denies
        path: Canonical path of the denied symbol (e.g. "std::io::stdout")
        reason: Why the symbol is denied, reported verbatim
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: RuleKind = Field(..., description="Kind of symbol this rule denies")
    path: str = Field(..., description="Canonical symbol path")
    reason: str = Field(..., description="Human-readable justification")

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject empty, whitespace-bearing or malformed paths."""
        problem = check_symbol_path(v)
        if problem:
            raise ValueError(problem)
        return v

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        """Reject empty reasons; the text itself is kept as written."""
        if not v.strip():
            msg = "reason must not be empty"
            raise ValueError(msg)
        return v

    @property
    def key(self) -> tuple[RuleKind, str]:
        """The (kind, path) identity used for indexing and deduplication."""
        return (self.kind, self.path)

    @classmethod
    def create(
        cls,
        kind: RuleKind | str,
        path: str,
        reason: str,
        category: str | None = None,
    ) -> "Rule":
        """
        Construct a rule, raising InvalidRuleError instead of ValidationError.

        Args:
            kind: A RuleKind or its string value
            path: Canonical symbol path
            reason: Non-empty justification
            category: Config category the rule came from, for error context

        Raises:
            InvalidRuleError: If any field is invalid
        """
        try:
            return cls(kind=kind, path=path, reason=reason)
        except ValidationError as e:
            detail = "; ".join(clean_validation_message(err["msg"]) for err in e.errors())
            raise InvalidRuleError(
                category=category,
                path=path if isinstance(path, str) else repr(path),
                detail=detail,
            ) from e


class RuleEntry(BaseModel):
    """
    One entry of a config category, before it becomes a Rule.

    Mirrors the inline-table form ``{ path = "...", reason = "..." }``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = Field(..., description="Canonical symbol path")
    reason: str = Field(default="", description="Why the symbol is denied")


def clean_validation_message(msg: str) -> str:
    """Strip Pydantic's 'Value error, ' prefix from custom validator messages."""
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


# =============================================================================
# Usage Models
# =============================================================================


class Location(BaseModel):
    """
    A source position.

    The engine only passes it through and sorts on it.

    Attributes:
        file: Source file as reported by the front-end
        line: 1-based line number
        column: 1-based column number
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    file: str = Field(..., min_length=1, description="Source file")
    line: int = Field(..., ge=1, description="1-based line number")
    column: int = Field(default=1, ge=1, description="1-based column number")

    def sort_key(self) -> tuple[str, int, int]:
        """Key for deterministic (file, line, column) ordering."""
        return (self.file, self.line, self.column)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class UsageEvent(BaseModel):
    """
    One observed reference to a symbol.

    The path is the canonical path resolved upstream. Kinds outside
    RuleKind are kept as raw strings so the matcher can treat them as
    misses instead of failing the whole stream.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: RuleKind | str = Field(
        ...,
        description="Kind of symbol referenced",
        union_mode="left_to_right",
    )
    path: str = Field(..., min_length=1, description="Canonical symbol path")
    location: Location = Field(..., description="Where the symbol is referenced")

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v: Any) -> Any:
        """Turn known kind strings into RuleKind, leave the rest untouched."""
        kind = coerce_kind(v)
        return kind if kind is not None else v


# =============================================================================
# Result Models
# =============================================================================


class RenderedViolation(BaseModel):
    """
    A violation in its final, reportable form.

    Attributes:
        location: Where the disallowed symbol is used
        kind: Kind of the matched rule
        path: Path of the matched rule
        reason: The rule's reason, verbatim
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    location: Location
    kind: RuleKind
    path: str
    reason: str

    def sort_key(self) -> tuple[str, int, int, str, str]:
        """Location order, with kind and path breaking ties."""
        return (*self.location.sort_key(), self.kind.value, self.path)

    def format(self) -> str:
        """Format as a single compiler-style diagnostic line."""
        return f"{self.location}: disallowed {self.kind.value} `{self.path}`: {self.reason}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "kind": self.kind.value,
            "path": self.path,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class Violation:
    """
    A usage event that matched a rule.

    Attributes:
        rule: The matched rule (shared with the RuleSet, not copied)
        location: Location of the triggering usage event
    """

    rule: Rule
    location: Location

    def render(self) -> RenderedViolation:
        """Produce the reportable form of this violation."""
        return RenderedViolation(
            location=self.location,
            kind=self.rule.kind,
            path=self.rule.path,
            reason=self.rule.reason,
        )
