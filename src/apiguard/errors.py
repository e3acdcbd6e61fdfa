"""
Exception hierarchy for apiguard.

All apiguard exceptions inherit from ApiGuardError, allowing callers to catch
all apiguard-specific exceptions with a single except clause.

Exception Categories:
    - ConfigError: The denylist could not be turned into a Rule Set
    - ReporterSealedError: collect() called on a reporter that already rendered
    - FactStreamError: A usage record from the front-end is malformed

A Violation is not an exception. Violations are the engine's output and are
returned to the caller, never raised.

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (rule path, category) where applicable
    - Config errors are fatal and raised before any scanning starts
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Config errors: 1xxx
ERROR_CONFIG_INVALID_RULE = 1001
ERROR_CONFIG_DUPLICATE_RULE = 1002
ERROR_CONFIG_UNKNOWN_CATEGORY = 1003
ERROR_CONFIG_PARSE = 1004
ERROR_CONFIG_NOT_FOUND = 1005

# Reporter errors: 2xxx
ERROR_REPORTER_SEALED = 2001

# Fact stream errors: 3xxx
ERROR_FACT_INVALID_RECORD = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class ApiGuardError(Exception):
    """
    Base exception for all apiguard errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(ApiGuardError):
    """
    Base class for denylist configuration errors.

    Config errors stop the run before any usage event is scanned.
    No partial results are produced.

    Attributes:
        category: Config category the error refers to (e.g. "disallowed-macros")
        path: Symbol path of the offending rule, if any
    """

    category: str | None = None
    path: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "category": self.category,
            "path": self.path,
        })


@dataclass
class InvalidRuleError(ConfigError):
    """Raised when a rule has a malformed path or an empty reason."""

    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            where = f" in {self.category}" if self.category else ""
            self.message = f"Invalid rule {self.path!r}{where}: {self.detail}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID_RULE
        super().__post_init__()
        self.context["detail"] = self.detail


@dataclass
class DuplicateRuleError(ConfigError):
    """Raised when two rules share the same (kind, path) key."""

    kind: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Duplicate {self.kind} rule: {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_DUPLICATE_RULE
        if not self.suggestion:
            self.suggestion = "Remove one of the entries or merge their reasons"
        super().__post_init__()
        self.context["kind"] = self.kind


@dataclass
class UnknownRuleCategoryError(ConfigError):
    """Raised when the config contains a category key that maps to no rule kind."""

    known: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unknown rule category: {self.category}"
        if self.code == 0:
            self.code = ERROR_CONFIG_UNKNOWN_CATEGORY
        if not self.suggestion and self.known:
            self.suggestion = f"Use one of: {', '.join(self.known)}"
        super().__post_init__()
        self.context["known"] = list(self.known)


@dataclass
class ConfigParseError(ConfigError):
    """Raised when a config file cannot be read or decoded."""

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to parse config {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_PARSE
        super().__post_init__()
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })


@dataclass
class ConfigNotFoundError(ConfigError):
    """Raised when no config file is given and none is found by search."""

    searched: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"No denylist config found from {self.searched}"
        if self.code == 0:
            self.code = ERROR_CONFIG_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Pass --config or create clippy.toml in the project root"
        super().__post_init__()
        self.context["searched"] = self.searched


# =============================================================================
# Reporter Errors
# =============================================================================


@dataclass
class ReporterSealedError(ApiGuardError):
    """
    Raised when collect() is called after render().

    This is an internal invariant violation, not a user-facing condition.
    """

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Reporter already rendered; no more violations can be collected"
        if self.code == 0:
            self.code = ERROR_REPORTER_SEALED


# =============================================================================
# Fact Stream Errors
# =============================================================================


@dataclass
class FactStreamError(ApiGuardError):
    """
    Raised when a fact file cannot be read or a usage record is malformed.

    Attributes:
        source: Fact file (or "<memory>") the record came from
        index: 1-based position of the record in its source, if known
        line: 1-based line number, for line-oriented sources
        underlying_error: Description of the problem
    """

    source: str = ""
    index: int | None = None
    line: int | None = None
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            at = f" record {self.index}" if self.index is not None else ""
            if self.line is not None:
                at += f" (line {self.line})"
            self.message = f"Malformed usage record in {self.source}{at}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_FACT_INVALID_RECORD
        self.context.update({
            "source": self.source,
            "index": self.index,
            "line": self.line,
            "underlying_error": self.underlying_error,
        })
