"""
Violation reporter for apiguard.

The reporter gathers every Violation produced during a run and renders them
in a deterministic order.

State machine:
    COLLECTING --render()--> RENDERED

    - collect() is only accepted while COLLECTING
    - render() seals the reporter; calling it again returns the same result
    - collect() after render() raises ReporterSealedError

Ordering:
    Rendered violations are sorted by (file, line, column). Kind and path
    break ties, then collection order (the sort is stable). The same inputs
    therefore always render identically, whatever order the usage stream
    arrived in.
"""

from collections.abc import Iterable
from enum import Enum

from apiguard.errors import ReporterSealedError
from apiguard.schema import RenderedViolation, Violation


class ReporterState(str, Enum):
    """Lifecycle state of a ViolationReporter."""

    COLLECTING = "collecting"
    RENDERED = "rendered"


class ViolationReporter:
    """
    Collects violations and renders them once, in order.

    Violations are never deduplicated: two uses of the same disallowed
    symbol are two separate findings.

    Usage:
        reporter = ViolationReporter()
        reporter.collect(matcher.scan(events))
        for item in reporter.render():
            print(item.format())
    """

    def __init__(self) -> None:
        """Initialize an empty reporter in the COLLECTING state."""
        self._violations: list[Violation] = []
        self._rendered: tuple[RenderedViolation, ...] | None = None

    @property
    def state(self) -> ReporterState:
        """Current lifecycle state."""
        if self._rendered is None:
            return ReporterState.COLLECTING
        return ReporterState.RENDERED

    @property
    def is_sealed(self) -> bool:
        """Whether render() has been called."""
        return self._rendered is not None

    def collect(self, violations: Iterable[Violation]) -> None:
        """
        Append violations in the order given.

        Args:
            violations: Violations to add

        Raises:
            ReporterSealedError: If render() was already called
        """
        if self._rendered is not None:
            raise ReporterSealedError()
        self._violations.extend(violations)

    def render(self) -> tuple[RenderedViolation, ...]:
        """
        Seal the reporter and return the ordered, rendered violations.

        Returns:
            Rendered violations sorted by location
        """
        if self._rendered is None:
            rendered = [violation.render() for violation in self._violations]
            self._rendered = tuple(sorted(rendered, key=RenderedViolation.sort_key))
        return self._rendered

    def __len__(self) -> int:
        return len(self._violations)
