"""
Analysis engine for apiguard.

The engine matches usage events against a RuleSet and hands the resulting
violations to a ViolationReporter. It coordinates between:
- RuleSet: The immutable denylist, shared read-only by all workers
- Matcher: Per-unit exact lookup of each usage event
- ViolationReporter: Ordering and rendering of everything found

Execution Flow:
    1. Split the usage stream into units (usually one per source file)
    2. Scan each unit with its own Matcher, in parallel
    3. After every worker finishes, merge the local violation lists into the
       reporter in unit order
    4. Render and return the ordered violations

Design Principles:
    - Exhaustive: no early exit, every violation is reported
    - Silent misses: an event that matches nothing is the common case
    - Deterministic: output depends on the inputs, never on thread timing
"""

import logging
import time
from collections import Counter
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from apiguard.policy import RuleSet
from apiguard.report.reporter import ViolationReporter
from apiguard.schema import RenderedViolation, RuleKind, UsageEvent, Violation

logger = logging.getLogger(__name__)

EXIT_CLEAN = 0
EXIT_VIOLATIONS = 1


class Matcher:
    """
    Matches usage events against a rule set.

    One matcher is used per unit of work. It holds no shared mutable
    state, so matchers for different units can run concurrently against
    the same RuleSet.

    Attributes:
        rule_set: The rules to match against
        events_seen: Number of events examined so far
        hits: Number of events that produced a violation
        unknown_kinds: Count of events per kind that is not a RuleKind
    """

    def __init__(self, rule_set: RuleSet) -> None:
        self.rule_set = rule_set
        self.events_seen = 0
        self.hits = 0
        self.unknown_kinds: Counter[str] = Counter()

    def match(self, event: UsageEvent) -> Violation | None:
        """
        Match one event.

        Events whose kind is not a RuleKind never match. The event's path is
        used exactly as given; aliases must already be resolved upstream.

        Returns:
            A Violation on a hit, None on a miss
        """
        self.events_seen += 1
        if not isinstance(event.kind, RuleKind):
            self.unknown_kinds[event.kind] += 1
            logger.debug("Unknown kind %r for %s at %s; treated as a miss",
                         event.kind, event.path, event.location)
            return None

        rule = self.rule_set.lookup(event.kind, event.path)
        if rule is None:
            return None

        self.hits += 1
        return Violation(rule=rule, location=event.location)

    def scan(self, events: Iterable[UsageEvent]) -> list[Violation]:
        """Match every event in a stream and return the local violation list."""
        violations: list[Violation] = []
        for event in events:
            violation = self.match(event)
            if violation is not None:
                violations.append(violation)
        return violations


def analyze(rule_set: RuleSet, usage_stream: Iterable[UsageEvent]) -> list[RenderedViolation]:
    """
    Analyze one usage stream against a rule set.

    Args:
        rule_set: The denylist for this run
        usage_stream: Usage events, consumed once

    Returns:
        Every violation, ordered by location
    """
    reporter = ViolationReporter()
    matcher = Matcher(rule_set)
    reporter.collect(matcher.scan(usage_stream))
    _warn_unknown_kinds(matcher.unknown_kinds)
    return list(reporter.render())


def _warn_unknown_kinds(unknown_kinds: Counter[str]) -> None:
    """Log each kind the matcher could not use once, with its event count."""
    expected = ", ".join(kind.value for kind in RuleKind)
    for kind, count in sorted(unknown_kinds.items()):
        logger.warning(
            "Unknown usage kind %r on %d events was treated as a miss (expected one of: %s)",
            kind, count, expected,
        )


def exit_status(violations: Iterable[RenderedViolation]) -> int:
    """Return 0 when there are no violations, 1 otherwise."""
    return EXIT_VIOLATIONS if any(True for _ in violations) else EXIT_CLEAN


@dataclass
class _UnitResult:
    violations: list[Violation]
    events_seen: int
    unknown_kinds: Counter[str]


@dataclass
class AnalysisResult:
    """
    Result of a full analysis run.

    Attributes:
        violations: Every violation found, ordered by location
        units_scanned: Number of units (files) scanned
        events_seen: Total number of usage events examined
        rules_loaded: Number of rules in the rule set
        duration_ms: Wall-clock time of the run in milliseconds
    """

    violations: tuple[RenderedViolation, ...] = field(default_factory=tuple)
    units_scanned: int = 0
    events_seen: int = 0
    rules_loaded: int = 0
    duration_ms: float = 0.0

    @property
    def success(self) -> bool:
        """Whether the run found no violations."""
        return not self.violations

    @property
    def exit_code(self) -> int:
        """Process status for CI gates: 0 when clean, 1 when violations exist."""
        return exit_status(self.violations)


class Analyzer:
    """
    Runs a RuleSet over many units of usage events in parallel.

    Usage:
        analyzer = Analyzer(rule_set, max_workers=4)
        result = analyzer.run(split_by_file(read_usage_events("facts.jsonl")))
        sys.exit(result.exit_code)

    Attributes:
        rule_set: The denylist, shared read-only across workers
        max_workers: Thread pool size (None lets the executor decide)
    """

    def __init__(self, rule_set: RuleSet, max_workers: int | None = None) -> None:
        if max_workers is not None and max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        self.rule_set = rule_set
        self.max_workers = max_workers

    def _scan_unit(self, events: Iterable[UsageEvent]) -> _UnitResult:
        matcher = Matcher(self.rule_set)
        violations = matcher.scan(events)
        return _UnitResult(
            violations=violations,
            events_seen=matcher.events_seen,
            unknown_kinds=matcher.unknown_kinds,
        )

    def run(
        self,
        units: Mapping[str, Iterable[UsageEvent]] | Iterable[Iterable[UsageEvent]],
    ) -> AnalysisResult:
        """
        Scan every unit and report all violations.

        Args:
            units: Either a mapping of unit name to events, or an iterable
                of event streams. Each unit is consumed by exactly one worker.

        Returns:
            AnalysisResult with ordered violations and run statistics
        """
        start = time.monotonic()
        streams = list(units.values()) if isinstance(units, Mapping) else list(units)

        if self.max_workers == 1 or len(streams) <= 1:
            unit_results = [self._scan_unit(stream) for stream in streams]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                # map() yields in submission order, so the merge is deterministic
                unit_results = list(pool.map(self._scan_unit, streams))

        # Single aggregation point: only this thread touches the reporter
        reporter = ViolationReporter()
        events_seen = 0
        unknown_kinds: Counter[str] = Counter()
        for unit in unit_results:
            reporter.collect(unit.violations)
            events_seen += unit.events_seen
            unknown_kinds.update(unit.unknown_kinds)
        _warn_unknown_kinds(unknown_kinds)

        violations = reporter.render()
        duration_ms = (time.monotonic() - start) * 1000

        logger.info(
            "Scanned %d units (%d events): %d violations in %.1fms",
            len(streams), events_seen, len(violations), duration_ms,
        )
        return AnalysisResult(
            violations=violations,
            units_scanned=len(streams),
            events_seen=events_seen,
            rules_loaded=len(self.rule_set),
            duration_ms=duration_ms,
        )
