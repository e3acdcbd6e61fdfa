"""
Console report generator for apiguard.

Renders analysis results with the Rich library: a header with the overall
status, one row per violation, and summary statistics.

Design Principles:
    - Human-readable first: Optimize for quick scanning
    - Status at a glance: Use icons and colors for status
    - Reasons are shown verbatim, wrapped but never truncated
"""

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from apiguard.policy import RuleSet
from apiguard.schema import KIND_CATEGORIES, RuleKind

if TYPE_CHECKING:
    from apiguard.engine import AnalysisResult


# Status icons
ICON_CLEAN = "[green]✓[/green]"
ICON_VIOLATION = "[red]✗[/red]"

KIND_STYLES = {
    RuleKind.MACRO: "magenta",
    RuleKind.METHOD: "cyan",
    RuleKind.TYPE: "blue",
}


def generate_console_report(
    result: "AnalysisResult",
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print a console report for an analysis run.

    Args:
        result: The analysis result to report on
        console: Rich Console instance (creates one if not provided)
        verbose: Whether to show run statistics
    """
    if console is None:
        console = Console()

    _print_header(console, result)
    console.print()

    if result.violations:
        _print_violations(console, result)
        console.print()

    if verbose:
        _print_summary(console, result)


def _print_header(console: Console, result: "AnalysisResult") -> None:
    """Print the status header."""
    header = Text()
    if result.success:
        header.append(" CLEAN ", style="bold green")
        header.append("no disallowed symbols found")
        icon = ICON_CLEAN
    else:
        count = len(result.violations)
        noun = "violation" if count == 1 else "violations"
        header.append(" FAILED ", style="bold red")
        header.append(f"{count} {noun}")
        icon = ICON_VIOLATION

    header.append(" │ ", style="dim")
    header.append(f"{result.rules_loaded} rules", style="dim")
    console.print(Panel(header, expand=False))
    console.print(f"  {icon} {result.units_scanned} files, {result.events_seen} symbol uses checked")


def _print_violations(console: Console, result: "AnalysisResult") -> None:
    """Print one row per violation, in report order."""
    table = Table(show_header=True, header_style="bold", expand=True)
    table.add_column("Location", style="dim", no_wrap=True)
    table.add_column("Kind", width=7)
    table.add_column("Symbol", style="bold")
    table.add_column("Reason", overflow="fold")

    for item in result.violations:
        style = KIND_STYLES.get(item.kind, "white")
        table.add_row(
            str(item.location),
            f"[{style}]{item.kind.value}[/{style}]",
            Text(item.path),
            Text(item.reason),
        )

    console.print(table)


def _print_summary(console: Console, result: "AnalysisResult") -> None:
    """Print run statistics and per-kind counts."""
    console.print("[bold]Summary[/bold]")
    console.print()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column("Metric", style="dim")
    stats_table.add_column("Value")

    stats_table.add_row("Rules", str(result.rules_loaded))
    stats_table.add_row("Files", str(result.units_scanned))
    stats_table.add_row("Symbol uses", str(result.events_seen))
    for kind in RuleKind:
        count = sum(1 for item in result.violations if item.kind == kind)
        label = KIND_CATEGORIES[kind]
        stats_table.add_row(label, f"[red]{count}[/red]" if count > 0 else "0")
    stats_table.add_row("Duration", f"{result.duration_ms:.1f}ms")

    console.print(stats_table)


def print_rules(rule_set: RuleSet, console: Console | None = None) -> None:
    """Print every rule in a rule set, grouped by category."""
    if console is None:
        console = Console()

    if len(rule_set) == 0:
        console.print("[dim]No rules configured.[/dim]")
        return

    table = Table(title=f"Disallowed symbols ({len(rule_set)})", show_header=True, header_style="bold")
    table.add_column("Category", style="dim")
    table.add_column("Path", style="cyan")
    table.add_column("Reason", overflow="fold")

    for kind in RuleKind:
        for rule in rule_set.rules_of(kind):
            table.add_row(KIND_CATEGORIES[kind], Text(rule.path), Text(rule.reason))

    console.print(table)
