"""
CLI entry point for apiguard.

This module provides the Typer-based command-line interface for apiguard.

Commands:
    check       Check usage facts against the denylist
    rules       List the rules in the denylist
    validate    Validate the denylist without checking anything

Exit codes:
    0   No violations (or config valid)
    1   Violations found
    2   Configuration or fact stream error

Architecture Note:
    The CLI is intentionally thin - it parses arguments and delegates to the
    engine, policy and report modules, which are usable without the CLI.
"""

import itertools
import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from apiguard import __version__
from apiguard.engine import AnalysisResult, Analyzer
from apiguard.errors import ApiGuardError, ConfigError, FactStreamError
from apiguard.facts import read_usage_events, split_by_file
from apiguard.policy import RuleSet, load_policy, resolve_config
from apiguard.report import generate_console_report, generate_json_report, print_rules, rules_to_dict

EXIT_ERROR = 2

app = typer.Typer(
    name="apiguard",
    help="Report uses of disallowed macros, methods and types.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich consoles: results on stdout, logs and errors on stderr
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]apiguard[/bold] version {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Route apiguard's loggers to stderr through Rich."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logger = logging.getLogger("apiguard")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=err_console, show_path=debug, markup=False))
    logger.setLevel(level)
    logger.propagate = False


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    apiguard - Disallowed-API policy engine.

    Checks resolved symbol usages against a denylist and reports every use
    of a disallowed symbol with the reason it is disallowed.
    """
    pass


ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Denylist file (TOML, YAML or JSON). Defaults to clippy.toml found from the current directory.",
        envvar="APIGUARD_CONFIG",
        resolve_path=True,
    ),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output results in JSON format.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Enable verbose output.")]
DebugOption = Annotated[bool, typer.Option("--debug", help="Enable debug logging and full error tracebacks.")]


def _load_rule_set(config: Path | None, json_output: bool, debug: bool) -> RuleSet:
    """Resolve and load the denylist, exiting with EXIT_ERROR on failure."""
    try:
        config_path = resolve_config(config, Path.cwd())
        logging.getLogger("apiguard").info("Using config %s", config_path)
        return load_policy(config_path)
    except ConfigError as e:
        _report_error("config_error", e, json_output, debug)
        raise typer.Exit(code=EXIT_ERROR)


def _report_error(error_category: str, error: ApiGuardError, json_output: bool, debug: bool) -> None:
    """Print an error to stdout as JSON, or to stderr for humans."""
    if json_output:
        output = {"error": True, "error_category": error_category, **error.to_dict()}
        if debug:
            output["traceback"] = traceback.format_exc()
        print(json.dumps(output, indent=2, default=str))
        return

    err_console.print(Text.assemble(("Error: ", "red"), str(error)), highlight=False)
    if debug:
        err_console.print(traceback.format_exc(), style="dim", markup=False, highlight=False)


@app.command()
def check(
    facts: Annotated[
        list[Path],
        typer.Argument(
            help="Usage fact files produced by the front-end (.jsonl, .json, .yaml). Record kinds are lowercase: macro, method or type.",
            exists=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
    config: ConfigOption = None,
    jobs: Annotated[
        Optional[int],
        typer.Option(
            "--jobs",
            "-j",
            help="Number of files to scan in parallel. Defaults to the executor's choice.",
            min=1,
        ),
    ] = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Check usage facts against the denylist.

    Every usage whose kind and canonical path exactly match a rule is
    reported with the rule's reason. Exits with 1 when any violation is found.

    Example:
        $ apiguard check target/facts.jsonl --config clippy.toml
    """
    _configure_logging(verbose, debug)
    rule_set = _load_rule_set(config, json_output, debug)

    try:
        events = itertools.chain.from_iterable(read_usage_events(path) for path in facts)
        units = split_by_file(events)
    except FactStreamError as e:
        _report_error("fact_stream_error", e, json_output, debug)
        raise typer.Exit(code=EXIT_ERROR)

    result = Analyzer(rule_set, max_workers=jobs).run(units)

    if json_output:
        print(generate_json_report(result, include_timing=verbose))
    else:
        _display_check_result(result, verbose)

    raise typer.Exit(code=result.exit_code)


def _display_check_result(result: AnalysisResult, verbose: bool) -> None:
    """Display violations, one diagnostic per line when not verbose."""
    if verbose:
        generate_console_report(result, console=console, verbose=True)
        return

    for item in result.violations:
        console.print(item.format(), markup=False, highlight=False, soft_wrap=True)

    count = len(result.violations)
    if count:
        noun = "violation" if count == 1 else "violations"
        console.print(f"[red]✗[/red] {count} {noun} in {result.units_scanned} files")
    else:
        console.print(f"[green]✓[/green] No disallowed symbols in {result.units_scanned} files")


@app.command()
def rules(
    config: ConfigOption = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    List the rules in the denylist.

    Example:
        $ apiguard rules --config clippy.toml
    """
    _configure_logging(False, debug)
    rule_set = _load_rule_set(config, json_output, debug)

    if json_output:
        print(json.dumps(rules_to_dict(rule_set), indent=2, ensure_ascii=False))
    else:
        print_rules(rule_set, console=console)


@app.command()
def validate(
    config: ConfigOption = None,
    json_output: JsonOption = False,
    debug: DebugOption = False,
) -> None:
    """
    Validate the denylist without checking any facts.

    Example:
        $ apiguard validate --config clippy.toml
    """
    _configure_logging(False, debug)
    rule_set = _load_rule_set(config, json_output, debug)

    if json_output:
        print(json.dumps({"valid": True, "rules": len(rule_set)}, indent=2))
    else:
        console.print(f"[green]✓[/green] Config is valid ({len(rule_set)} rules)")


if __name__ == "__main__":
    app()
